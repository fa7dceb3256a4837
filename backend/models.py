from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import List, Literal, Optional
from datetime import datetime, timezone
import re

URL_PATTERN = re.compile(r"^https?://.+")
DATA_URI_PATTERN = re.compile(r"^data:image/[a-zA-Z+.-]+;base64,")


def to_utc_iso(v):
    """Timestamps are stored as naive UTC; render them with an explicit +00:00 offset"""
    if isinstance(v, datetime):
        if v.tzinfo is None:
            v = v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc).isoformat()
    return v


def _clean_thumbnail(v: Optional[str]) -> Optional[str]:
    """Blank thumbnails are dropped; others must be an http(s) URL or a base64 image data URI"""
    if v is None:
        return None
    v = v.strip()
    if not v:
        return None
    if not URL_PATTERN.match(v) and not DATA_URI_PATTERN.match(v):
        raise ValueError("Thumbnail must be a valid URL or base64 image data")
    return v


def _clean_ingredients(v: List[str]) -> List[str]:
    return [i.strip() for i in v if i and i.strip()]


# Auth Models
class UserCreate(BaseModel):
    name: str
    email: EmailStr
    password: str = Field(min_length=6)

    @field_validator('name')
    @classmethod
    def name_min_length(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Name must be at least 2 characters long")
        return v

    @field_validator('email')
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()


class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)

    @field_validator('email')
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()


class UserResponse(BaseModel):
    id: str
    name: str
    email: str
    created_at: Optional[str] = None

    @field_validator('created_at', mode='before')
    @classmethod
    def convert_datetime_to_string(cls, v):
        return to_utc_iso(v)


# Recipe Models
class RecipeCreate(BaseModel):
    name: str
    instructions: str
    thumbnail: Optional[str] = None
    ingredients: List[str]

    @field_validator('name', 'instructions')
    @classmethod
    def not_blank(cls, v: str, info) -> str:
        v = v.strip()
        if not v:
            raise ValueError(f"Recipe {info.field_name} is required")
        return v

    @field_validator('thumbnail')
    @classmethod
    def validate_thumbnail(cls, v):
        return _clean_thumbnail(v)

    @field_validator('ingredients')
    @classmethod
    def validate_ingredients(cls, v):
        return _clean_ingredients(v)


class RecipeUpdate(BaseModel):
    """Partial update - only fields present in the request body are written"""
    name: Optional[str] = None
    instructions: Optional[str] = None
    thumbnail: Optional[str] = None
    ingredients: Optional[List[str]] = None

    @field_validator('name', 'instructions', 'ingredients', mode='before')
    @classmethod
    def not_null(cls, v, info):
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v

    @field_validator('name', 'instructions')
    @classmethod
    def not_blank(cls, v: str, info) -> str:
        v = v.strip()
        if not v:
            raise ValueError(f"Recipe {info.field_name} cannot be empty")
        return v

    @field_validator('thumbnail')
    @classmethod
    def validate_thumbnail(cls, v):
        return _clean_thumbnail(v)

    @field_validator('ingredients')
    @classmethod
    def validate_ingredients(cls, v):
        return _clean_ingredients(v)

    def supplied_fields(self) -> dict:
        return self.model_dump(exclude_unset=True)


class RecipeResponse(BaseModel):
    id: str
    name: str
    instructions: str
    thumbnail: Optional[str] = None
    ingredients: List[str] = []
    posted_at: str
    posted_by_id: str
    posted_by_name: Optional[str] = None

    @field_validator('posted_at', mode='before')
    @classmethod
    def convert_datetime_to_string(cls, v):
        return to_utc_iso(v)


class FavoriteRecipeResponse(RecipeResponse):
    favorite_id: str
    favorited_at: str

    @field_validator('favorited_at', mode='before')
    @classmethod
    def convert_favorited_at(cls, v):
        return to_utc_iso(v)


# Search Models
class LocalSearchResult(RecipeResponse):
    source: Literal["local"] = "local"


class ExternalRecipe(BaseModel):
    """Normalized third-party search hit; never stored"""
    recipe_id: str
    title: str
    image_url: str
    publisher: Optional[str] = None
    ingredients: List[str] = []
    source: Literal["external"] = "external"


class ExternalRecipeDetail(BaseModel):
    recipe_id: str
    title: str
    image_url: Optional[str] = None
    publisher: Optional[str] = None
    source_url: Optional[str] = None
    ingredients: List[str] = []
    source: Literal["external"] = "external"
