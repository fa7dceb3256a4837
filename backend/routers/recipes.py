"""
Recipes Router - CRUD with owner-only mutations
"""
from fastapi import APIRouter, Depends, Request
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError as PydanticValidationError
from models import RecipeCreate, RecipeUpdate, RecipeResponse
from dependencies import get_current_user, get_pagination, Pagination, recipe_repository
from services.ownership import ensure_recipe_owner
from utils.debug import Loggers
from utils.errors import NotFoundError, InvalidInputError
from utils.responses import success_response, pagination_meta
from typing import Optional
import json
import uuid
from datetime import datetime, timezone

router = APIRouter(prefix="/recipe", tags=["Recipes"])

logger = Loggers.recipes


def _serialize(recipes: list) -> list:
    return [RecipeResponse(**r).model_dump() for r in recipes]


@router.post("", status_code=201)
async def create_recipe(recipe: RecipeCreate, user: dict = Depends(get_current_user)):
    recipe_doc = {
        "id": str(uuid.uuid4()),
        "name": recipe.name,
        "instructions": recipe.instructions,
        "thumbnail": recipe.thumbnail,
        "ingredients": recipe.ingredients,
        "posted_at": datetime.now(timezone.utc),
        "posted_by_id": user["id"],
    }
    created = await recipe_repository.create(recipe_doc)
    logger.info("Recipe created", recipe_id=created["id"], user_id=user["id"])

    created["posted_by_name"] = user["name"]
    return success_response(
        {"recipe": RecipeResponse(**created).model_dump()},
        "Recipe created successfully"
    )


@router.get("")
async def list_recipes(
    search: Optional[str] = None,
    pagination: Pagination = Depends(get_pagination)
):
    search = search.strip() if search else None
    recipes, total = await recipe_repository.list_recipes(
        search=search, limit=pagination.limit, offset=pagination.offset
    )
    return success_response({
        "recipes": _serialize(recipes),
        "pagination": pagination_meta(pagination.page, pagination.limit, total),
    })


@router.get("/user/my-recipes")
async def get_my_recipes(
    pagination: Pagination = Depends(get_pagination),
    user: dict = Depends(get_current_user)
):
    recipes = await recipe_repository.find_by_author(
        user["id"], limit=pagination.limit, offset=pagination.offset
    )
    return success_response({"recipes": _serialize(recipes)})


@router.get("/user/{user_id}")
async def get_user_recipes(user_id: str, pagination: Pagination = Depends(get_pagination)):
    recipes = await recipe_repository.find_by_author(
        user_id, limit=pagination.limit, offset=pagination.offset
    )
    return success_response({"recipes": _serialize(recipes)})


@router.get("/search/{query}")
async def search_recipes(query: str, pagination: Pagination = Depends(get_pagination)):
    recipes = await recipe_repository.search_by_name(
        query, limit=pagination.limit, offset=pagination.offset
    )
    return success_response({"recipes": _serialize(recipes), "searchQuery": query})


@router.get("/count/total")
async def count_recipes():
    return success_response({"count": await recipe_repository.count_all()})


@router.get("/{recipe_id}")
async def get_recipe(recipe_id: str):
    recipe = await recipe_repository.find_by_id(recipe_id)
    if not recipe:
        raise NotFoundError("Recipe", recipe_id)
    return success_response({"recipe": RecipeResponse(**recipe).model_dump()})


@router.put("/{recipe_id}")
async def update_recipe(
    recipe_id: str,
    request: Request,
    user: dict = Depends(get_current_user)
):
    # Ownership is decided before the body is read, so a malformed body
    # from a non-owner still gets 403
    await ensure_recipe_owner(recipe_id, user["id"], action="update")

    raw = await request.body()
    payload = {}
    if raw.strip():
        try:
            payload = json.loads(raw)
        except ValueError as e:
            raise RequestValidationError([
                {"loc": ("body",), "msg": f"Malformed JSON body: {e}", "type": "json_invalid"}
            ])

    try:
        update = RecipeUpdate.model_validate(payload if payload is not None else {})
    except PydanticValidationError as e:
        raise RequestValidationError(e.errors())

    fields = update.supplied_fields()
    if not fields:
        raise InvalidInputError("No fields to update")

    updated = await recipe_repository.update_fields(recipe_id, fields)
    if updated is None:
        # Deleted concurrently
        raise NotFoundError("Recipe", recipe_id)
    logger.info("Recipe updated", recipe_id=recipe_id, user_id=user["id"], fields=sorted(fields))

    updated["posted_by_name"] = user["name"]
    return success_response(
        {"recipe": RecipeResponse(**updated).model_dump()},
        "Recipe updated successfully"
    )


@router.delete("/{recipe_id}")
async def delete_recipe(recipe_id: str, user: dict = Depends(get_current_user)):
    await ensure_recipe_owner(recipe_id, user["id"], action="delete")

    await recipe_repository.delete_recipe(recipe_id)
    logger.info("Recipe deleted", recipe_id=recipe_id, user_id=user["id"])
    return success_response(message="Recipe deleted successfully")
