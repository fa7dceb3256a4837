from fastapi import APIRouter, Depends
from models import FavoriteRecipeResponse, to_utc_iso
from dependencies import get_current_user, get_pagination, Pagination
from services import favorites as favorites_service
from utils.responses import success_response, pagination_meta

router = APIRouter(prefix="/favorite", tags=["Favorites"])


@router.get("")
async def get_favorites(
    pagination: Pagination = Depends(get_pagination),
    user: dict = Depends(get_current_user)
):
    """Favorited recipes, most recently favorited first"""
    favorites, total = await favorites_service.list_favorites(
        user["id"], limit=pagination.limit, offset=pagination.offset
    )
    return success_response({
        "favorites": [FavoriteRecipeResponse(**f).model_dump() for f in favorites],
        "pagination": pagination_meta(pagination.page, pagination.limit, total),
    })


@router.get("/check/{recipe_id}")
async def check_favorite(recipe_id: str, user: dict = Depends(get_current_user)):
    is_favorited, favorite_id = await favorites_service.check_favorite(user["id"], recipe_id)
    return success_response({"isFavorited": is_favorited, "favoriteId": favorite_id})


@router.get("/count/{recipe_id}")
async def count_favorites(recipe_id: str):
    """Public favorite count for a recipe"""
    count = await favorites_service.count_favorites(recipe_id)
    return success_response({"count": count})


@router.post("/toggle/{recipe_id}")
async def toggle_favorite(recipe_id: str, user: dict = Depends(get_current_user)):
    is_favorited = await favorites_service.toggle_favorite(user["id"], recipe_id)
    message = "Recipe added to favorites" if is_favorited else "Recipe removed from favorites"
    return success_response({"isFavorited": is_favorited}, message)


@router.post("/{recipe_id}", status_code=201)
async def add_favorite(recipe_id: str, user: dict = Depends(get_current_user)):
    favorite = await favorites_service.add_favorite(user["id"], recipe_id)
    return success_response(
        {"favorite": {"id": favorite["id"], "created_at": to_utc_iso(favorite["created_at"])}},
        "Recipe added to favorites"
    )


@router.delete("/{recipe_id}")
async def remove_favorite(recipe_id: str, user: dict = Depends(get_current_user)):
    await favorites_service.remove_favorite(user["id"], recipe_id)
    return success_response(message="Recipe removed from favorites")
