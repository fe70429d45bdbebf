# walcard/api/routers/favorites.py
from typing import List

from fastapi import APIRouter, Depends

from walcard.api.deps import get_context
from walcard.context import AppContext
from walcard.domain.schemas import ActionResult, FavoriteProduct, FavoriteResult

router = APIRouter(prefix="/favorites", tags=["favorites"])


@router.get("/", response_model=List[FavoriteProduct])
def list_favorites(ctx: AppContext = Depends(get_context)):
    return ctx.favorites_service.get_favorites()


@router.get("/count")
def count_favorites(ctx: AppContext = Depends(get_context)):
    return {"count": ctx.favorites_service.get_favorites_count()}


@router.get("/{product_id}")
def is_favorite(product_id: str, ctx: AppContext = Depends(get_context)):
    return {"product_id": product_id, "is_favorite": ctx.favorites_service.is_favorite(product_id)}


@router.post("/{product_id}/toggle", response_model=FavoriteResult)
def toggle_favorite(product_id: str, ctx: AppContext = Depends(get_context)):
    return ctx.favorites_service.toggle_favorite(product_id)


@router.delete("/", response_model=ActionResult)
def clear_favorites(ctx: AppContext = Depends(get_context)):
    return ctx.favorites_service.clear_all_favorites()
