"""Promotion management endpoints."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from app.api.dependencies import get_menu_store, get_promotion_store
from app.schemas import MenuOption, Promotion, PromotionActiveResponse, PromotionPayload
from app.services import promotion_service
from app.services.catalog_store import CatalogItemNotFound, CatalogStore

router = APIRouter(prefix="/api/promotions", tags=["Promotions"])

NOT_FOUND = "Promotion not found."


@router.get("", response_model=List[Promotion])
async def list_promotions_endpoint(
    search: Optional[str] = Query(default=None, max_length=120),
    store: CatalogStore = Depends(get_promotion_store),
) -> List[Promotion]:
    return await promotion_service.list_promotions(store, search=search)


@router.get("/menu-options", response_model=List[MenuOption])
async def promotion_menu_options_endpoint(menu: CatalogStore = Depends(get_menu_store)) -> List[MenuOption]:
    return await promotion_service.menu_options(menu)


@router.post("", response_model=Promotion, status_code=201)
async def create_promotion_endpoint(
    payload: PromotionPayload,
    store: CatalogStore = Depends(get_promotion_store),
) -> Promotion:
    return await promotion_service.create_promotion(store, payload)


@router.put("/{promotion_id}", response_model=Promotion)
async def update_promotion_endpoint(
    promotion_id: str,
    payload: PromotionPayload,
    store: CatalogStore = Depends(get_promotion_store),
) -> Promotion:
    try:
        return await promotion_service.update_promotion(store, promotion_id, payload)
    except CatalogItemNotFound as exc:
        raise HTTPException(status_code=404, detail=NOT_FOUND) from exc


@router.patch("/{promotion_id}/active", response_model=PromotionActiveResponse)
async def toggle_promotion_endpoint(
    promotion_id: str,
    store: CatalogStore = Depends(get_promotion_store),
) -> PromotionActiveResponse:
    try:
        return await promotion_service.toggle_active(store, promotion_id)
    except CatalogItemNotFound as exc:
        raise HTTPException(status_code=404, detail=NOT_FOUND) from exc


@router.delete("/{promotion_id}", status_code=204)
async def delete_promotion_endpoint(
    promotion_id: str,
    store: CatalogStore = Depends(get_promotion_store),
) -> Response:
    try:
        await promotion_service.delete_promotion(store, promotion_id)
    except CatalogItemNotFound as exc:
        raise HTTPException(status_code=404, detail=NOT_FOUND) from exc
    return Response(status_code=204)


__all__ = ["router"]
