"""Menu management endpoints."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from app.api.dependencies import get_menu_store
from app.schemas import MENU_CATEGORIES, MenuItem, MenuItemPayload
from app.security.guards import require_session
from app.services import menu_service
from app.services.catalog_store import CatalogItemNotFound, CatalogStore

router = APIRouter(prefix="/api/menu", tags=["Menu"])


@router.get("/categories", response_model=List[str], dependencies=[Depends(require_session)])
async def list_menu_categories() -> List[str]:
    return ["All", *MENU_CATEGORIES]


@router.get("", response_model=List[MenuItem])
async def list_menu_endpoint(
    search: Optional[str] = Query(default=None, max_length=120),
    category: Optional[str] = Query(default=None, max_length=60),
    store: CatalogStore = Depends(get_menu_store),
) -> List[MenuItem]:
    return await menu_service.list_menu(store, search=search, category=category)


@router.get("/{item_id}", response_model=MenuItem)
async def get_menu_item_endpoint(item_id: str, store: CatalogStore = Depends(get_menu_store)) -> MenuItem:
    try:
        return await menu_service.get_menu_item(store, item_id)
    except CatalogItemNotFound as exc:
        raise HTTPException(status_code=404, detail="Menu item not found.") from exc


@router.post("", response_model=MenuItem, status_code=201)
async def create_menu_item_endpoint(
    payload: MenuItemPayload,
    store: CatalogStore = Depends(get_menu_store),
) -> MenuItem:
    try:
        return await menu_service.create_menu_item(store, payload)
    except CatalogItemNotFound as exc:
        raise HTTPException(status_code=502, detail="The saved menu item could not be read back.") from exc


@router.put("/{item_id}", response_model=MenuItem)
async def update_menu_item_endpoint(
    item_id: str,
    payload: MenuItemPayload,
    store: CatalogStore = Depends(get_menu_store),
) -> MenuItem:
    try:
        return await menu_service.update_menu_item(store, item_id, payload)
    except CatalogItemNotFound as exc:
        raise HTTPException(status_code=404, detail="Menu item not found.") from exc


@router.delete("/{item_id}", status_code=204)
async def delete_menu_item_endpoint(item_id: str, store: CatalogStore = Depends(get_menu_store)) -> Response:
    try:
        await menu_service.delete_menu_item(store, item_id)
    except CatalogItemNotFound as exc:
        raise HTTPException(status_code=404, detail="Menu item not found.") from exc
    return Response(status_code=204)


__all__ = ["router"]
