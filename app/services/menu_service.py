"""Menu catalogue: listing with search and category filters, and item edits."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from app.schemas import MenuItem, MenuItemPayload
from app.services.catalog_store import CatalogItemNotFound, CatalogStore
from app.services.order_store import format_store_timestamp

logger = logging.getLogger(__name__)

ALL_CATEGORIES = "all"
DEFAULT_LANGUAGE = "id"


def localized(translations: Any, field: str, fallback: str, *, lang: str = DEFAULT_LANGUAGE) -> str:
    """Text in ``lang``, else English, else ``fallback``."""

    if not isinstance(translations, Mapping):
        return fallback
    for code in (lang, "en"):
        entry = translations.get(code)
        if isinstance(entry, Mapping):
            value = entry.get(field)
            if isinstance(value, str) and value:
                return value
    return fallback


def plain_translations(raw: Any) -> Dict[str, Dict[str, str]]:
    if not isinstance(raw, Mapping):
        return {}
    return {
        code: {key: str(value) for key, value in entry.items() if value is not None}
        for code, entry in raw.items()
        if isinstance(entry, Mapping)
    }


def to_menu_item(document: Mapping[str, Any]) -> Optional[MenuItem]:
    """Menu item view of a stored document, or ``None`` without translations."""

    translations = document.get("translations")
    if not isinstance(translations, Mapping) or not (translations.get("id") or translations.get("en")):
        logger.warning("Menu document %s is missing its translations", document.get("id"))
        return None

    price = document.get("price")
    rating = document.get("rating")
    reviews = document.get("reviews")
    return MenuItem(
        id=str(document.get("id")),
        name=localized(translations, "name", "No Name"),
        description=localized(translations, "description", "No Description"),
        category=str(document.get("category") or ""),
        price=float(price) if isinstance(price, (int, float)) and not isinstance(price, bool) else 0.0,
        image=str(document.get("image") or ""),
        rating=float(rating) if isinstance(rating, (int, float)) and not isinstance(rating, bool) else None,
        reviews=int(reviews) if isinstance(reviews, int) and not isinstance(reviews, bool) else None,
        translations=plain_translations(translations),
    )


def filter_menu(
    items: List[MenuItem],
    *,
    search: Optional[str] = None,
    category: Optional[str] = None,
) -> List[MenuItem]:
    result = items
    if search:
        needle = search.strip().lower()
        result = [item for item in result if needle in item.name.lower() or needle in item.description.lower()]
    if category and category.strip().lower() != ALL_CATEGORIES:
        wanted = category.strip().lower()
        result = [item for item in result if item.category.lower() == wanted]
    return result


def menu_document(payload: MenuItemPayload, *, now: datetime, created: bool) -> Dict[str, Any]:
    """Stored form of a menu edit; English falls back to the Indonesian text."""

    body: Dict[str, Any] = {
        "category": payload.category,
        "image": payload.image,
        "price": payload.price,
        "translations": {
            "id": {"name": payload.id_name, "description": payload.id_description},
            "en": {
                "name": payload.en_name or payload.id_name,
                "description": payload.en_description or payload.id_description,
            },
        },
    }
    if payload.rating is not None:
        body["rating"] = payload.rating
    if payload.reviews is not None:
        body["reviews"] = payload.reviews
    body["createdAt" if created else "updatedAt"] = format_store_timestamp(now)
    return body


def _require_item(document: Optional[Mapping[str, Any]], item_id: str) -> MenuItem:
    item = to_menu_item(document) if document else None
    if item is None:
        raise CatalogItemNotFound(item_id)
    return item


async def list_menu(
    store: CatalogStore,
    *,
    search: Optional[str] = None,
    category: Optional[str] = None,
) -> List[MenuItem]:
    documents = await store.list_documents(order_by="category")
    items = [item for item in (to_menu_item(document) for document in documents) if item is not None]
    return filter_menu(items, search=search, category=category)


async def get_menu_item(store: CatalogStore, item_id: str) -> MenuItem:
    return _require_item(await store.fetch_document(item_id), item_id)


async def create_menu_item(
    store: CatalogStore,
    payload: MenuItemPayload,
    *,
    now: Optional[datetime] = None,
) -> MenuItem:
    body = menu_document(payload, now=now or datetime.now(timezone.utc), created=True)
    document = await store.insert_document(body)
    logger.info("Menu item %s created in %s", document.get("id"), payload.category)
    return _require_item(document, str(document.get("id")))


async def update_menu_item(
    store: CatalogStore,
    item_id: str,
    payload: MenuItemPayload,
    *,
    now: Optional[datetime] = None,
) -> MenuItem:
    body = menu_document(payload, now=now or datetime.now(timezone.utc), created=False)
    item = _require_item(await store.update_document(item_id, body), item_id)
    logger.info("Menu item %s updated", item_id)
    return item


async def delete_menu_item(store: CatalogStore, item_id: str) -> None:
    if not await store.delete_document(item_id):
        raise CatalogItemNotFound(item_id)
    logger.info("Menu item %s deleted", item_id)


__all__ = [
    "create_menu_item",
    "delete_menu_item",
    "filter_menu",
    "get_menu_item",
    "list_menu",
    "localized",
    "menu_document",
    "plain_translations",
    "to_menu_item",
    "update_menu_item",
]
