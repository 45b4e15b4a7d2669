"""Promotion banners: ordered listing, edits and the active toggle."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

from app.schemas import MenuOption, Promotion, PromotionActiveResponse, PromotionPayload
from app.services.catalog_store import CatalogItemNotFound, CatalogStore
from app.services.menu_service import localized, plain_translations

logger = logging.getLogger(__name__)

ORDER_FIELD = "order"


def _position(value: Any) -> int:
    if isinstance(value, bool):
        return 1
    if isinstance(value, (int, float)):
        return int(value) or 1
    if isinstance(value, str):
        try:
            return int(value.strip()) or 1
        except ValueError:
            return 1
    return 1


def to_promotion(document: Mapping[str, Any]) -> Promotion:
    translations = document.get("translations")
    raw_ids = document.get("menuItemIds")
    return Promotion(
        id=str(document.get("id")),
        title=localized(translations, "title", "No Title"),
        description=localized(translations, "description", "No Description"),
        action_link=str(document.get("actionLink") or ""),
        active=document.get("active") is True,
        image=str(document.get("image") or ""),
        order=_position(document.get(ORDER_FIELD)),
        menu_item_ids=[str(item) for item in raw_ids] if isinstance(raw_ids, list) else [],
        translations=plain_translations(translations),
    )


def filter_promotions(promotions: List[Promotion], *, search: Optional[str] = None) -> List[Promotion]:
    """Match ``search`` against the Indonesian and English titles."""

    if not search:
        return promotions
    needle = search.strip().lower()
    return [
        promotion
        for promotion in promotions
        if needle in localized(promotion.translations, "title", "No Title", lang="id").lower()
        or needle in localized(promotion.translations, "title", "No Title", lang="en").lower()
    ]


def promotion_document(payload: PromotionPayload) -> Dict[str, Any]:
    return {
        "translations": {
            "id": {"title": payload.id_title, "description": payload.id_description},
            "en": {
                "title": payload.en_title or payload.id_title,
                "description": payload.en_description or payload.id_description,
            },
        },
        "actionLink": payload.action_link,
        "image": payload.image,
        ORDER_FIELD: payload.order,
        "active": payload.active,
        "menuItemIds": list(payload.menu_item_ids),
    }


def to_menu_option(document: Mapping[str, Any]) -> MenuOption:
    translations = document.get("translations")
    name = document.get("name")
    fallback = name if isinstance(name, str) and name else "Unknown Item"
    price = document.get("price")
    image = document.get("image")
    return MenuOption(
        id=str(document.get("id")),
        name=localized(translations, "name", fallback),
        category=str(document.get("category") or "Uncategorized"),
        price=float(price) if isinstance(price, (int, float)) and not isinstance(price, bool) else 0.0,
        image=image if isinstance(image, str) and image else None,
    )


async def list_promotions(store: CatalogStore, *, search: Optional[str] = None) -> List[Promotion]:
    documents = await store.list_documents(order_by=ORDER_FIELD)
    return filter_promotions([to_promotion(document) for document in documents], search=search)


async def create_promotion(store: CatalogStore, payload: PromotionPayload) -> Promotion:
    document = await store.insert_document(promotion_document(payload))
    logger.info("Promotion %s created at position %s", document.get("id"), payload.order)
    return to_promotion(document)


async def update_promotion(store: CatalogStore, promotion_id: str, payload: PromotionPayload) -> Promotion:
    document = await store.update_document(promotion_id, promotion_document(payload))
    if document is None:
        raise CatalogItemNotFound(promotion_id)
    logger.info("Promotion %s updated", promotion_id)
    return to_promotion(document)


async def toggle_active(store: CatalogStore, promotion_id: str) -> PromotionActiveResponse:
    """Flip ``active`` from the value currently stored."""

    document = await store.fetch_document(promotion_id)
    if document is None:
        raise CatalogItemNotFound(promotion_id)
    active = document.get("active") is not True
    updated = await store.update_document(promotion_id, {"active": active})
    if updated is None:
        raise CatalogItemNotFound(promotion_id)
    logger.info("Promotion %s is now %s", promotion_id, "active" if active else "inactive")
    return PromotionActiveResponse(id=promotion_id, active=active)


async def delete_promotion(store: CatalogStore, promotion_id: str) -> None:
    if not await store.delete_document(promotion_id):
        raise CatalogItemNotFound(promotion_id)
    logger.info("Promotion %s deleted", promotion_id)


async def menu_options(store: CatalogStore) -> List[MenuOption]:
    """Menu entries, grouped by category, a promotion can link to."""

    documents = await store.list_documents(order_by="category")
    return [to_menu_option(document) for document in documents]


__all__ = [
    "create_promotion",
    "delete_promotion",
    "filter_promotions",
    "list_promotions",
    "menu_options",
    "promotion_document",
    "to_menu_option",
    "to_promotion",
    "toggle_active",
    "update_promotion",
]
