"""Field resolution for order documents written by several generations of clients.

Order documents do not share a single schema: the amount may live under
``totalAmount``, ``total``, ``amount``, ``grandTotal`` or ``finalAmount``, the
customer name may be nested or flat, and items may carry their own subtotal or
only a price and quantity. Every lookup goes through an :class:`AccessorChain`
so the precedence is declared once and applied the same way everywhere.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, List, Mapping, Optional, Tuple

from app.schemas import Order, OrderItem

logger = logging.getLogger(__name__)

Accessor = Callable[[Mapping[str, Any]], Any]

UNKNOWN_PRODUCT = "Unknown Product"
UNKNOWN_CUSTOMER = "Unknown Customer"


class DataShapeError(ValueError):
    """Raised when a stored order field cannot be interpreted."""


@dataclass(frozen=True)
class AccessorChain:
    """Ordered list of accessors; the first one returning a value wins."""

    name: str
    accessors: Tuple[Tuple[str, Accessor], ...]
    default: Any = None

    def resolve(self, document: Mapping[str, Any]) -> Tuple[Any, str]:
        for label, accessor in self.accessors:
            value = accessor(document)
            if value is not None:
                return value, label
        return self.default, "default"

    def __call__(self, document: Mapping[str, Any]) -> Any:
        return self.resolve(document)[0]


def to_number(value: Any) -> Optional[float]:
    """Return ``value`` as a finite float, or ``None`` when it is not numeric."""

    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str) and value.strip():
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def coerce_number(value: Any, default: float = 0.0) -> float:
    number = to_number(value)
    return default if number is None else number


def _lookup(document: Mapping[str, Any], path: Iterable[str]) -> Any:
    current: Any = document
    for key in path:
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
    return current


def number_at(*path: str) -> Accessor:
    return lambda document: to_number(_lookup(document, path))


def text_at(*path: str) -> Accessor:
    def _accessor(document: Mapping[str, Any]) -> Optional[str]:
        value = _lookup(document, path)
        if isinstance(value, str) and value.strip():
            return value.strip()
        return None

    return _accessor


def _customer_full_name(document: Mapping[str, Any]) -> Optional[str]:
    first = text_at("customer", "firstName")(document)
    if not first:
        return None
    last = text_at("customer", "lastName")(document)
    return f"{first} {last}" if last else first


ITEM_NAME = AccessorChain(
    "item name",
    (("name", text_at("name")), ("menuItem.name", text_at("menuItem", "name"))),
    default=UNKNOWN_PRODUCT,
)

ITEM_PRICE = AccessorChain(
    "item price",
    (("price", number_at("price")), ("menuItem.price", number_at("menuItem", "price"))),
    default=0.0,
)

ITEM_PRODUCT_ID = AccessorChain(
    "item product id",
    (
        ("menuItemId", text_at("menuItemId")),
        ("productId", text_at("productId")),
        ("menuItem.id", text_at("menuItem", "id")),
    ),
)


def coerce_item(entry: Mapping[str, Any]) -> OrderItem:
    """Build an :class:`OrderItem`, defaulting anything unreadable."""

    price = ITEM_PRICE(entry)
    quantity = to_number(entry.get("quantity"))
    if quantity is None:
        quantity = 1.0
    subtotal = to_number(entry.get("subtotal"))
    if subtotal is None:
        subtotal = price * quantity
    return OrderItem(
        product_id=ITEM_PRODUCT_ID(entry),
        name=ITEM_NAME(entry),
        price=price,
        quantity=quantity,
        subtotal=subtotal,
    )


def _items_total(document: Mapping[str, Any]) -> Optional[float]:
    raw_items = document.get("items")
    if not isinstance(raw_items, list):
        return None
    return sum(coerce_item(entry).subtotal for entry in raw_items if isinstance(entry, Mapping))


ORDER_AMOUNT = AccessorChain(
    "order amount",
    (
        ("totalAmount", number_at("totalAmount")),
        ("total", number_at("total")),
        ("amount", number_at("amount")),
        ("grandTotal", number_at("grandTotal")),
        ("finalAmount", number_at("finalAmount")),
        ("items", _items_total),
    ),
    default=0.0,
)

CUSTOMER_NAME = AccessorChain(
    "customer name",
    (
        ("customer.name", text_at("customer", "name")),
        ("customerDetails.name", text_at("customerDetails", "name")),
        ("customerName", text_at("customerName")),
        ("customer.firstName", _customer_full_name),
        ("user.name", text_at("user", "name")),
        ("orderBy", text_at("orderBy")),
    ),
    default=UNKNOWN_CUSTOMER,
)

PAYMENT_METHOD = AccessorChain(
    "payment method",
    (("paymentMethod", text_at("paymentMethod")), ("payment.method", text_at("payment", "method"))),
)


def derive_payment_status(status: str) -> str:
    if status == "pending_payment":
        return "unpaid"
    if status == "completed":
        return "paid"
    return "processing"


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Return an aware datetime for the timestamp shapes found in the store.

    Accepts ISO 8601 strings, ``datetime`` objects (naive ones are UTC), epoch
    seconds and ``{"seconds": ..., "nanoseconds": ...}`` mappings. Missing
    values give ``None``; anything else raises :class:`DataShapeError`.
    """

    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, Mapping):
        seconds = to_number(value.get("seconds", value.get("_seconds")))
        if seconds is None:
            raise DataShapeError(f"timestamp mapping without seconds: {value!r}")
        nanos = coerce_number(value.get("nanoseconds", value.get("_nanoseconds")))
        return datetime.fromtimestamp(seconds + nanos / 1e9, tz=timezone.utc)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as exc:
            raise DataShapeError(f"unreadable timestamp: {value!r}") from exc
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    seconds = to_number(value)
    if seconds is None:
        raise DataShapeError(f"unsupported timestamp type: {type(value).__name__}")
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as exc:
        raise DataShapeError(f"timestamp out of range: {value!r}") from exc


def coerce_order(document: Mapping[str, Any], *, fallback_id: str = "unknown") -> Order:
    """Normalize a raw order document, replacing malformed fields with defaults."""

    order_id = str(document.get("id") or fallback_id)

    raw_created = document.get("createdAt", document.get("created_at"))
    try:
        created_at = parse_timestamp(raw_created)
    except DataShapeError as exc:
        logger.warning("Order %s: %s", order_id, exc)
        created_at = None

    raw_items = document.get("items")
    items: List[OrderItem] = []
    if isinstance(raw_items, list):
        items = [coerce_item(entry) for entry in raw_items if isinstance(entry, Mapping)]
        if len(items) != len(raw_items):
            logger.warning("Order %s: dropped %d malformed item(s)", order_id, len(raw_items) - len(items))
    elif raw_items is not None:
        logger.warning("Order %s: items is a %s, expected a list", order_id, type(raw_items).__name__)

    amount, amount_source = ORDER_AMOUNT.resolve(document)
    if amount_source == "default":
        logger.warning("Order %s: no readable amount, counted as 0", order_id)

    status = document.get("status")
    status = status if isinstance(status, str) and status else "unknown"
    explicit_payment = text_at("paymentStatus")(document)

    return Order(
        id=order_id,
        items=items,
        customer_name=CUSTOMER_NAME(document),
        status=status,
        total_amount=amount,
        amount_source=amount_source,
        payment_method=PAYMENT_METHOD(document),
        payment_status=explicit_payment or derive_payment_status(status),
        created_at=created_at,
    )


__all__ = [
    "AccessorChain",
    "CUSTOMER_NAME",
    "DataShapeError",
    "ITEM_NAME",
    "ITEM_PRICE",
    "ORDER_AMOUNT",
    "coerce_item",
    "coerce_number",
    "coerce_order",
    "derive_payment_status",
    "parse_timestamp",
    "to_number",
]
