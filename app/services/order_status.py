"""Order status workflow used by the orders page."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Tuple

from app.schemas import Order, StatusCounts, StatusUpdateResponse
from app.services.order_fields import derive_payment_status
from app.services.order_store import OrderStore

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = ("completed", "cancelled")
ALLOWED_TRANSITIONS: Dict[str, Tuple[str, ...]] = {
    "pending_payment": ("pending", "cancelled"),
    "pending": ("processing", "cancelled"),
    "processing": ("completed", "cancelled"),
    "completed": (),
    "cancelled": (),
}
PENDING_GROUP = ("pending_payment", "pending")


class OrderNotFound(LookupError):
    """Raised when the order to update does not exist."""


class InvalidStatusTransition(ValueError):
    """Raised when staff request a move the workflow does not allow."""

    def __init__(self, current: str, requested: str) -> None:
        super().__init__(f"Cannot move an order from '{current}' to '{requested}'.")
        self.current = current
        self.requested = requested


class StaleOrderStatus(RuntimeError):
    """Raised when the order changed status between the read and the write."""

    def __init__(self, order_id: str, expected: str) -> None:
        super().__init__(f"Order {order_id} is no longer '{expected}'; reload and try again.")
        self.order_id = order_id
        self.expected = expected


def can_transition(current: str, requested: str) -> bool:
    return requested in ALLOWED_TRANSITIONS.get(current, ())


def count_statuses(orders: Sequence[Order]) -> StatusCounts:
    counts = StatusCounts(all=len(orders))
    for order in orders:
        if order.status in PENDING_GROUP:
            counts.pending += 1
        elif order.status == "processing":
            counts.processing += 1
        elif order.status == "completed":
            counts.completed += 1
        elif order.status == "cancelled":
            counts.cancelled += 1
    return counts


def filter_orders(
    orders: Sequence[Order],
    *,
    status: Optional[str] = None,
    search: Optional[str] = None,
    payment: Optional[str] = None,
    sort: str = "date",
    descending: bool = True,
) -> List[Order]:
    """Apply the orders page filters.

    ``status="pending"`` matches both pending states; ``payment`` matches the
    payment method by substring; ``search`` looks at the order id and the
    customer name.
    """

    result = list(orders)
    if status and status != "all":
        wanted = PENDING_GROUP if status == "pending" else (status,)
        result = [order for order in result if order.status in wanted]
    if search:
        needle = search.strip().lower()
        result = [
            order
            for order in result
            if needle in order.id.lower() or needle in order.customer_name.lower()
        ]
    if payment and payment != "all":
        method = payment.strip().lower()
        result = [order for order in result if method in (order.payment_method or "").lower()]

    if sort == "amount":
        result.sort(key=lambda order: order.total_amount, reverse=descending)
    else:
        oldest = datetime.min.replace(tzinfo=timezone.utc)
        result.sort(key=lambda order: order.created_at or oldest, reverse=descending)
    return result


async def change_status(
    store: OrderStore,
    order_id: str,
    requested: str,
    *,
    now: Optional[datetime] = None,
) -> StatusUpdateResponse:
    """Validate and persist a staff status change.

    Requesting the current status is accepted and leaves the document untouched.
    The write only applies while the order still has the status that was read.
    """

    document = await store.fetch_order(order_id)
    if not document:
        raise OrderNotFound(order_id)
    current = document.get("status") or "unknown"

    if current != requested:
        if not can_transition(current, requested):
            raise InvalidStatusTransition(current, requested)
        updated = await store.update_status(
            order_id,
            requested,
            now or datetime.now(timezone.utc),
            expected_status=current,
        )
        if updated is None:
            logger.warning("Order %s left status %s before the update to %s", order_id, current, requested)
            raise StaleOrderStatus(order_id, current)
        logger.info("Order %s moved from %s to %s", order_id, current, requested)

    return StatusUpdateResponse(
        id=order_id,
        previous_status=current,
        status=requested,
        payment_status=derive_payment_status(requested),
    )


__all__ = [
    "ALLOWED_TRANSITIONS",
    "InvalidStatusTransition",
    "OrderNotFound",
    "StaleOrderStatus",
    "can_transition",
    "change_status",
    "count_statuses",
    "filter_orders",
]
