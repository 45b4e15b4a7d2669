"""Orders page: listing with status counts and staff status changes."""

from __future__ import annotations

import logging
from datetime import date
from typing import Literal, Optional, Tuple

from fastapi import APIRouter, Depends, HTTPException, Query

from app.api.dependencies import get_order_store, get_report_aggregator, get_report_window
from app.schemas import OrderListResponse, StatusUpdatePayload, StatusUpdateResponse
from app.security.guards import Session, require_session, single_flight
from app.services.order_status import (
    InvalidStatusTransition,
    OrderNotFound,
    StaleOrderStatus,
    change_status,
    count_statuses,
    filter_orders,
)
from app.services.order_store import FetchError, OrderStore
from app.services.report_aggregator import ReportAggregator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/orders", tags=["Orders"])


@router.get("", response_model=OrderListResponse)
async def list_orders_endpoint(
    window: Tuple[date, date] = Depends(get_report_window),
    status: Optional[str] = Query(default=None),
    search: Optional[str] = Query(default=None, max_length=120),
    payment: Optional[str] = Query(default=None, max_length=60),
    sort: Literal["date", "amount"] = Query(default="date"),
    direction: Literal["asc", "desc"] = Query(default="desc"),
    session: Session = Depends(require_session),
    aggregator: ReportAggregator = Depends(get_report_aggregator),
) -> OrderListResponse:
    start, end = window
    with single_flight("orders", session.user_id):
        try:
            orders = await aggregator.fetch_window(start, end)
        except FetchError as exc:
            logger.error("Order list for %s..%s failed: %s", start, end, exc)
            return OrderListResponse(error="Orders could not be loaded. Please try again later.")

    return OrderListResponse(
        orders=filter_orders(
            orders,
            status=status,
            search=search,
            payment=payment,
            sort=sort,
            descending=direction == "desc",
        ),
        counts=count_statuses(orders),
    )


@router.patch("/{order_id}/status", response_model=StatusUpdateResponse)
async def update_order_status_endpoint(
    order_id: str,
    payload: StatusUpdatePayload,
    store: OrderStore = Depends(get_order_store),
) -> StatusUpdateResponse:
    try:
        return await change_status(store, order_id, payload.status)
    except OrderNotFound as exc:
        raise HTTPException(status_code=404, detail="Order not found.") from exc
    except InvalidStatusTransition as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except StaleOrderStatus as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
