"""Revenue report endpoints."""

from __future__ import annotations

import logging
from datetime import date
from typing import Tuple

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response

from app.api.dependencies import get_report_aggregator, get_report_window
from app.schemas import RevenueReport
from app.security.guards import Session, require_session, single_flight
from app.services.order_store import FetchError
from app.services.report_aggregator import REVENUE_STATUSES, ReportAggregator
from app.services.report_export import export_filename, orders_to_csv

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/reports", tags=["Reports"])


@router.get("/revenue", response_model=RevenueReport)
async def revenue_report_endpoint(
    window: Tuple[date, date] = Depends(get_report_window),
    top_limit: int = Query(default=5, ge=0, le=50),
    session: Session = Depends(require_session),
    aggregator: ReportAggregator = Depends(get_report_aggregator),
) -> RevenueReport:
    start, end = window
    with single_flight("revenue-report", session.user_id):
        return await aggregator.build_revenue_report(start, end, top_limit=top_limit)


@router.get("/revenue/export")
async def revenue_export_endpoint(
    window: Tuple[date, date] = Depends(get_report_window),
    session: Session = Depends(require_session),
    aggregator: ReportAggregator = Depends(get_report_aggregator),
) -> Response:
    start, end = window
    with single_flight("revenue-export", session.user_id):
        try:
            orders = await aggregator.fetch_window(start, end, REVENUE_STATUSES)
        except FetchError as exc:
            logger.error("Revenue export for %s..%s failed: %s", start, end, exc)
            raise HTTPException(status_code=503, detail="Orders could not be loaded for export.") from exc

    return Response(
        content=orders_to_csv(orders, aggregator.tz),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{export_filename(start, end)}"'},
    )
