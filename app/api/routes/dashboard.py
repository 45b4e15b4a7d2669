from datetime import date
from typing import Any, Dict

from fastapi import APIRouter, Depends

from app.api.dependencies import get_report_aggregator, get_today
from app.security.guards import Session, require_session, single_flight
from app.services import dashboard_service
from app.services.report_aggregator import ReportAggregator

router = APIRouter()


@router.get("/revenue-chart")
async def dashboard_revenue_chart_endpoint(
    session: Session = Depends(require_session),
    aggregator: ReportAggregator = Depends(get_report_aggregator),
    today: date = Depends(get_today),
) -> Dict[str, Any]:
    with single_flight("revenue-chart", session.user_id):
        return await dashboard_service.revenue_chart(aggregator, today)


@router.get("/order-stats")
async def dashboard_order_stats_endpoint(
    session: Session = Depends(require_session),
    aggregator: ReportAggregator = Depends(get_report_aggregator),
    today: date = Depends(get_today),
) -> Dict[str, Any]:
    with single_flight("order-stats", session.user_id):
        return await dashboard_service.order_stats(aggregator, today)


@router.get("/order-time")
async def dashboard_order_time_endpoint(
    session: Session = Depends(require_session),
    aggregator: ReportAggregator = Depends(get_report_aggregator),
    today: date = Depends(get_today),
) -> Dict[str, Any]:
    with single_flight("order-time", session.user_id):
        return await dashboard_service.order_time(aggregator, today)


@router.get("/most-ordered")
async def dashboard_most_ordered_endpoint(
    session: Session = Depends(require_session),
    aggregator: ReportAggregator = Depends(get_report_aggregator),
    today: date = Depends(get_today),
) -> Dict[str, Any]:
    with single_flight("most-ordered", session.user_id):
        return await dashboard_service.most_ordered_items(aggregator, today)
