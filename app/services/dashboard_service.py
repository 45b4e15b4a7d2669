"""Business logic powering the dashboard widgets.

Each widget performs one fetch for its own window and aggregates the result.
A store failure never propagates: the widget returns its empty state and an
``error`` message for the banner.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Any, Dict, List, Sequence, Tuple

from app.schemas import DailyBucket
from app.services.chart_presenter import LineSeries
from app.services.order_store import FetchError
from app.services.report_aggregator import (
    REVENUE_STATUSES,
    ReportAggregator,
    compute_percent_change,
    compute_totals,
    most_ordered,
    round_half_up,
)

logger = logging.getLogger(__name__)

WIDGET_WINDOW_DAYS = 30
TREND_DAYS = 7
REVENUE_CHART_DAYS = 12
ORDER_CHART_DAYS = 6
TARGET_FACTOR = 1.1
MOST_ORDERED_LIMIT = 4

FETCH_ERROR_BANNER = "Data could not be loaded. Please try again later."


def _widget_window(today: date) -> Tuple[date, date]:
    return today - timedelta(days=WIDGET_WINDOW_DAYS), today


def _sum_days(buckets: Sequence[DailyBucket], first: date, last: date, attribute: str) -> float:
    return sum(getattr(bucket, attribute) for bucket in buckets if first <= bucket.date <= last)


def _trend(buckets: Sequence[DailyBucket], today: date, attribute: str) -> float:
    """Last seven days against the seven days before them."""

    recent = _sum_days(buckets, today - timedelta(days=TREND_DAYS - 1), today, attribute)
    earlier = _sum_days(
        buckets,
        today - timedelta(days=2 * TREND_DAYS - 1),
        today - timedelta(days=TREND_DAYS),
        attribute,
    )
    return compute_percent_change(recent, earlier)


def _day_labels(buckets: Sequence[DailyBucket]) -> List[str]:
    return [f"{bucket.date.day:02d}" for bucket in buckets]


async def revenue_chart(aggregator: ReportAggregator, today: date) -> Dict[str, Any]:
    """Revenue over the last 30 days with a 12-day current vs previous comparison."""

    start, end = _widget_window(today)
    try:
        orders = await aggregator.fetch_window(start, end, REVENUE_STATUSES)
    except FetchError as exc:
        logger.error("Revenue widget fetch failed: %s", exc)
        orders, error = [], FETCH_ERROR_BANNER
    else:
        error = None

    daily = aggregator.bucket_by_day(orders, start, end)
    current = daily[-REVENUE_CHART_DAYS:]
    previous = daily[-2 * REVENUE_CHART_DAYS:-REVENUE_CHART_DAYS]
    chart = aggregator.presenter.line(
        _day_labels(current),
        [
            LineSeries("Current Period", [bucket.revenue for bucket in current]),
            LineSeries("Previous Period", [bucket.revenue for bucket in previous], dashed=True),
        ],
    )
    return {
        "total_revenue": compute_totals(orders).total_revenue,
        "percent_change": _trend(daily, today, "revenue"),
        "days_with_sales": sum(1 for bucket in daily if bucket.count),
        "daily": [bucket.model_dump(mode="json") for bucket in daily],
        "chart": chart,
        "error": error,
    }


async def order_stats(aggregator: ReportAggregator, today: date) -> Dict[str, Any]:
    """Order counts (every status) over the last 30 days with a target line."""

    start, end = _widget_window(today)
    try:
        orders = await aggregator.fetch_window(start, end)
    except FetchError as exc:
        logger.error("Order stats widget fetch failed: %s", exc)
        orders, error = [], FETCH_ERROR_BANNER
    else:
        error = None

    daily = aggregator.bucket_by_day(orders, start, end)
    recent = daily[-ORDER_CHART_DAYS:]
    counts = [bucket.count for bucket in recent]
    average = sum(counts) / len(counts) if counts else 0
    target = int(round_half_up(average * TARGET_FACTOR))
    chart = aggregator.presenter.line(
        _day_labels(recent),
        [
            LineSeries("Actual Orders", counts),
            LineSeries("Target", [target] * len(recent), dashed=True),
        ],
    )
    return {
        "total_orders": len(orders),
        "percent_change": _trend(daily, today, "count"),
        "chart": chart,
        "error": error,
    }


async def order_time(aggregator: ReportAggregator, today: date) -> Dict[str, Any]:
    """Morning/afternoon/evening split of this month's orders."""

    start = today.replace(day=1)
    try:
        orders = await aggregator.fetch_window(start, today)
    except FetchError as exc:
        logger.error("Order time widget fetch failed: %s", exc)
        orders, error = [], FETCH_ERROR_BANNER
    else:
        error = None

    distribution = aggregator.bucket_by_hour_band(orders)
    if distribution.total:
        chart = aggregator.presenter.doughnut(
            ["Afternoon", "Evening", "Morning"],
            [distribution.afternoon_percent, distribution.evening_percent, distribution.morning_percent],
        )
    else:
        chart = aggregator.presenter.doughnut([], [])
    return {
        "distribution": distribution.model_dump(),
        "chart": chart,
        "error": error,
    }


async def most_ordered_items(
    aggregator: ReportAggregator,
    today: date,
    limit: int = MOST_ORDERED_LIMIT,
) -> Dict[str, Any]:
    start, end = _widget_window(today)
    try:
        orders = await aggregator.fetch_window(start, end)
    except FetchError as exc:
        logger.error("Most ordered widget fetch failed: %s", exc)
        return {"items": [], "error": FETCH_ERROR_BANNER}
    return {
        "items": [stat.model_dump() for stat in most_ordered(orders, limit)],
        "error": None,
    }


__all__ = ["most_ordered_items", "order_stats", "order_time", "revenue_chart"]
