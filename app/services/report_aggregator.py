"""Revenue and order aggregation behind the reporting views.

Every view recomputes its figures from a fresh fetch: there is no cache, and
changing the requested window simply triggers a new fetch-then-aggregate pass.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List, Optional, Sequence, Tuple

from app.schemas import (
    DailyBucket,
    HourBandDistribution,
    Order,
    ProductStat,
    RevenueReport,
    RevenueTotals,
)
from app.services.chart_presenter import ChartJsPresenter, ChartPresenter, LineSeries
from app.services.order_fields import coerce_number, coerce_order
from app.services.order_store import FetchError, OrderStore

logger = logging.getLogger(__name__)

# "delivered" is still written by older ordering clients and means the same as "completed".
REVENUE_STATUSES: Tuple[str, ...] = ("completed", "delivered")

MORNING_HOURS = range(5, 12)
AFTERNOON_HOURS = range(12, 17)
DEFAULT_RANGE_DAYS = 30
MAX_RANGE_DAYS = 366

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def round_half_up(value: float, digits: int = 0) -> float:
    quantum = Decimal(1).scaleb(-digits)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def window_bounds(start: date, end: date, tz: tzinfo) -> Tuple[datetime, datetime]:
    """Return the first and last instant of the local calendar days ``[start, end]``."""

    if start > end:
        raise ValueError(f"window start {start} is after its end {end}")
    return datetime.combine(start, time.min, tzinfo=tz), datetime.combine(end, time.max, tzinfo=tz)


def previous_window(start: date, end: date) -> Tuple[date, date]:
    """Window of the same length ending the day before ``start``."""

    span = end - start
    previous_end = start - timedelta(days=1)
    return previous_end - span, previous_end


def resolve_window(
    start_date: Optional[str],
    end_date: Optional[str],
    *,
    today: date,
    range_days: Optional[int] = None,
) -> Tuple[date, date]:
    """Turn query parameters into a window; explicit dates win over ``range_days``.

    Raises ``ValueError`` on unparseable dates or an inverted range.
    """

    end_value = _parse_date_input(end_date) or today
    if start_date:
        start_value = _parse_date_input(start_date)
    else:
        start_value = end_value - timedelta(days=range_days if range_days is not None else DEFAULT_RANGE_DAYS)
    if start_value > end_value:
        raise ValueError("start_date must not be after end_date")
    if (end_value - start_value).days > MAX_RANGE_DAYS:
        start_value = end_value - timedelta(days=MAX_RANGE_DAYS)
    return start_value, end_value


def _parse_date_input(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except ValueError as exc:
        raise ValueError(f"invalid date {value!r}, expected YYYY-MM-DD") from exc


def local_date(order: Order, tz: tzinfo) -> Optional[date]:
    if order.created_at is None:
        return None
    return order.created_at.astimezone(tz).date()


def bucket_by_day(orders: Sequence[Order], start: date, end: date, tz: tzinfo) -> List[DailyBucket]:
    """One zeroed bucket per day of ``[start, end]``; orders outside the range are dropped."""

    buckets: Dict[date, DailyBucket] = {}
    cursor = start
    while cursor <= end:
        buckets[cursor] = DailyBucket(date=cursor, label=cursor.strftime("%d %b"))
        cursor += timedelta(days=1)

    for order in orders:
        bucket = buckets.get(local_date(order, tz))
        if bucket is None:
            continue
        bucket.count += 1
        bucket.revenue += coerce_number(order.total_amount)
    return list(buckets.values())


def bucket_by_hour_band(orders: Sequence[Order], tz: tzinfo) -> HourBandDistribution:
    morning = afternoon = evening = 0
    for order in orders:
        if order.created_at is None:
            continue
        hour = order.created_at.astimezone(tz).hour
        if hour in MORNING_HOURS:
            morning += 1
        elif hour in AFTERNOON_HOURS:
            afternoon += 1
        else:
            evening += 1

    total = morning + afternoon + evening

    def _percent(count: int) -> int:
        return int(round_half_up(count / total * 100)) if total else 0

    return HourBandDistribution(
        morning=morning,
        afternoon=afternoon,
        evening=evening,
        total=total,
        morning_percent=_percent(morning),
        afternoon_percent=_percent(afternoon),
        evening_percent=_percent(evening),
    )


def compute_totals(orders: Sequence[Order]) -> RevenueTotals:
    total_revenue = sum(coerce_number(order.total_amount) for order in orders)
    total_orders = len(orders)
    average = total_revenue / total_orders if total_orders else 0.0
    return RevenueTotals(total_revenue=total_revenue, total_orders=total_orders, average_order_value=average)


def compute_percent_change(current: float, previous: float) -> float:
    """Relative change in percent; a zero baseline reads as +100% growth or no change."""

    current_value = coerce_number(current)
    previous_value = coerce_number(previous)
    if previous_value == 0:
        return 100.0 if current_value > 0 else 0.0
    return round_half_up((current_value - previous_value) / previous_value * 100, 1)


def _product_stats(orders: Sequence[Order]) -> List[ProductStat]:
    stats: Dict[str, ProductStat] = {}
    for order in orders:
        for item in order.items:
            entry = stats.get(item.name)
            if entry is None:
                entry = stats[item.name] = ProductStat(name=item.name)
            entry.quantity += coerce_number(item.quantity)
            entry.revenue += coerce_number(item.subtotal)
    return list(stats.values())


def top_products(orders: Sequence[Order], limit: int) -> List[ProductStat]:
    """Best sellers by revenue; on a tie the product seen first ranks higher."""

    if limit <= 0:
        return []
    return sorted(_product_stats(orders), key=lambda stat: stat.revenue, reverse=True)[:limit]


def most_ordered(orders: Sequence[Order], limit: int) -> List[ProductStat]:
    if limit <= 0:
        return []
    return sorted(_product_stats(orders), key=lambda stat: stat.quantity, reverse=True)[:limit]


class ReportAggregator:
    """Fetches order windows from an :class:`OrderStore` and summarizes them."""

    def __init__(
        self,
        store: OrderStore,
        presenter: Optional[ChartPresenter] = None,
        tz: tzinfo = timezone.utc,
    ) -> None:
        self.store = store
        self.presenter = presenter or ChartJsPresenter()
        self.tz = tz

    async def fetch_window(
        self,
        start: date,
        end: date,
        statuses: Optional[Sequence[str]] = None,
    ) -> List[Order]:
        """Orders created during ``[start, end]``, newest first.

        Raises :class:`FetchError` when the store cannot be queried.
        """

        range_start, range_end = window_bounds(start, end, self.tz)
        documents = await self.store.fetch_orders(range_start, range_end, statuses)
        orders: List[Order] = []
        for index, document in enumerate(documents):
            if not isinstance(document, Mapping):
                logger.warning("Skipping order row %d: expected a mapping, got %s", index, type(document).__name__)
                continue
            orders.append(coerce_order(document, fallback_id=f"row-{index}"))
        orders.sort(key=lambda order: order.created_at or _OLDEST, reverse=True)
        return orders

    def local_date(self, order: Order) -> Optional[date]:
        return local_date(order, self.tz)

    def bucket_by_day(self, orders: Sequence[Order], start: date, end: date) -> List[DailyBucket]:
        return bucket_by_day(orders, start, end, self.tz)

    def bucket_by_hour_band(self, orders: Sequence[Order]) -> HourBandDistribution:
        return bucket_by_hour_band(orders, self.tz)

    compute_totals = staticmethod(compute_totals)
    compute_percent_change = staticmethod(compute_percent_change)
    top_products = staticmethod(top_products)
    most_ordered = staticmethod(most_ordered)

    async def build_revenue_report(
        self,
        start: date,
        end: date,
        *,
        top_limit: int = 5,
        recent_limit: int = 10,
    ) -> RevenueReport:
        """Totals, trend, daily chart and best sellers for the revenue report page."""

        try:
            orders = await self.fetch_window(start, end, REVENUE_STATUSES)
        except FetchError as exc:
            logger.error("Revenue report for %s..%s unavailable: %s", start, end, exc)
            return self._empty_report(start, end, error="Revenue data could not be loaded. Showing no data.")

        totals = compute_totals(orders)
        daily = self.bucket_by_day(orders, start, end)
        products = top_products(orders, top_limit)

        error = None
        previous_start, previous_end = previous_window(start, end)
        try:
            previous_orders = await self.fetch_window(previous_start, previous_end, REVENUE_STATUSES)
            previous_revenue = compute_totals(previous_orders).total_revenue
        except FetchError as exc:
            logger.error("Previous revenue window %s..%s unavailable: %s", previous_start, previous_end, exc)
            previous_revenue = 0.0
            error = "Comparison with the previous period is unavailable."

        return RevenueReport(
            start_date=start,
            end_date=end,
            totals=totals,
            previous_revenue=previous_revenue,
            percent_change=compute_percent_change(totals.total_revenue, previous_revenue),
            daily=daily,
            chart=self._daily_revenue_chart(daily),
            product_chart=self.presenter.doughnut(
                [product.name for product in products],
                [product.revenue for product in products],
            ),
            top_products=products,
            recent_orders=orders[:recent_limit],
            error=error,
        )

    def _empty_report(self, start: date, end: date, *, error: str) -> RevenueReport:
        daily = self.bucket_by_day([], start, end)
        return RevenueReport(
            start_date=start,
            end_date=end,
            daily=daily,
            chart=self._daily_revenue_chart(daily),
            product_chart=self.presenter.doughnut([], []),
            error=error,
        )

    def _daily_revenue_chart(self, daily: Sequence[DailyBucket]) -> Dict[str, object]:
        return self.presenter.line(
            [bucket.label for bucket in daily],
            [LineSeries("Daily Revenue", [bucket.revenue for bucket in daily], fill=True)],
        )


__all__ = [
    "REVENUE_STATUSES",
    "ReportAggregator",
    "bucket_by_day",
    "bucket_by_hour_band",
    "compute_percent_change",
    "compute_totals",
    "most_ordered",
    "previous_window",
    "resolve_window",
    "round_half_up",
    "top_products",
    "window_bounds",
]
