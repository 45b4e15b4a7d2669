"""CSV export of the orders behind a revenue report."""

from __future__ import annotations

import csv
import io
from datetime import date, tzinfo
from typing import Sequence

from app.schemas import Order

CSV_HEADER = ("Date", "Order ID", "Customer", "Item Count", "Amount", "Status")
_FORMULA_PREFIXES = ("=", "+", "-", "@")


def _safe_cell(text: str) -> str:
    """Keep spreadsheet apps from evaluating free text as a formula."""

    if text.startswith(_FORMULA_PREFIXES):
        return "'" + text
    return text


def _format_amount(value: float) -> str:
    return f"{value:.0f}" if float(value).is_integer() else f"{value:.2f}"


def orders_to_csv(orders: Sequence[Order], tz: tzinfo) -> str:
    """One quoted row per order, newline separated, without a trailing newline."""

    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for order in orders:
        created = order.created_at.astimezone(tz).date().isoformat() if order.created_at else ""
        writer.writerow(
            (
                created,
                _safe_cell(order.id),
                _safe_cell(order.customer_name or "Unknown"),
                len(order.items),
                _format_amount(order.total_amount),
                _safe_cell(order.status or "unknown"),
            )
        )
    return buffer.getvalue().rstrip("\n")


def export_filename(start: date, end: date) -> str:
    return f"revenue-report-{start.isoformat()}-to-{end.isoformat()}.csv"


__all__ = ["CSV_HEADER", "export_filename", "orders_to_csv"]
