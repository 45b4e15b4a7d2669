"""FastAPI dependencies wiring the store, the aggregator and the clock."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Tuple

from fastapi import Depends, HTTPException, Query

from app.config.supabase_client import MENU_TABLE, PROMOTIONS_TABLE, SUPABASE_SERVICE_ROLE_KEY, get_store_timezone
from app.security.guards import Session, require_verified_session
from app.services.catalog_store import CatalogStore, SupabaseCatalogStore
from app.services.chart_presenter import ChartJsPresenter
from app.services.order_store import OrderStore, SupabaseOrderStore
from app.services.report_aggregator import ReportAggregator, resolve_window


def _resolve_postgrest_credentials(access_token: str) -> Tuple[str, Optional[str]]:
    """Return the token/api key pair to use with PostgREST."""

    if SUPABASE_SERVICE_ROLE_KEY:
        return SUPABASE_SERVICE_ROLE_KEY, SUPABASE_SERVICE_ROLE_KEY
    return access_token, None


async def get_order_store(session: Session = Depends(require_verified_session)) -> OrderStore:
    db_token, api_key = _resolve_postgrest_credentials(session.access_token)
    return SupabaseOrderStore(db_token, api_key=api_key)


async def get_menu_store(session: Session = Depends(require_verified_session)) -> CatalogStore:
    db_token, api_key = _resolve_postgrest_credentials(session.access_token)
    return SupabaseCatalogStore(db_token, api_key=api_key, table=MENU_TABLE)


async def get_promotion_store(session: Session = Depends(require_verified_session)) -> CatalogStore:
    db_token, api_key = _resolve_postgrest_credentials(session.access_token)
    return SupabaseCatalogStore(db_token, api_key=api_key, table=PROMOTIONS_TABLE)


async def get_report_aggregator(store: OrderStore = Depends(get_order_store)) -> ReportAggregator:
    return ReportAggregator(store, ChartJsPresenter(), get_store_timezone())


async def get_today() -> date:
    return datetime.now(get_store_timezone()).date()


async def get_report_window(
    start_date: Optional[str] = Query(default=None),
    end_date: Optional[str] = Query(default=None),
    range_days: Optional[int] = Query(default=None, ge=0, le=366),
    today: date = Depends(get_today),
) -> Tuple[date, date]:
    try:
        return resolve_window(start_date, end_date, today=today, range_days=range_days)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


__all__ = [
    "get_menu_store",
    "get_order_store",
    "get_promotion_store",
    "get_report_aggregator",
    "get_report_window",
    "get_today",
]
