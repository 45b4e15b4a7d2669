"""Access to the ``orders`` collection held in Supabase."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from fastapi import HTTPException
from httpx import HTTPError as HttpxError
from postgrest import APIError as PostgrestAPIError

from app.config.supabase_client import ORDERS_TABLE
from app.services.postgrest_client import open_store_session, store_http_error

logger = logging.getLogger(__name__)

CREATED_AT_FIELD = "createdAt"


class FetchError(RuntimeError):
    """Raised when orders cannot be read from the store."""


class OrderStore(ABC):
    """Query capability the reporting code depends on.

    Implementations return raw order documents; normalization happens in
    :mod:`app.services.order_fields`.
    """

    @abstractmethod
    async def fetch_orders(
        self,
        start: datetime,
        end: datetime,
        statuses: Optional[Sequence[str]] = None,
    ) -> List[Dict[str, Any]]:
        ...

    @abstractmethod
    async def fetch_order(self, order_id: str) -> Optional[Dict[str, Any]]:
        ...

    @abstractmethod
    async def update_status(
        self,
        order_id: str,
        status: str,
        updated_at: datetime,
        *,
        expected_status: str,
    ) -> Optional[Dict[str, Any]]:
        """Write ``status`` only if the order still has ``expected_status``.

        Returns the updated document, or ``None`` when no row matched.
        """


class SupabaseOrderStore(OrderStore):
    """Order store backed by PostgREST, scoped to the caller's session."""

    def __init__(self, access_token: str, *, api_key: Optional[str] = None, table: str = ORDERS_TABLE) -> None:
        self.access_token = access_token
        self.api_key = api_key
        self.table = table

    async def fetch_orders(
        self,
        start: datetime,
        end: datetime,
        statuses: Optional[Sequence[str]] = None,
    ) -> List[Dict[str, Any]]:
        def _request() -> List[Dict[str, Any]]:
            with open_store_session(self.access_token, api_key=self.api_key) as client:
                query = (
                    client.table(self.table)
                    .select("*")
                    .gte(CREATED_AT_FIELD, format_store_timestamp(start))
                    .lte(CREATED_AT_FIELD, format_store_timestamp(end))
                )
                if statuses:
                    query = query.in_("status", list(statuses))
                response = query.order(CREATED_AT_FIELD, desc=True).execute()
                return response.data or []

        try:
            return await asyncio.to_thread(_request)
        except PostgrestAPIError as exc:
            logger.error("Orders query rejected (%s): %s", exc.code, exc.message)
            raise FetchError(exc.message or "Orders query rejected by the store.") from exc
        except HttpxError as exc:
            logger.error("Supabase unreachable during orders lookup: %s", exc)
            raise FetchError("The order store is unreachable.") from exc

    async def fetch_order(self, order_id: str) -> Optional[Dict[str, Any]]:
        def _request() -> Optional[Dict[str, Any]]:
            with open_store_session(self.access_token, api_key=self.api_key) as client:
                response = client.table(self.table).select("*").eq("id", order_id).limit(1).execute()
                return response.data[0] if response.data else None

        try:
            return await asyncio.to_thread(_request)
        except PostgrestAPIError as exc:  # pragma: no cover - network interaction
            raise store_http_error(exc, context="Order lookup") from exc
        except HttpxError as exc:  # pragma: no cover - network interaction
            logger.error("Supabase unreachable during order lookup: %s", exc)
            raise HTTPException(status_code=503, detail="The order store is temporarily unreachable.") from exc

    async def update_status(
        self,
        order_id: str,
        status: str,
        updated_at: datetime,
        *,
        expected_status: str,
    ) -> Optional[Dict[str, Any]]:
        body = {"status": status, "updatedAt": format_store_timestamp(updated_at)}

        def _request() -> Optional[Dict[str, Any]]:
            with open_store_session(self.access_token, api_key=self.api_key, return_rows=True) as client:
                response = (
                    client.table(self.table)
                    .update(body)
                    .eq("id", order_id)
                    .eq("status", expected_status)
                    .execute()
                )
                return response.data[0] if response.data else None

        try:
            return await asyncio.to_thread(_request)
        except PostgrestAPIError as exc:  # pragma: no cover - network interaction
            raise store_http_error(exc, context="Order status update") from exc
        except HttpxError as exc:  # pragma: no cover - network interaction
            logger.error("Supabase unreachable during order status update: %s", exc)
            raise HTTPException(status_code=503, detail="The order store is temporarily unreachable.") from exc


def format_store_timestamp(value: datetime) -> str:
    normalized = value.astimezone(timezone.utc).replace(microsecond=0)
    return normalized.isoformat().replace("+00:00", "Z")


__all__ = ["FetchError", "OrderStore", "SupabaseOrderStore", "format_store_timestamp"]
