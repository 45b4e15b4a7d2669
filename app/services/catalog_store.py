"""Access to the menu and promotion collections held in Supabase."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, TypeVar

from fastapi import HTTPException
from httpx import HTTPError as HttpxError
from postgrest import APIError as PostgrestAPIError

from app.services.postgrest_client import STORE_ERROR_DETAIL, open_store_session, store_http_error

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CatalogItemNotFound(LookupError):
    """Raised when a menu item or promotion id does not exist."""


class CatalogStore(ABC):
    """Document CRUD over one catalog table, keyed by ``id``."""

    @abstractmethod
    async def list_documents(self, *, order_by: Optional[str] = None) -> List[Dict[str, Any]]:
        ...

    @abstractmethod
    async def fetch_document(self, document_id: str) -> Optional[Dict[str, Any]]:
        ...

    @abstractmethod
    async def insert_document(self, body: Dict[str, Any]) -> Dict[str, Any]:
        ...

    @abstractmethod
    async def update_document(self, document_id: str, body: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Merge ``body`` into the document; ``None`` when it does not exist."""

    @abstractmethod
    async def delete_document(self, document_id: str) -> bool:
        """``False`` when there was nothing to delete."""


class SupabaseCatalogStore(CatalogStore):
    def __init__(self, access_token: str, *, table: str, api_key: Optional[str] = None) -> None:
        self.access_token = access_token
        self.api_key = api_key
        self.table = table

    async def _run(self, request: Callable[[], T], *, context: str) -> T:
        try:
            return await asyncio.to_thread(request)
        except PostgrestAPIError as exc:
            raise store_http_error(exc, context=context) from exc
        except HttpxError as exc:
            logger.error("Supabase unreachable during %s: %s", context.lower(), exc)
            raise HTTPException(status_code=503, detail="The catalog store is temporarily unreachable.") from exc

    async def list_documents(self, *, order_by: Optional[str] = None) -> List[Dict[str, Any]]:
        def _request() -> List[Dict[str, Any]]:
            with open_store_session(self.access_token, api_key=self.api_key) as client:
                query = client.table(self.table).select("*")
                if order_by:
                    query = query.order(order_by)
                return query.execute().data or []

        return await self._run(_request, context=f"Listing {self.table}")

    async def fetch_document(self, document_id: str) -> Optional[Dict[str, Any]]:
        def _request() -> Optional[Dict[str, Any]]:
            with open_store_session(self.access_token, api_key=self.api_key) as client:
                response = client.table(self.table).select("*").eq("id", document_id).limit(1).execute()
                return response.data[0] if response.data else None

        return await self._run(_request, context=f"Lookup in {self.table}")

    async def insert_document(self, body: Dict[str, Any]) -> Dict[str, Any]:
        def _request() -> Dict[str, Any]:
            with open_store_session(self.access_token, api_key=self.api_key, return_rows=True) as client:
                response = client.table(self.table).insert(body).execute()
                if not response.data:
                    logger.error("Insert into %s returned no row", self.table)
                    raise HTTPException(status_code=502, detail=STORE_ERROR_DETAIL)
                return response.data[0]

        return await self._run(_request, context=f"Insert into {self.table}")

    async def update_document(self, document_id: str, body: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        def _request() -> Optional[Dict[str, Any]]:
            with open_store_session(self.access_token, api_key=self.api_key, return_rows=True) as client:
                response = client.table(self.table).update(body).eq("id", document_id).execute()
                return response.data[0] if response.data else None

        return await self._run(_request, context=f"Update in {self.table}")

    async def delete_document(self, document_id: str) -> bool:
        def _request() -> bool:
            with open_store_session(self.access_token, api_key=self.api_key, return_rows=True) as client:
                response = client.table(self.table).delete().eq("id", document_id).execute()
                return bool(response.data)

        return await self._run(_request, context=f"Delete from {self.table}")


__all__ = ["CatalogItemNotFound", "CatalogStore", "SupabaseCatalogStore"]
