"""PostgREST session handling for the back-office stores."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import HTTPException
from httpx import HTTPError as HttpxError
from postgrest import APIError as PostgrestAPIError
from postgrest import SyncPostgrestClient

from app.config.supabase_client import STORE_TIMEOUT_SECONDS, SUPABASE_ANON_KEY, SUPABASE_URL

logger = logging.getLogger(__name__)

STORE_ERROR_DETAIL = "The order store could not process the request."
_JWT_ERROR_CODES = ("PGRST301", "PGRST302", "PGRST303")
_FORWARDED_STATUSES = {
    401: "Supabase session expired, sign in again.",
    403: "You are not allowed to access this resource.",
    404: "Record not found.",
}


def extract_bearer_token(header_value: Optional[str]) -> str:
    """Return the token carried by an ``Authorization: Bearer`` header."""

    if not header_value:
        raise HTTPException(status_code=401, detail="Sign-in required.")
    scheme, _, token = header_value.strip().partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or " " in token:
        raise HTTPException(status_code=401, detail="Malformed bearer token.")
    if not token:
        raise HTTPException(status_code=401, detail="Missing bearer token.")
    return token


def open_store_session(
    access_token: str,
    *,
    api_key: Optional[str] = None,
    return_rows: bool = False,
) -> SyncPostgrestClient:
    """PostgREST client authenticated as the caller.

    ``return_rows`` asks PostgREST to echo written rows back, which the status
    update relies on to detect a missing order.
    """

    key = api_key or SUPABASE_ANON_KEY
    if not SUPABASE_URL or not key:
        raise HTTPException(status_code=500, detail="Supabase is not configured.")

    headers = {"apikey": key, "Accept": "application/json"}
    if return_rows:
        headers["Prefer"] = "return=representation"

    session = SyncPostgrestClient(
        SUPABASE_URL.rstrip("/") + "/rest/v1",
        headers=headers,
        timeout=STORE_TIMEOUT_SECONDS,
    )
    session.auth(access_token)
    return session


def store_http_error(exc: PostgrestAPIError, *, context: str) -> HTTPException:
    """HTTP error to raise when a PostgREST write or lookup is rejected."""

    code = postgrest_status(exc)
    logger.error("%s rejected by the store (%s): %s", context, code, exc.message)
    if code in _FORWARDED_STATUSES:
        return HTTPException(status_code=code, detail=_FORWARDED_STATUSES[code])
    return HTTPException(status_code=502, detail=STORE_ERROR_DETAIL)


def postgrest_status(exc: PostgrestAPIError) -> int:
    """HTTP status for a PostgREST error; JWT rejections (``PGRST301``-``PGRST303``) read as 401."""

    if exc.code in _JWT_ERROR_CODES:
        return 401
    try:
        return int(exc.code) if exc.code else 502
    except (TypeError, ValueError):
        return 502


def verify_store_session(access_token: str, *, table: str) -> None:
    """Have PostgREST check the caller's JWT with a one-row read made as the caller.

    Must succeed before any request is served with the service role key,
    since that key bypasses the signature check.
    """

    try:
        with open_store_session(access_token) as session:
            session.table(table).select("id").limit(1).execute()
    except PostgrestAPIError as exc:
        logger.warning("Session rejected by the store (%s): %s", exc.code, exc.message)
        raise HTTPException(status_code=401, detail="Supabase session expired, sign in again.") from exc
    except HttpxError as exc:
        logger.error("Supabase unreachable during session check: %s", exc)
        raise HTTPException(status_code=503, detail="The order store is temporarily unreachable.") from exc


__all__ = [
    "extract_bearer_token",
    "open_store_session",
    "postgrest_status",
    "store_http_error",
    "verify_store_session",
]
