"""Request guards shared by the back-office routers."""

from __future__ import annotations

import asyncio
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional, Set

from fastapi import Depends, Header, HTTPException

from app.config.supabase_client import ORDERS_TABLE
from app.services.auth_utils import decode_access_token
from app.services.postgrest_client import extract_bearer_token, verify_store_session

_INFLIGHT_LOCK = threading.Lock()
_INFLIGHT: Set[str] = set()


@dataclass(frozen=True)
class Session:
    access_token: str
    user_id: str


async def require_session(
    authorization: Optional[str] = Header(default=None, alias="Authorization"),
) -> Session:
    """Reject requests that do not carry a signed-in Supabase session."""

    token = extract_bearer_token(authorization)
    claims = decode_access_token(token)
    user_id = claims.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid Supabase user.")
    return Session(access_token=token, user_id=str(user_id))


async def require_verified_session(session: Session = Depends(require_session)) -> Session:
    """Session whose token the store itself accepted.

    Every dependency that hands out store credentials goes through this check,
    so a token with a forged signature never reaches the service role key.
    """

    await asyncio.to_thread(verify_store_session, session.access_token, table=ORDERS_TABLE)
    return session


@contextmanager
def single_flight(scope: str, key: str) -> Iterator[None]:
    """Allow one outstanding fetch per ``scope`` and caller.

    A second trigger while the first is still running is refused with 409
    instead of starting a parallel fetch.
    """

    identifier = f"{scope}:{key}"
    with _INFLIGHT_LOCK:
        if identifier in _INFLIGHT:
            raise HTTPException(status_code=409, detail="This view is already refreshing.")
        _INFLIGHT.add(identifier)
    try:
        yield
    finally:
        with _INFLIGHT_LOCK:
            _INFLIGHT.discard(identifier)


def in_flight(scope: str, key: str) -> bool:
    with _INFLIGHT_LOCK:
        return f"{scope}:{key}" in _INFLIGHT


__all__ = ["Session", "in_flight", "require_session", "require_verified_session", "single_flight"]
