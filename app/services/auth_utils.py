"""Helpers for working with Supabase access tokens."""

from __future__ import annotations

import base64
import binascii
import json
from typing import Any, Dict

from fastapi import HTTPException


def decode_access_token(access_token: str) -> Dict[str, Any]:
    """Return the claims of a Supabase JWT.

    The payload is only read to identify the session. The signature is not
    checked here: ``require_verified_session`` has PostgREST check it before
    any store access.
    """

    if not access_token:
        raise HTTPException(status_code=401, detail="Sign-in required.")

    segments = access_token.split(".")
    if len(segments) != 3:
        raise HTTPException(status_code=401, detail="Invalid session token.")
    payload_segment = segments[1]
    padding = "=" * (-len(payload_segment) % 4)
    try:
        decoded = base64.urlsafe_b64decode((payload_segment + padding).encode("ascii"))
        claims = json.loads(decoded.decode("utf-8"))
    except (binascii.Error, UnicodeError, ValueError) as exc:
        raise HTTPException(status_code=401, detail="Invalid session token.") from exc
    if not isinstance(claims, dict):
        raise HTTPException(status_code=401, detail="Invalid session token.")
    return claims


__all__ = ["decode_access_token"]
