"""Environment settings for the store connection and the restaurant's locale."""

from __future__ import annotations

import logging
import os
from datetime import timezone, tzinfo
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_ANON_KEY = os.getenv("SUPABASE_ANON_KEY")
SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY")

ORDERS_TABLE = os.getenv("ORDERS_TABLE", "orders")
MENU_TABLE = os.getenv("MENU_TABLE", "menu")
PROMOTIONS_TABLE = os.getenv("PROMOTIONS_TABLE", "promotions")
STORE_TIMEOUT_SECONDS = float(os.getenv("STORE_TIMEOUT_SECONDS", "10"))
# Calendar days and hour bands are cut in this zone, not in UTC.
STORE_TIMEZONE = os.getenv("STORE_TIMEZONE", "Asia/Jakarta")


@lru_cache(maxsize=1)
def get_store_timezone() -> tzinfo:
    try:
        return ZoneInfo(STORE_TIMEZONE)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown STORE_TIMEZONE %r, falling back to UTC", STORE_TIMEZONE)
        return timezone.utc


__all__ = [
    "MENU_TABLE",
    "ORDERS_TABLE",
    "PROMOTIONS_TABLE",
    "STORE_TIMEOUT_SECONDS",
    "STORE_TIMEZONE",
    "SUPABASE_ANON_KEY",
    "SUPABASE_SERVICE_ROLE_KEY",
    "SUPABASE_URL",
    "get_store_timezone",
]
