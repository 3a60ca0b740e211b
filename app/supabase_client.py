# app/supabase_client.py
"""Shared Supabase client for the invoice store."""

import logging
from functools import lru_cache
from typing import Optional

from supabase import Client, create_client

from .config import settings

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_supabase_client() -> Client:
    """Return a cached Supabase client, preferring the service-role key for writes."""
    url = settings.SUPABASE_URL
    key: Optional[str] = settings.SUPABASE_SERVICE_ROLE_KEY or settings.SUPABASE_ANON_KEY
    if not url or not key:
        raise RuntimeError("Supabase credentials are not configured")
    logger.info("Creating Supabase client for %s", url)
    return create_client(url, key)


__all__ = ["get_supabase_client"]
