"""
Supabase client initialization.

This module contains *only* the database connection setup. The client is
built on first use so that importing repositories (e.g. in tests that use the
in-memory repository) does not require credentials.

Environment variables:
- SUPABASE_URL: Your Supabase project URL (required)
- SUPABASE_KEY: Your Supabase API key (required; server-side key only)
- SALES_TABLE: Table holding sale headers (default: "sales")
- SALE_ITEMS_TABLE: Table holding sale lines (default: "sale_items")
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

# The dependency is `supabase` (supabase-py). If your editor can't resolve it,
# install it in your environment: `pip install supabase`.
from supabase import Client, create_client  # type: ignore[import-not-found]

# Load environment variables from the .env file at the project root
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

SALES_TABLE: str = os.getenv("SALES_TABLE", "sales")
SALE_ITEMS_TABLE: str = os.getenv("SALE_ITEMS_TABLE", "sale_items")


@lru_cache(maxsize=1)
def get_supabase_client() -> Client:
    """
    Return the shared Supabase client, creating it on first call.

    Raises:
        RuntimeError: if SUPABASE_URL or SUPABASE_KEY is missing
    """

    supabase_url = os.getenv("SUPABASE_URL")
    supabase_key = os.getenv("SUPABASE_KEY")

    if not supabase_url:
        raise RuntimeError(
            "Missing environment variable: SUPABASE_URL. "
            "Set SUPABASE_URL to your Supabase project URL."
        )

    if not supabase_key:
        raise RuntimeError(
            "Missing environment variable: SUPABASE_KEY. "
            "Set SUPABASE_KEY to your Supabase API key."
        )

    return create_client(supabase_url, supabase_key)


__all__ = ["get_supabase_client", "SALES_TABLE", "SALE_ITEMS_TABLE"]
