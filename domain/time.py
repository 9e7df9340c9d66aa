"""
Domain time utilities (pure).

Centralized timestamp validation and the injectable clock.

The only ambient input of the sale aggregate is "now". Every operation that
needs it accepts a `Clock` so tests can pin time.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default clock: timezone-aware UTC now."""

    return datetime.now(timezone.utc)


def require_utc_timestamp(name: str, value: datetime) -> None:
    """
    Enforces that timestamps are UTC.

    Invariants:
    - Timestamps must be timezone-aware.
    - Timestamps must have UTC offset 0.
    """

    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError(f"{name} must be timezone-aware (UTC)")
    if value.utcoffset() != timedelta(0):
        raise ValueError(f"{name} must be a UTC timestamp (offset 0)")


def fixed_clock(moment: datetime) -> Clock:
    """Return a clock that always reports `moment` (must be UTC)."""

    require_utc_timestamp("moment", moment)
    return lambda: moment
