"""
Domain: Sale events.

Events are immutable records of a significant state change. The aggregate
queues them during an operation; a dispatcher drains the queue and hands them
to downstream handlers.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Union
from uuid import UUID

from .time import require_utc_timestamp


@dataclass(frozen=True, slots=True)
class SaleCreated:
    """A new sale was created."""

    sale_id: UUID
    customer_id: UUID
    created_at: datetime

    def __post_init__(self) -> None:
        require_utc_timestamp("created_at", self.created_at)


@dataclass(frozen=True, slots=True)
class SaleModified:
    """An existing sale changed in a meaningful way."""

    sale_id: UUID
    customer_id: UUID
    modified_at: datetime

    def __post_init__(self) -> None:
        require_utc_timestamp("modified_at", self.modified_at)


SaleEvent = Union[SaleCreated, SaleModified]

__all__ = ["SaleCreated", "SaleModified", "SaleEvent"]
