"""
Domain: Lifecycle status shared by sales and sale items.

State machine for a sale:
- Active -> Cancelled via Sale.cancel() or Sale.update(status=CANCELLED)
- Cancelled -> Active only via Sale.update(status=ACTIVE)
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class SaleStatus(str, Enum):
    ACTIVE = "Active"
    CANCELLED = "Cancelled"

    @staticmethod
    def parse(value: str) -> Optional["SaleStatus"]:
        """Case-insensitive lookup by value; None when nothing matches."""

        for status in SaleStatus:
            if status.value.lower() == value.strip().lower():
                return status
        return None
