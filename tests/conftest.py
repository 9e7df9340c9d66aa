"""
Pytest configuration.

This file adds the project root to the Python path so that tests can import
from the domain, repositories, services and api modules, and provides shared
fixtures for building sales deterministically.
"""

from __future__ import annotations

import sys
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Callable
from uuid import UUID

import pytest

# Add the project root to the Python path
# so tests can import domain, repositories, etc.
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from domain.sale import Sale  # noqa: E402
from domain.sale_item import SaleItem  # noqa: E402
from domain.time import Clock, fixed_clock  # noqa: E402

CUSTOMER_ID = UUID("00000000-0000-0000-0000-000000000001")
BRANCH_ID = UUID("00000000-0000-0000-0000-000000000002")
PRODUCT_A = UUID("00000000-0000-0000-0000-0000000000a1")
PRODUCT_B = UUID("00000000-0000-0000-0000-0000000000b1")

NOW = datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock() -> Clock:
    return fixed_clock(NOW)


@pytest.fixture
def make_item() -> Callable[..., SaleItem]:
    def _make(
        unit_price: str = "100",
        quantity: int = 10,
        product_id: UUID = PRODUCT_A,
        product_name: str = "Product A",
    ) -> SaleItem:
        return SaleItem.create(
            product_id=product_id,
            product_name=product_name,
            unit_price=Decimal(unit_price),
            quantity=quantity,
        )

    return _make


@pytest.fixture
def make_sale(make_item: Callable[..., SaleItem], clock: Clock) -> Callable[..., Sale]:
    def _make(sale_number: str = "S-0001", items: list[SaleItem] | None = None) -> Sale:
        return Sale.create(
            customer_id=CUSTOMER_ID,
            customer_name="Jane Doe",
            branch_id=BRANCH_ID,
            branch_name="Downtown",
            sale_number=sale_number,
            items=items if items is not None else [make_item()],
            clock=clock,
        )

    return _make
