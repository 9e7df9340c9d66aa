"""
Tests for `domain/sale_item.py`.

Covers contract rules:
- create() returns an active, fully computed line.
- Quantity above 20 fails construction.
- calculate_total() is idempotent and always derives discount/total.
- has_meaningful_changes() compares product, unit price and quantity only.
- Field-level validation.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Callable
from uuid import UUID

import pytest

from domain.discount import DiscountTier
from domain.errors import InvalidQuantityError
from domain.sale_item import SaleItem
from domain.status import SaleStatus

MakeItem = Callable[..., SaleItem]


def test_create_computes_discount_and_total(make_item: MakeItem) -> None:
    """Verify 100 x 10 yields discount 200 and total 800 on creation."""

    item = make_item(unit_price="100", quantity=10)

    assert item.status is SaleStatus.ACTIVE
    assert item.discount_tier is DiscountTier.TWENTY
    assert item.discount == Decimal("200")
    assert item.total == Decimal("800")


def test_create_assigns_fresh_ids(make_item: MakeItem) -> None:
    assert make_item().id != make_item().id


def test_create_rejects_more_than_twenty_units(make_item: MakeItem) -> None:
    """Verify no item with quantity above 20 is ever returned."""

    with pytest.raises(InvalidQuantityError):
        make_item(quantity=21)


def test_calculate_total_is_idempotent(make_item: MakeItem) -> None:
    item = make_item(unit_price="19.99", quantity=7)
    first = (item.discount_tier, item.discount, item.total)

    item.calculate_total()
    item.calculate_total()

    assert (item.discount_tier, item.discount, item.total) == first


def test_calculate_total_follows_quantity_changes(make_item: MakeItem) -> None:
    """Verify derived fields track the inputs after a recalculation."""

    item = make_item(unit_price="10", quantity=2)
    assert item.discount == Decimal("0")

    item.quantity = 5
    item.calculate_total()

    assert item.discount_tier is DiscountTier.TEN
    assert item.discount == Decimal("5.00")
    assert item.total == Decimal("45.00")


def test_restore_keeps_identity_and_recomputes(make_item: MakeItem) -> None:
    original = make_item(unit_price="100", quantity=4)

    restored = SaleItem.restore(
        item_id=original.id,
        sale_id=original.sale_id,
        product_id=original.product_id,
        product_name=original.product_name,
        unit_price=original.unit_price,
        quantity=original.quantity,
    )

    assert restored.id == original.id
    assert restored.total == original.total == Decimal("360.0")


def test_meaningful_changes(make_item: MakeItem) -> None:
    """Verify only product, unit price and quantity count as meaningful."""

    item = make_item(unit_price="10", quantity=2)

    def copy(**overrides: object) -> SaleItem:
        fields = dict(
            item_id=item.id,
            sale_id=item.sale_id,
            product_id=item.product_id,
            product_name=item.product_name,
            unit_price=item.unit_price,
            quantity=item.quantity,
        )
        fields.update(overrides)
        return SaleItem.restore(**fields)  # type: ignore[arg-type]

    assert item.has_meaningful_changes(copy()) is False
    assert item.has_meaningful_changes(copy(product_name="Renamed")) is False
    assert item.has_meaningful_changes(copy(status=SaleStatus.CANCELLED)) is False
    assert item.has_meaningful_changes(copy(unit_price=Decimal("11"))) is True
    assert item.has_meaningful_changes(copy(quantity=3)) is True
    assert item.has_meaningful_changes(copy(product_id=UUID(int=99))) is True


def test_is_valid_quantity(make_item: MakeItem) -> None:
    item = make_item(quantity=20)
    assert item.is_valid_quantity() is True

    item.quantity = 0
    assert item.is_valid_quantity() is False


def test_valid_item_passes_validation(make_item: MakeItem) -> None:
    result = make_item().validate()

    assert result.is_valid is True
    assert result.errors == ()


def test_invalid_item_reports_every_violation() -> None:
    """Verify rules are not short-circuited: all violations are collected."""

    item = SaleItem.create(
        product_id=UUID(int=0),
        product_name="",
        unit_price=Decimal("-1"),
        quantity=0,
    )

    result = item.validate()

    assert result.is_valid is False
    fields = {e.field for e in result.errors}
    assert {"product_id", "product_name", "quantity", "unit_price"} <= fields
    assert result.messages_for("quantity") == ["Quantity must be greater than 0."]


def test_product_name_longer_than_100_is_invalid(make_item: MakeItem) -> None:
    result = make_item(product_name="x" * 101).validate()

    assert result.messages_for("product_name") == ["Product name must be 100 characters or fewer."]


def test_negative_total_is_invalid(make_item: MakeItem) -> None:
    """Verify a negative unit price surfaces on total as well as unit_price."""

    item = make_item(unit_price="-5", quantity=2)

    result = item.validate()

    assert "unit_price" in {e.field for e in result.errors}
    assert "total" in {e.field for e in result.errors}
