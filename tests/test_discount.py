"""
Tests for `domain/discount.py`.

Covers contract rules:
- 1-3 units: no discount; 4-9 units: 10%; 10-20 units: 20%.
- More than 20 units is rejected with InvalidQuantityError.
- Non-positive quantities get no discount (validation rejects them).
- Money is rounded to cents only at the boundary.
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from domain.discount import (
    MAX_ITEM_QUANTITY,
    DiscountTier,
    compute_discount,
    line_total,
    quantize_money,
)
from domain.errors import InvalidQuantityError


@pytest.mark.parametrize(
    ("quantity", "expected_tier"),
    [
        (1, DiscountTier.NONE),
        (3, DiscountTier.NONE),
        (4, DiscountTier.TEN),
        (9, DiscountTier.TEN),
        (10, DiscountTier.TWENTY),
        (20, DiscountTier.TWENTY),
    ],
)
def test_tier_boundaries(quantity: int, expected_tier: DiscountTier) -> None:
    """Verify each tier starts and ends at the documented quantity."""

    assert DiscountTier.for_quantity(quantity) is expected_tier


def test_discount_amounts_follow_tier_percentage() -> None:
    """Verify discount is the tier percentage of unit_price * quantity."""

    price = Decimal("12.50")

    assert compute_discount(price, 3) == (Decimal("0"), DiscountTier.NONE)
    assert compute_discount(price, 4) == (Decimal("5.00"), DiscountTier.TEN)
    assert compute_discount(price, 10) == (Decimal("25.00"), DiscountTier.TWENTY)


def test_hundred_times_ten_gives_two_hundred_discount() -> None:
    """Verify the reference scenario: 100 x 10 -> discount 200, total 800."""

    discount, tier = compute_discount(Decimal("100"), 10)

    assert tier is DiscountTier.TWENTY
    assert discount == Decimal("200")
    assert line_total(Decimal("100"), 10, discount) == Decimal("800")


def test_more_than_twenty_units_is_rejected() -> None:
    """Verify quantity above the limit fails instead of clamping."""

    with pytest.raises(InvalidQuantityError) as exc_info:
        compute_discount(Decimal("10"), MAX_ITEM_QUANTITY + 1)

    assert exc_info.value.quantity == 21
    assert exc_info.value.limit == 20


@pytest.mark.parametrize("quantity", [0, -5])
def test_non_positive_quantity_gets_no_discount(quantity: int) -> None:
    """Verify the policy leaves non-positive quantities to validation."""

    assert compute_discount(Decimal("10"), quantity) == (Decimal("0"), DiscountTier.NONE)


def test_percentage_per_tier() -> None:
    assert DiscountTier.NONE.percentage == Decimal("0")
    assert DiscountTier.TEN.percentage == Decimal("0.10")
    assert DiscountTier.TWENTY.percentage == Decimal("0.20")


def test_full_precision_is_kept_until_quantized() -> None:
    """Verify internal amounts are not rounded; quantize_money rounds half-up to cents."""

    discount, _ = compute_discount(Decimal("0.333"), 5)

    assert discount == Decimal("0.16650")
    assert quantize_money(discount) == Decimal("0.17")
