"""
Domain: Quantity-tiered discount policy.

Tiers are defined strictly by quantity:
  - NONE:   quantity in [  1,  3 ] -> 0%
  - TEN:    quantity in [  4,  9 ] -> 10%
  - TWENTY: quantity in [ 10, 20 ] -> 20%

A quantity above 20 is a business-rule violation and raises
`InvalidQuantityError`. Zero or negative quantities get no discount here; they
are rejected by validation.

Computation keeps full Decimal precision. Rounding to currency scale happens
only at the boundary via `quantize_money`.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Tuple

from .errors import InvalidQuantityError

MAX_ITEM_QUANTITY: int = 20

_CENTS = Decimal("0.01")


class DiscountTier(str, Enum):
    NONE = "None"
    TEN = "Ten"
    TWENTY = "Twenty"

    @property
    def percentage(self) -> Decimal:
        """Discount as a fraction of the gross line amount."""

        return _TIER_PERCENTAGES[self]

    @staticmethod
    def for_quantity(quantity: int) -> "DiscountTier":
        """
        Resolve the tier for a quantity.

        Raises InvalidQuantityError when quantity exceeds MAX_ITEM_QUANTITY.
        """

        if quantity > MAX_ITEM_QUANTITY:
            raise InvalidQuantityError(quantity, MAX_ITEM_QUANTITY)
        if quantity >= 10:
            return DiscountTier.TWENTY
        if quantity >= 4:
            return DiscountTier.TEN
        return DiscountTier.NONE


_TIER_PERCENTAGES = {
    DiscountTier.NONE: Decimal("0"),
    DiscountTier.TEN: Decimal("0.10"),
    DiscountTier.TWENTY: Decimal("0.20"),
}


def compute_discount(unit_price: Decimal, quantity: int) -> Tuple[Decimal, DiscountTier]:
    """
    Compute the monetary discount for a line.

    Returns:
        (discount_amount, tier)

    Example:
        compute_discount(Decimal("100"), 10)
        # (Decimal('200.00'), DiscountTier.TWENTY)
    """

    tier = DiscountTier.for_quantity(quantity)
    if tier is DiscountTier.NONE:
        return Decimal("0"), tier
    return unit_price * quantity * tier.percentage, tier


def line_total(unit_price: Decimal, quantity: int, discount: Decimal) -> Decimal:
    """Gross line amount minus discount."""

    return unit_price * quantity - discount


def quantize_money(amount: Decimal) -> Decimal:
    """Round to two fractional digits (half-up) for storage and responses."""

    return amount.quantize(_CENTS, rounding=ROUND_HALF_UP)


__all__ = [
    "MAX_ITEM_QUANTITY",
    "DiscountTier",
    "compute_discount",
    "line_total",
    "quantize_money",
]
