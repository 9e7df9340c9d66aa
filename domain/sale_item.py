"""
Domain: Sale line item.

A SaleItem is owned by exactly one Sale. `sale_id` is a lookup key back to the
owning sale, never a second ownership path.

Invariants:
- discount_tier, discount and total are always derived from unit_price and
  quantity by the discount policy; they are recomputed on construction and
  on every calculate_total() call.
- quantity above MAX_ITEM_QUANTITY fails construction with InvalidQuantityError.

Build lines with `SaleItem.create` (fresh id) or `SaleItem.restore` (existing
id); the dataclass constructor is reserved for those factories.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

from .discount import MAX_ITEM_QUANTITY, DiscountTier, compute_discount, line_total
from .status import SaleStatus
from .time import utc_now
from .validation import SALE_ITEM_VALIDATOR, ValidationResult


@dataclass(slots=True)
class SaleItem:
    """
    Product line within a sale.

    Build with `SaleItem.create` for new lines or `SaleItem.restore` when
    hydrating from storage.
    """

    id: UUID
    sale_id: Optional[UUID]
    product_id: UUID
    product_name: str  # snapshot at time of sale
    unit_price: Decimal
    quantity: int
    status: SaleStatus = SaleStatus.ACTIVE

    # Derived
    discount_tier: DiscountTier = field(default=DiscountTier.NONE, init=False)
    discount: Decimal = field(default=Decimal("0"), init=False)
    total: Decimal = field(default=Decimal("0"), init=False)

    def __post_init__(self) -> None:
        self.calculate_total()

    @classmethod
    def create(
        cls,
        product_id: UUID,
        product_name: str,
        unit_price: Decimal,
        quantity: int,
        sale_id: Optional[UUID] = None,
    ) -> "SaleItem":
        """
        Create a new active line with a fresh id and computed totals.

        Raises:
            InvalidQuantityError: if quantity exceeds 20
        """

        return cls(
            id=uuid4(),
            sale_id=sale_id,
            product_id=product_id,
            product_name=product_name,
            unit_price=Decimal(str(unit_price)),
            quantity=quantity,
            status=SaleStatus.ACTIVE,
        )

    @classmethod
    def restore(
        cls,
        *,
        item_id: UUID,
        sale_id: Optional[UUID],
        product_id: UUID,
        product_name: str,
        unit_price: Decimal,
        quantity: int,
        status: SaleStatus = SaleStatus.ACTIVE,
    ) -> "SaleItem":
        """Rebuild an existing line (keeps its id)."""

        return cls(
            id=item_id,
            sale_id=sale_id,
            product_id=product_id,
            product_name=product_name,
            unit_price=Decimal(str(unit_price)),
            quantity=quantity,
            status=status,
        )

    def calculate_total(self) -> None:
        """Recompute discount and total from unit_price and quantity."""

        discount, tier = compute_discount(self.unit_price, self.quantity)
        self.discount_tier = tier
        self.discount = discount
        self.total = line_total(self.unit_price, self.quantity, discount)

    def has_meaningful_changes(self, other: "SaleItem") -> bool:
        """
        True if the product, unit price or quantity differ.

        Derived fields are not compared; they are functions of the compared ones.
        """

        return (
            self.product_id != other.product_id
            or self.unit_price != other.unit_price
            or self.quantity != other.quantity
        )

    def is_valid_quantity(self) -> bool:
        return 0 < self.quantity <= MAX_ITEM_QUANTITY

    def validate(self, now: Optional[datetime] = None) -> ValidationResult:
        return SALE_ITEM_VALIDATOR.validate(self, now=now or utc_now())


__all__ = ["SaleItem"]
