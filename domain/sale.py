"""
Domain: Sale aggregate root.

A Sale exclusively owns its ordered list of SaleItems. Items have no
lifecycle of their own; they are created, replaced or dropped only through
the sale's operations.

Rules implemented here:
- total_amount is always the sum of item totals after recalculate_total().
- create() emits SaleCreated.
- update() emits SaleModified only when a field or the item list actually
  changed. An identical update emits nothing.
- cancel() is idempotent and emits nothing.
- Cancelled -> Active is reachable only through update().

Build sales with `Sale.create` (new, queues SaleCreated) or `Sale.restore`
(hydration, no events). Calling the dataclass constructor directly skips
both and is reserved for those factories.

Domain events are queued on the instance and drained by the caller with
clear_domain_events(). Nothing is persisted here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Tuple
from uuid import UUID, uuid4

from .events import SaleCreated, SaleEvent, SaleModified
from .sale_item import SaleItem
from .status import SaleStatus
from .time import Clock, require_utc_timestamp, utc_now
from .validation import SALE_VALIDATOR, ValidationResult


@dataclass(eq=False)
class Sale:
    """
    Sale aggregate.

    Build with `Sale.create` for new sales or `Sale.restore` when hydrating
    from storage.
    """

    id: UUID
    sale_number: str
    sale_date: Optional[datetime]
    customer_id: UUID
    customer_name: str  # snapshot at time of sale
    branch_id: UUID
    branch_name: str  # snapshot at time of sale
    status: SaleStatus = SaleStatus.ACTIVE
    items: List[SaleItem] = field(default_factory=list)

    # Derived
    total_amount: Decimal = field(default=Decimal("0"), init=False)

    _domain_events: List[SaleEvent] = field(default_factory=list, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.sale_date is not None:
            require_utc_timestamp("sale_date", self.sale_date)
        self.recalculate_total()

    @classmethod
    def create(
        cls,
        customer_id: UUID,
        customer_name: str,
        branch_id: UUID,
        branch_name: str,
        sale_number: str,
        items: Sequence[SaleItem],
        clock: Clock = utc_now,
    ) -> "Sale":
        """
        Create a new active sale, compute its totals and queue SaleCreated.

        The returned sale is not persisted.
        """

        sale = cls(
            id=uuid4(),
            sale_number=sale_number,
            sale_date=clock(),
            customer_id=customer_id,
            customer_name=customer_name,
            branch_id=branch_id,
            branch_name=branch_name,
            status=SaleStatus.ACTIVE,
            items=list(items),
        )
        sale._adopt_items()
        sale._domain_events.append(
            SaleCreated(sale_id=sale.id, customer_id=sale.customer_id, created_at=sale.sale_date)
        )
        return sale

    @classmethod
    def restore(
        cls,
        *,
        sale_id: UUID,
        sale_number: str,
        sale_date: datetime,
        customer_id: UUID,
        customer_name: str,
        branch_id: UUID,
        branch_name: str,
        status: SaleStatus,
        items: Sequence[SaleItem],
    ) -> "Sale":
        """Rebuild an existing sale without queuing any event."""

        return cls(
            id=sale_id,
            sale_number=sale_number,
            sale_date=sale_date,
            customer_id=customer_id,
            customer_name=customer_name,
            branch_id=branch_id,
            branch_name=branch_name,
            status=status,
            items=list(items),
        )

    @property
    def domain_events(self) -> Tuple[SaleEvent, ...]:
        return tuple(self._domain_events)

    def clear_domain_events(self) -> None:
        self._domain_events.clear()

    def recalculate_total(self) -> None:
        """Apply discount rules to every item and sum the item totals."""

        for item in self.items:
            item.calculate_total()
        self.total_amount = sum((item.total for item in self.items), Decimal("0"))

    def is_active(self) -> bool:
        return self.status == SaleStatus.ACTIVE

    def cancel(self) -> None:
        if self.status == SaleStatus.CANCELLED:
            return
        self.status = SaleStatus.CANCELLED

    def update(
        self,
        customer_name: str,
        branch_name: str,
        status: SaleStatus,
        items: Sequence[SaleItem],
        clock: Clock = utc_now,
    ) -> bool:
        """
        Apply incoming values, replacing the item list only if it changed.

        Queues SaleModified when anything changed.

        Returns:
            True if the sale was modified
        """

        has_changes = False

        if self.customer_name != customer_name:
            self.customer_name = customer_name
            has_changes = True

        if self.status != status:
            self.status = status
            has_changes = True

        if self.branch_name != branch_name:
            self.branch_name = branch_name
            has_changes = True

        if self.has_item_list_changed(self.items, items):
            self.items = list(items)
            self._adopt_items()
            has_changes = True

        if has_changes:
            self._domain_events.append(
                SaleModified(sale_id=self.id, customer_id=self.customer_id, modified_at=clock())
            )
        return has_changes

    @staticmethod
    def has_item_list_changed(current: Sequence[SaleItem], updated: Sequence[SaleItem]) -> bool:
        """
        Compare two item lists by id, ignoring order.

        Lists differ when their sizes differ, when a current item has no
        counterpart in `updated`, or when a matched pair has meaningful changes.
        """

        if len(current) != len(updated):
            return True

        by_id: Dict[UUID, SaleItem] = {item.id: item for item in updated}
        for item in current:
            matching = by_id.get(item.id)
            if matching is None or item.has_meaningful_changes(matching):
                return True
        return False

    def validate(self, now: Optional[datetime] = None) -> ValidationResult:
        """Aggregate rules plus every item's own rules."""

        return SALE_VALIDATOR.validate(self, now=now or utc_now())

    def _adopt_items(self) -> None:
        for item in self.items:
            item.sale_id = self.id
        self.recalculate_total()


__all__ = ["Sale"]
