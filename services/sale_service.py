"""
Sale service: command handlers over the Sale aggregate.

Each handler:
- builds or loads the aggregate,
- invokes the aggregate operation,
- rejects the result if validation fails (SaleValidationError),
- persists through the repository,
- dispatches queued domain events.

Lookups that find nothing raise SaleNotFoundError. Quantity above 20 raises
InvalidQuantityError while the line items are being built.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Set
from uuid import UUID

from domain.errors import SaleNotFoundError, SaleValidationError
from domain.sale import Sale
from domain.sale_item import SaleItem
from domain.status import SaleStatus
from domain.time import Clock, utc_now
from domain.validation import ValidationError
from repositories.sale_repository import SaleFilters, SalePage, SaleRepository
from services.event_dispatcher import DomainEventDispatcher

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SaleItemInput:
    """
    A requested sale line.

    `item_id` identifies an existing line on update so the aggregate can tell
    an unchanged line from a replaced one.
    """
    product_id: UUID
    product_name: str
    unit_price: Decimal
    quantity: int
    item_id: Optional[UUID] = None


@dataclass(frozen=True, slots=True)
class CreateSaleCommand:
    customer_id: UUID
    customer_name: str
    branch_id: UUID
    branch_name: str
    sale_number: str
    items: List[SaleItemInput] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class UpdateSaleCommand:
    customer_name: str
    branch_name: str
    status: SaleStatus = SaleStatus.ACTIVE
    items: List[SaleItemInput] = field(default_factory=list)


def _reject_if_invalid(sale: Sale, clock: Clock, action: str) -> None:
    result = sale.validate(now=clock())
    if not result.is_valid:
        logger.warning(
            "Rejected %s for sale %s: %s",
            action,
            sale.id,
            "; ".join(f"{e.field}: {e.message}" for e in result.errors),
        )
    result.raise_if_invalid()


def _repeated_item_ids(inputs: Sequence[SaleItemInput]) -> List[UUID]:
    seen: Set[UUID] = set()
    repeated: List[UUID] = []
    for line in inputs:
        if line.item_id is None:
            continue
        if line.item_id in seen and line.item_id not in repeated:
            repeated.append(line.item_id)
        seen.add(line.item_id)
    return repeated


def _build_items(inputs: Sequence[SaleItemInput], existing: Sequence[SaleItem] = ()) -> List[SaleItem]:
    """Turn inputs into SaleItems, keeping the id of lines that already exist."""

    repeated = _repeated_item_ids(inputs)
    if repeated:
        raise SaleValidationError([
            ValidationError(field="items", message=f"Item ID {item_id} appears more than once.")
            for item_id in repeated
        ])

    known: Dict[UUID, SaleItem] = {item.id: item for item in existing}
    items: List[SaleItem] = []
    for line in inputs:
        if line.item_id is not None and line.item_id in known:
            items.append(SaleItem.restore(
                item_id=line.item_id,
                sale_id=known[line.item_id].sale_id,
                product_id=line.product_id,
                product_name=line.product_name,
                unit_price=line.unit_price,
                quantity=line.quantity,
                status=known[line.item_id].status,
            ))
        else:
            items.append(SaleItem.create(
                product_id=line.product_id,
                product_name=line.product_name,
                unit_price=line.unit_price,
                quantity=line.quantity,
            ))
    return items


def create_sale(
    command: CreateSaleCommand,
    repository: SaleRepository,
    dispatcher: DomainEventDispatcher,
    clock: Clock = utc_now,
) -> Sale:
    """
    Create, validate, persist and announce a new sale.

    Raises:
        InvalidQuantityError: if any line asks for more than 20 units
        SaleValidationError: if the new sale breaks a business rule
    """

    sale = Sale.create(
        customer_id=command.customer_id,
        customer_name=command.customer_name,
        branch_id=command.branch_id,
        branch_name=command.branch_name,
        sale_number=command.sale_number,
        items=_build_items(command.items),
        clock=clock,
    )
    _reject_if_invalid(sale, clock, "create")

    repository.create(sale)
    dispatcher.dispatch(sale)
    logger.info("Created sale %s (%s) total=%s", sale.id, sale.sale_number, sale.total_amount)
    return sale


def get_sale(sale_id: UUID, repository: SaleRepository) -> Sale:
    sale = repository.get_by_id(sale_id)
    if sale is None:
        raise SaleNotFoundError(sale_id)
    return sale


def list_sales(
    repository: SaleRepository,
    page: int = 1,
    size: int = 10,
    order: Optional[str] = None,
    filters: Optional[SaleFilters] = None,
) -> SalePage:
    return repository.get_paged_filtered(page=page, size=size, order=order, filters=filters)


def update_sale(
    sale_id: UUID,
    command: UpdateSaleCommand,
    repository: SaleRepository,
    dispatcher: DomainEventDispatcher,
    clock: Clock = utc_now,
) -> Sale:
    """
    Apply an update to an existing sale.

    An update that changes nothing returns the stored sale without
    validating or writing it.

    Raises:
        SaleNotFoundError: if the sale does not exist
        InvalidQuantityError: if any line asks for more than 20 units
        SaleValidationError: if the updated sale breaks a business rule
    """

    sale = get_sale(sale_id, repository)

    changed = sale.update(
        customer_name=command.customer_name,
        branch_name=command.branch_name,
        status=command.status,
        items=_build_items(command.items, existing=sale.items),
        clock=clock,
    )
    if not changed:
        logger.info("Update of sale %s changed nothing", sale.id)
        return sale

    _reject_if_invalid(sale, clock, "update")

    repository.update(sale)
    dispatcher.dispatch(sale)
    return sale


def cancel_sale(sale_id: UUID, repository: SaleRepository) -> Sale:
    """Cancel a sale. Cancelling an already cancelled sale is a no-op."""

    sale = get_sale(sale_id, repository)
    if not sale.is_active():
        return sale

    sale.cancel()
    repository.update(sale)
    logger.info("Cancelled sale %s", sale.id)
    return sale


def delete_sale(sale_id: UUID, repository: SaleRepository) -> None:
    if not repository.delete(sale_id):
        raise SaleNotFoundError(sale_id)
    logger.info("Deleted sale %s", sale_id)


__all__ = [
    "SaleItemInput",
    "CreateSaleCommand",
    "UpdateSaleCommand",
    "create_sale",
    "get_sale",
    "list_sales",
    "update_sale",
    "cancel_sale",
    "delete_sale",
]
