"""
Tests for `domain/sale.py`.

Covers contract rules:
- create() yields an active sale, re-parents items, computes totals and
  queues exactly one SaleCreated.
- total_amount is always the sum of item totals.
- cancel() is idempotent and queues nothing.
- update() queues SaleModified only on a meaningful change; identical updates
  (in any item order) queue nothing.
- Cancelled -> Active is possible through update().
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Callable, List
from uuid import UUID

import pytest

from domain.events import SaleCreated, SaleModified
from domain.sale import Sale
from domain.sale_item import SaleItem
from domain.status import SaleStatus
from domain.time import fixed_clock

MakeItem = Callable[..., SaleItem]
MakeSale = Callable[..., Sale]

LATER = datetime(2025, 1, 2, 9, 30, 0, tzinfo=timezone.utc)


def _same_lines(items: List[SaleItem]) -> List[SaleItem]:
    """Fresh instances carrying the same ids and inputs."""

    return [
        SaleItem.restore(
            item_id=item.id,
            sale_id=item.sale_id,
            product_id=item.product_id,
            product_name=item.product_name,
            unit_price=item.unit_price,
            quantity=item.quantity,
        )
        for item in items
    ]


def test_create_builds_active_sale_with_totals(make_sale: MakeSale, make_item: MakeItem) -> None:
    """Verify the reference scenario: one line of 100 x 10 -> total 800."""

    sale = make_sale(items=[make_item(unit_price="100", quantity=10)])

    assert sale.is_active() is True
    assert sale.total_amount == Decimal("800")
    assert sale.sale_date == datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def test_create_parents_items_to_the_sale(make_sale: MakeSale, make_item: MakeItem) -> None:
    items = [make_item(), make_item(quantity=2)]

    sale = make_sale(items=items)

    assert all(item.sale_id == sale.id for item in sale.items)
    assert [item.id for item in sale.items] == [item.id for item in items]


def test_create_queues_sale_created(make_sale: MakeSale) -> None:
    sale = make_sale()

    assert sale.domain_events == (
        SaleCreated(sale_id=sale.id, customer_id=sale.customer_id, created_at=sale.sale_date),
    )


def test_domain_events_are_drained_by_clear(make_sale: MakeSale) -> None:
    sale = make_sale()

    sale.clear_domain_events()

    assert sale.domain_events == ()


def test_total_amount_is_sum_of_item_totals(make_sale: MakeSale, make_item: MakeItem) -> None:
    items = [
        make_item(unit_price="100", quantity=10),  # 800
        make_item(unit_price="15.50", quantity=4),  # 62.00 - 6.20 = 55.80
        make_item(unit_price="3", quantity=1),  # 3
    ]

    sale = make_sale(items=items)

    assert sale.total_amount == sum(item.total for item in sale.items)
    assert sale.total_amount == Decimal("858.80")


def test_recalculate_total_reapplies_discounts(make_sale: MakeSale) -> None:
    sale = make_sale()
    sale.items[0].quantity = 3

    sale.recalculate_total()

    assert sale.items[0].discount == Decimal("0")
    assert sale.total_amount == Decimal("300")


def test_restore_queues_no_events(make_sale: MakeSale) -> None:
    created = make_sale()

    restored = Sale.restore(
        sale_id=created.id,
        sale_number=created.sale_number,
        sale_date=created.sale_date,  # type: ignore[arg-type]
        customer_id=created.customer_id,
        customer_name=created.customer_name,
        branch_id=created.branch_id,
        branch_name=created.branch_name,
        status=created.status,
        items=_same_lines(created.items),
    )

    assert restored.domain_events == ()
    assert restored.total_amount == created.total_amount


def test_sale_date_must_be_utc() -> None:
    with pytest.raises(ValueError):
        Sale.restore(
            sale_id=UUID(int=1),
            sale_number="S-1",
            sale_date=datetime(2025, 1, 1, 0, 0, 0, tzinfo=timezone(timedelta(hours=2))),
            customer_id=UUID(int=2),
            customer_name="Jane",
            branch_id=UUID(int=3),
            branch_name="Downtown",
            status=SaleStatus.ACTIVE,
            items=[],
        )


def test_cancel_is_idempotent_and_silent(make_sale: MakeSale) -> None:
    sale = make_sale()
    sale.clear_domain_events()

    sale.cancel()
    sale.cancel()

    assert sale.status is SaleStatus.CANCELLED
    assert sale.is_active() is False
    assert sale.domain_events == ()


def test_identical_update_emits_nothing(make_sale: MakeSale, make_item: MakeItem) -> None:
    """Verify no false-positive modification event, regardless of item order."""

    sale = make_sale(items=[make_item(), make_item(unit_price="5", quantity=2, product_id=UUID(int=7))])
    sale.clear_domain_events()
    total_before = sale.total_amount

    changed = sale.update(
        customer_name=sale.customer_name,
        branch_name=sale.branch_name,
        status=sale.status,
        items=list(reversed(_same_lines(sale.items))),
        clock=fixed_clock(LATER),
    )

    assert changed is False
    assert sale.domain_events == ()
    assert sale.total_amount == total_before


def test_unit_price_change_replaces_items_and_emits_once(make_sale: MakeSale) -> None:
    sale = make_sale()
    sale.clear_domain_events()
    incoming = _same_lines(sale.items)
    incoming[0].unit_price = Decimal("50")
    incoming[0].calculate_total()

    changed = sale.update(
        customer_name=sale.customer_name,
        branch_name=sale.branch_name,
        status=sale.status,
        items=incoming,
        clock=fixed_clock(LATER),
    )

    assert changed is True
    assert sale.items[0] is incoming[0]
    assert sale.total_amount == Decimal("400")
    assert sale.domain_events == (
        SaleModified(sale_id=sale.id, customer_id=sale.customer_id, modified_at=LATER),
    )


def test_product_name_only_change_keeps_items(make_sale: MakeSale) -> None:
    """Verify a non-meaningful item change does not replace the list."""

    sale = make_sale()
    sale.clear_domain_events()
    original_items = list(sale.items)
    incoming = _same_lines(sale.items)
    incoming[0].product_name = "Renamed"

    sale.update(sale.customer_name, sale.branch_name, sale.status, incoming)

    assert sale.items == original_items
    assert sale.items[0].product_name == "Product A"
    assert sale.domain_events == ()


def test_scalar_change_emits_modified(make_sale: MakeSale) -> None:
    sale = make_sale()
    sale.clear_domain_events()

    sale.update("John Roe", sale.branch_name, sale.status, _same_lines(sale.items), clock=fixed_clock(LATER))

    assert sale.customer_name == "John Roe"
    assert len(sale.domain_events) == 1
    assert isinstance(sale.domain_events[0], SaleModified)


def test_item_count_change_is_detected(make_sale: MakeSale, make_item: MakeItem) -> None:
    sale = make_sale()
    sale.clear_domain_events()
    incoming = _same_lines(sale.items) + [make_item(unit_price="1", quantity=1)]

    sale.update(sale.customer_name, sale.branch_name, sale.status, incoming)

    assert len(sale.items) == 2
    assert sale.items[1].sale_id == sale.id
    assert sale.total_amount == Decimal("801")
    assert len(sale.domain_events) == 1


def test_new_item_ids_count_as_a_change(make_sale: MakeSale, make_item: MakeItem) -> None:
    """Verify lines are matched by id: same inputs under a new id is a change."""

    sale = make_sale()
    sale.clear_domain_events()

    changed = sale.update(sale.customer_name, sale.branch_name, sale.status, [make_item()])

    assert changed is True
    assert len(sale.domain_events) == 1


def test_cancelled_sale_can_be_reactivated_through_update(make_sale: MakeSale) -> None:
    sale = make_sale()
    sale.cancel()
    sale.clear_domain_events()

    sale.update(sale.customer_name, sale.branch_name, SaleStatus.ACTIVE, _same_lines(sale.items))

    assert sale.is_active() is True
    assert len(sale.domain_events) == 1


def test_has_item_list_changed_ignores_order(make_item: MakeItem) -> None:
    a, b = make_item(), make_item(quantity=2)

    assert Sale.has_item_list_changed([a, b], [b, a]) is False
    assert Sale.has_item_list_changed([a, b], [a]) is True
    assert Sale.has_item_list_changed([a], [b]) is True
