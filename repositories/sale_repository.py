"""
Sale repository (persistence).

This module provides *only* persistence operations for the Sale aggregate. It
does not enforce business rules; it stores fully-computed aggregates and
hydrates them back with `Sale.restore` / `SaleItem.restore`.

Two implementations share the `SaleRepository` protocol:
- SupabaseSaleRepository: `sales` + `sale_items` tables via supabase-py
- InMemorySaleRepository: dict-backed, for tests and local runs

Listing supports:
- Filters on customer_name / branch_name (case-insensitive, `*` wildcard)
  and on status (case-insensitive).
- Ordering strings such as "sale_date desc, customer_name" (camelCase field
  names are accepted too). Unparseable strings fall back to "sale_date asc".
- 1-based pagination.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, Tuple
from uuid import UUID

from domain.discount import quantize_money
from domain.sale import Sale
from domain.sale_item import SaleItem
from domain.status import SaleStatus
from domain.time import require_utc_timestamp
from repositories.client import SALE_ITEMS_TABLE, SALES_TABLE, get_supabase_client

logger = logging.getLogger(__name__)

# Sortable fields, keyed by their normalized spelling (lowercase, no underscores)
_ORDER_FIELDS: Dict[str, str] = {
    "saledate": "sale_date",
    "salenumber": "sale_number",
    "customername": "customer_name",
    "branchname": "branch_name",
    "totalamount": "total_amount",
    "status": "status",
}

# Column names in the `sales` table, where they differ from the attribute
_COLUMNS: Dict[str, str] = {
    "sale_date": "sale_date_utc",
}

DEFAULT_ORDER: List[Tuple[str, bool]] = [("sale_date", False)]


@dataclass(frozen=True, slots=True)
class SaleFilters:
    """Filter criteria for sale listings."""
    customer_name: Optional[str] = None  # supports `*`
    branch_name: Optional[str] = None  # supports `*`
    status: Optional[str] = None  # "Active" / "Cancelled", any case


@dataclass(frozen=True, slots=True)
class SalePage:
    items: List[Sale]
    total_count: int
    current_page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / self.page_size) if self.page_size else 0


class SaleRepository(Protocol):
    """Persistence port consumed by the sale service."""

    def create(self, sale: Sale) -> Sale: ...

    def get_by_id(self, sale_id: UUID) -> Optional[Sale]: ...

    def update(self, sale: Sale) -> Sale: ...

    def delete(self, sale_id: UUID) -> bool: ...

    def get_paged_filtered(
        self,
        page: int,
        size: int,
        order: Optional[str] = None,
        filters: Optional[SaleFilters] = None,
    ) -> SalePage: ...


def parse_order(order: Optional[str]) -> List[Tuple[str, bool]]:
    """
    Parse an ordering string into (attribute, descending) pairs.

    Example:
        parse_order("saleDate desc, customer_name")
        # [("sale_date", True), ("customer_name", False)]
    """

    if order is None or not order.strip():
        return list(DEFAULT_ORDER)

    clauses: List[Tuple[str, bool]] = []
    for raw in order.split(","):
        parts = raw.split()
        if not parts or len(parts) > 2:
            return _fallback_order(order)

        attribute = _ORDER_FIELDS.get(parts[0].replace("_", "").lower())
        direction = parts[1].lower() if len(parts) == 2 else "asc"
        if attribute is None or direction not in ("asc", "desc"):
            return _fallback_order(order)

        clauses.append((attribute, direction == "desc"))
    return clauses


def _fallback_order(order: str) -> List[Tuple[str, bool]]:
    logger.warning("Ignoring unparseable sale ordering %r; using sale_date asc", order)
    return list(DEFAULT_ORDER)


def _validate_paging(page: int, size: int) -> None:
    if page < 1:
        raise ValueError("page must be >= 1")
    if size < 1:
        raise ValueError("size must be >= 1")


def _wildcard_pattern(pattern: str) -> "re.Pattern[str]":
    """Compile a `*`-wildcard pattern to a case-insensitive full-match regex."""

    return re.compile(".*".join(re.escape(part) for part in pattern.split("*")), re.IGNORECASE)


def _ilike_pattern(pattern: str) -> str:
    """
    Translate a `*`-wildcard pattern to an ILIKE pattern.

    `%`, `_` and `\\` in the input match literally, as they do in memory.
    """

    escaped = pattern.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return escaped.replace("*", "%")


def _to_iso_utc(dt: datetime, *, name: str) -> str:
    """Serialize a UTC datetime to ISO-8601 (timezone-aware, offset 0)."""

    require_utc_timestamp(name, dt)
    return dt.astimezone(timezone.utc).isoformat()


def _parse_utc_datetime(value: Any) -> datetime:
    """
    Parse a Supabase timestamp into a timezone-aware UTC datetime.

    Supabase commonly returns ISO-8601 strings, sometimes with a trailing 'Z'.
    """

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    else:
        raise TypeError(f"Unsupported timestamp type: {type(value)!r}")

    if dt.tzinfo is None or dt.utcoffset() is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _sale_to_row(sale: Sale) -> dict[str, Any]:
    if sale.sale_date is None:
        raise ValueError("sale_date is required to persist a sale")

    return {
        "id": str(sale.id),
        "sale_number": sale.sale_number,
        "sale_date_utc": _to_iso_utc(sale.sale_date, name="sale_date"),
        "customer_id": str(sale.customer_id),
        "customer_name": sale.customer_name,
        "branch_id": str(sale.branch_id),
        "branch_name": sale.branch_name,
        "total_amount": str(quantize_money(sale.total_amount)),
        "status": sale.status.value,
    }


def _item_to_row(item: SaleItem, sale_id: UUID, position: int) -> dict[str, Any]:
    return {
        "id": str(item.id),
        "sale_id": str(sale_id),
        "position": position,
        "product_id": str(item.product_id),
        "product_name": item.product_name,
        "unit_price": str(item.unit_price),
        "quantity": item.quantity,
        "discount_tier": item.discount_tier.value,
        "discount": str(quantize_money(item.discount)),
        "total": str(quantize_money(item.total)),
        "status": item.status.value,
    }


def _row_to_item(row: Mapping[str, Any]) -> SaleItem:
    """Convert a `sale_items` row into a SaleItem (derived fields are recomputed)."""

    return SaleItem.restore(
        item_id=UUID(str(row["id"])),
        sale_id=UUID(str(row["sale_id"])),
        product_id=UUID(str(row["product_id"])),
        product_name=str(row["product_name"]),
        unit_price=Decimal(str(row["unit_price"])),
        quantity=int(row["quantity"]),
        status=SaleStatus(str(row.get("status", SaleStatus.ACTIVE.value))),
    )


def _row_to_sale(row: Mapping[str, Any]) -> Sale:
    """Convert a `sales` row (with embedded `sale_items`) into a Sale."""

    item_rows = sorted(row.get("sale_items") or [], key=lambda r: r.get("position", 0))

    return Sale.restore(
        sale_id=UUID(str(row["id"])),
        sale_number=str(row["sale_number"]),
        sale_date=_parse_utc_datetime(row["sale_date_utc"]),
        customer_id=UUID(str(row["customer_id"])),
        customer_name=str(row["customer_name"]),
        branch_id=UUID(str(row["branch_id"])),
        branch_name=str(row["branch_name"]),
        status=SaleStatus(str(row["status"])),
        items=[_row_to_item(item_row) for item_row in item_rows],
    )


def _raise_on_error(response: Any, action: str) -> None:
    error = getattr(response, "error", None)
    if error:
        raise RuntimeError(f"Failed to {action}: {error}")


class SupabaseSaleRepository:
    """
    Sale persistence backed by Supabase.

    Header rows live in SALES_TABLE; lines live in SALE_ITEMS_TABLE keyed by
    sale_id with a `position` column preserving item order.
    """

    def __init__(
        self,
        client: Any = None,
        sales_table: Optional[str] = None,
        items_table: Optional[str] = None,
    ) -> None:
        self._client = client
        self._sales_table = sales_table or SALES_TABLE
        self._items_table = items_table or SALE_ITEMS_TABLE

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = get_supabase_client()
        return self._client

    def create(self, sale: Sale) -> Sale:
        response = self.client.table(self._sales_table).insert(_sale_to_row(sale)).execute()
        _raise_on_error(response, "create sale")
        self._insert_items(sale)
        return sale

    def get_by_id(self, sale_id: UUID) -> Optional[Sale]:
        response = (
            self.client.table(self._sales_table)
            .select(f"*, {self._items_table}(*)")
            .eq("id", str(sale_id))
            .limit(1)
            .execute()
        )
        _raise_on_error(response, "get sale")

        rows = getattr(response, "data", None) or []
        if not rows:
            return None
        return self._row_to_sale(rows[0])

    def update(self, sale: Sale) -> Sale:
        """
        Overwrite the header row and replace all item rows.

        Not atomic: a failure between the delete and insert of item rows
        leaves the sale without lines until the update is retried.
        """

        row = _sale_to_row(sale)
        del row["id"]
        response = (
            self.client.table(self._sales_table)
            .update(row)
            .eq("id", str(sale.id))
            .execute()
        )
        _raise_on_error(response, "update sale")

        response = self.client.table(self._items_table).delete().eq("sale_id", str(sale.id)).execute()
        _raise_on_error(response, "replace sale items")
        self._insert_items(sale)
        return sale

    def delete(self, sale_id: UUID) -> bool:
        response = self.client.table(self._items_table).delete().eq("sale_id", str(sale_id)).execute()
        _raise_on_error(response, "delete sale items")

        response = self.client.table(self._sales_table).delete().eq("id", str(sale_id)).execute()
        _raise_on_error(response, "delete sale")
        return bool(getattr(response, "data", None))

    def get_paged_filtered(
        self,
        page: int,
        size: int,
        order: Optional[str] = None,
        filters: Optional[SaleFilters] = None,
    ) -> SalePage:
        _validate_paging(page, size)
        filters = filters or SaleFilters()

        query = self.client.table(self._sales_table).select(f"*, {self._items_table}(*)", count="exact")

        if filters.customer_name and filters.customer_name.strip():
            query = query.ilike("customer_name", _ilike_pattern(filters.customer_name))

        if filters.branch_name and filters.branch_name.strip():
            query = query.ilike("branch_name", _ilike_pattern(filters.branch_name))

        if filters.status and filters.status.strip():
            status = SaleStatus.parse(filters.status)
            if status is None:
                return SalePage(items=[], total_count=0, current_page=page, page_size=size)
            query = query.eq("status", status.value)

        for attribute, descending in parse_order(order):
            query = query.order(_COLUMNS.get(attribute, attribute), desc=descending)

        start = (page - 1) * size
        response = query.range(start, start + size - 1).execute()
        _raise_on_error(response, "list sales")

        rows = getattr(response, "data", None) or []
        total_count = getattr(response, "count", None)
        return SalePage(
            items=[self._row_to_sale(row) for row in rows],
            total_count=int(total_count) if total_count is not None else len(rows),
            current_page=page,
            page_size=size,
        )

    def _insert_items(self, sale: Sale) -> None:
        if not sale.items:
            return
        payload = [_item_to_row(item, sale.id, position) for position, item in enumerate(sale.items)]
        response = self.client.table(self._items_table).insert(payload).execute()
        _raise_on_error(response, "insert sale items")

    def _row_to_sale(self, row: Mapping[str, Any]) -> Sale:
        if self._items_table != "sale_items" and self._items_table in row:
            row = {**row, "sale_items": row[self._items_table]}
        return _row_to_sale(row)


def _snapshot(sale: Sale) -> Sale:
    """Detached copy of a sale with no queued events."""

    return Sale.restore(
        sale_id=sale.id,
        sale_number=sale.sale_number,
        sale_date=sale.sale_date,  # type: ignore[arg-type]
        customer_id=sale.customer_id,
        customer_name=sale.customer_name,
        branch_id=sale.branch_id,
        branch_name=sale.branch_name,
        status=sale.status,
        items=[
            SaleItem.restore(
                item_id=item.id,
                sale_id=item.sale_id,
                product_id=item.product_id,
                product_name=item.product_name,
                unit_price=item.unit_price,
                quantity=item.quantity,
                status=item.status,
            )
            for item in sale.items
        ],
    )


def _sort_key(value: Any) -> Any:
    if isinstance(value, str):
        return value.lower()
    if isinstance(value, SaleStatus):
        return value.value
    return value


class InMemorySaleRepository:
    """
    Dict-backed sale persistence with the same semantics as the Supabase one.

    Stored sales are detached snapshots, so later mutation of the caller's
    instance does not leak into storage until update() is called.
    """

    def __init__(self) -> None:
        self._sales: Dict[UUID, Sale] = {}

    def create(self, sale: Sale) -> Sale:
        if sale.id in self._sales:
            raise RuntimeError(f"Failed to create sale: duplicate id {sale.id}")
        if any(s.sale_number == sale.sale_number for s in self._sales.values()):
            raise RuntimeError(f"Failed to create sale: duplicate sale_number {sale.sale_number!r}")
        self._sales[sale.id] = _snapshot(sale)
        return sale

    def get_by_id(self, sale_id: UUID) -> Optional[Sale]:
        stored = self._sales.get(sale_id)
        return _snapshot(stored) if stored is not None else None

    def update(self, sale: Sale) -> Sale:
        if sale.id not in self._sales:
            raise RuntimeError(f"Failed to update sale: {sale.id} does not exist")
        self._sales[sale.id] = _snapshot(sale)
        return sale

    def delete(self, sale_id: UUID) -> bool:
        return self._sales.pop(sale_id, None) is not None

    def get_paged_filtered(
        self,
        page: int,
        size: int,
        order: Optional[str] = None,
        filters: Optional[SaleFilters] = None,
    ) -> SalePage:
        _validate_paging(page, size)
        filters = filters or SaleFilters()

        matches: Sequence[Sale] = list(self._sales.values())

        if filters.customer_name and filters.customer_name.strip():
            pattern = _wildcard_pattern(filters.customer_name)
            matches = [s for s in matches if pattern.fullmatch(s.customer_name)]

        if filters.branch_name and filters.branch_name.strip():
            pattern = _wildcard_pattern(filters.branch_name)
            matches = [s for s in matches if pattern.fullmatch(s.branch_name)]

        if filters.status and filters.status.strip():
            status = SaleStatus.parse(filters.status)
            matches = [s for s in matches if s.status == status]

        # Stable sorts applied last clause first give multi-key ordering
        ordered = list(matches)
        for attribute, descending in reversed(parse_order(order)):
            ordered.sort(key=lambda s: _sort_key(getattr(s, attribute)), reverse=descending)

        start = (page - 1) * size
        return SalePage(
            items=[_snapshot(s) for s in ordered[start:start + size]],
            total_count=len(ordered),
            current_page=page,
            page_size=size,
        )


__all__ = [
    "SaleFilters",
    "SalePage",
    "SaleRepository",
    "SupabaseSaleRepository",
    "InMemorySaleRepository",
    "parse_order",
]
