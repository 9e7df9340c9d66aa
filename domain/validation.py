"""
Domain: Rule-based validation for sales and sale items.

Validation never raises. Every rule is evaluated independently and all
violations are collected into a `ValidationResult`.

Validators are stateless rule sets built once at import time
(`SALE_ITEM_VALIDATOR`, `SALE_VALIDATOR`) and reused for every call. The
current time is passed in at call time so results are deterministic.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Generic, Iterable, List, Sequence, Tuple, TypeVar
from uuid import UUID

from .errors import SaleValidationError

T = TypeVar("T")

# (entity, now) -> True when the rule is satisfied
Check = Callable[[Any, datetime], bool]


@dataclass(frozen=True, slots=True)
class ValidationError:
    """A single rule violation."""

    field: str
    message: str


@dataclass(frozen=True, slots=True)
class ValidationResult:
    errors: Tuple[ValidationError, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def messages_for(self, field_name: str) -> List[str]:
        """All messages reported against `field_name`."""

        return [e.message for e in self.errors if e.field == field_name]

    def raise_if_invalid(self) -> None:
        """Convert a failing result into SaleValidationError."""

        if self.errors:
            raise SaleValidationError(self.errors)


@dataclass(frozen=True, slots=True)
class Rule:
    field: str
    check: Check
    message: str


@dataclass(frozen=True, slots=True)
class Nested:
    """Cascade validation into each element of a child collection."""

    field: str
    children: Callable[[Any], Iterable[Any]]
    validator: "Validator[Any]"


@dataclass(frozen=True)
class Validator(Generic[T]):
    rules: Sequence[Rule]
    nested: Sequence[Nested] = field(default_factory=tuple)

    def validate(self, entity: T, *, now: datetime) -> ValidationResult:
        errors: List[ValidationError] = [
            ValidationError(field=rule.field, message=rule.message)
            for rule in self.rules
            if not rule.check(entity, now)
        ]

        for cascade in self.nested:
            for index, child in enumerate(cascade.children(entity)):
                child_result = cascade.validator.validate(child, now=now)
                errors.extend(
                    ValidationError(field=f"{cascade.field}[{index}].{e.field}", message=e.message)
                    for e in child_result.errors
                )

        return ValidationResult(errors=tuple(errors))


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, UUID):
        return value.int == 0
    if isinstance(value, (list, tuple)):
        return len(value) == 0
    return False


def not_empty(name: str, message: str) -> Rule:
    return Rule(name, lambda entity, _now: not _is_blank(getattr(entity, name)), message)


def max_length(name: str, limit: int, message: str) -> Rule:
    return Rule(name, lambda entity, _now: len(getattr(entity, name) or "") <= limit, message)


def greater_than(name: str, bound: Decimal, message: str) -> Rule:
    return Rule(name, lambda entity, _now: getattr(entity, name) > bound, message)


def at_least(name: str, bound: Decimal, message: str) -> Rule:
    return Rule(name, lambda entity, _now: getattr(entity, name) >= bound, message)


def _sale_date_not_in_future(sale: Any, now: datetime) -> bool:
    # Missing dates are reported by the not_empty rule.
    return sale.sale_date is None or sale.sale_date <= now


def _sale_is_active(sale: Any, _now: datetime) -> bool:
    return sale.is_active()


SALE_ITEM_VALIDATOR: Validator[Any] = Validator(
    rules=(
        not_empty("product_id", "Product ID is required."),
        not_empty("product_name", "Product name is required."),
        max_length("product_name", 100, "Product name must be 100 characters or fewer."),
        greater_than("quantity", Decimal(0), "Quantity must be greater than 0."),
        greater_than("unit_price", Decimal(0), "Unit price must be greater than 0."),
        at_least("discount", Decimal(0), "Discount must be zero or positive."),
        at_least("total", Decimal(0), "Total must be zero or positive."),
    )
)

SALE_VALIDATOR: Validator[Any] = Validator(
    rules=(
        not_empty("sale_number", "Sale number is required."),
        max_length("sale_number", 30, "Sale number must be 30 characters or fewer."),
        not_empty("customer_id", "Customer ID is required."),
        not_empty("customer_name", "Customer name is required."),
        max_length("customer_name", 100, "Customer name must be 100 characters or fewer."),
        Rule("status", _sale_is_active, "Sale must be active."),
        not_empty("branch_id", "Branch ID is required."),
        not_empty("branch_name", "Branch name is required."),
        max_length("branch_name", 100, "Branch name must be 100 characters or fewer."),
        not_empty("sale_date", "Sale date is required."),
        Rule("sale_date", _sale_date_not_in_future, "Sale date cannot be in the future."),
        at_least("total_amount", Decimal(0), "Total amount must be zero or positive."),
        not_empty("items", "At least one item is required in the sale."),
    ),
    nested=(Nested("items", lambda sale: sale.items, SALE_ITEM_VALIDATOR),),
)


__all__ = [
    "ValidationError",
    "ValidationResult",
    "Rule",
    "Nested",
    "Validator",
    "SALE_ITEM_VALIDATOR",
    "SALE_VALIDATOR",
]
