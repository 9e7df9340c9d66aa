"""
Domain errors for the sales module.

Validation failures are normally returned as data (see `domain.validation`).
The exceptions here are for the cases that abort an operation.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence
from uuid import UUID

if TYPE_CHECKING:
    from .validation import ValidationError


class InvalidQuantityError(ValueError):
    """Raised when a line item asks for more units than a single sale allows."""

    def __init__(self, quantity: int, limit: int) -> None:
        super().__init__(f"Cannot sell more than {limit} units of a single product (got {quantity})")
        self.quantity = quantity
        self.limit = limit


class SaleNotFoundError(LookupError):
    """Raised when a sale does not exist in storage."""

    def __init__(self, sale_id: UUID) -> None:
        super().__init__(f"Sale with ID {sale_id} not found")
        self.sale_id = sale_id


class SaleValidationError(ValueError):
    """Raised by callers that reject a sale whose validation result is failing."""

    def __init__(self, errors: Sequence["ValidationError"]) -> None:
        details = "; ".join(f"{e.field}: {e.message}" for e in errors)
        super().__init__(f"Sale validation failed: {details}")
        self.errors = list(errors)


__all__ = [
    "InvalidQuantityError",
    "SaleNotFoundError",
    "SaleValidationError",
]
