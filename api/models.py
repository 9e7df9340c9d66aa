"""
API Request and Response Models.

Pydantic models for validating API requests and serializing responses.
Business rules are not duplicated here; they are enforced by the Sale
aggregate and reported as 400 responses.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from domain.discount import quantize_money
from domain.sale import Sale
from domain.sale_item import SaleItem
from domain.status import SaleStatus
from repositories.sale_repository import SalePage


# ============================================================================
# Request Models
# ============================================================================

class SaleItemRequest(BaseModel):
    """A sale line in a create or update request."""
    id: Optional[UUID] = Field(
        None,
        description="Existing line ID (update only); omit for new lines"
    )
    product_id: UUID
    product_name: str
    unit_price: Decimal
    quantity: int


class CreateSaleRequest(BaseModel):
    """Request to create a sale."""
    sale_number: str
    customer_id: UUID
    customer_name: str
    branch_id: UUID
    branch_name: str
    items: List[SaleItemRequest] = Field(default_factory=list)

    class Config:
        json_schema_extra = {
            "example": {
                "sale_number": "S-2025-0001",
                "customer_id": "123e4567-e89b-12d3-a456-426614174002",
                "customer_name": "Jane Doe",
                "branch_id": "123e4567-e89b-12d3-a456-426614174003",
                "branch_name": "Downtown",
                "items": [
                    {
                        "product_id": "123e4567-e89b-12d3-a456-426614174004",
                        "product_name": "Pale Ale 350ml",
                        "unit_price": "100.00",
                        "quantity": 10
                    }
                ]
            }
        }


class UpdateSaleRequest(BaseModel):
    """Request to update a sale."""
    customer_name: str
    branch_name: str
    status: SaleStatus = SaleStatus.ACTIVE
    items: List[SaleItemRequest] = Field(default_factory=list)


# ============================================================================
# Response Models
# ============================================================================

class SaleItemResponse(BaseModel):
    id: UUID
    product_id: UUID
    product_name: str
    unit_price: Decimal
    quantity: int
    discount_tier: str
    discount: Decimal
    total: Decimal
    status: str

    @classmethod
    def from_domain(cls, item: SaleItem) -> "SaleItemResponse":
        return cls(
            id=item.id,
            product_id=item.product_id,
            product_name=item.product_name,
            unit_price=item.unit_price,
            quantity=item.quantity,
            discount_tier=item.discount_tier.value,
            discount=quantize_money(item.discount),
            total=quantize_money(item.total),
            status=item.status.value,
        )


class SaleResponse(BaseModel):
    id: UUID
    sale_number: str
    sale_date: datetime
    customer_id: UUID
    customer_name: str
    branch_id: UUID
    branch_name: str
    total_amount: Decimal
    status: str
    items: List[SaleItemResponse]

    class Config:
        json_schema_extra = {
            "example": {
                "id": "123e4567-e89b-12d3-a456-426614174000",
                "sale_number": "S-2025-0001",
                "sale_date": "2025-01-01T12:00:00Z",
                "customer_id": "123e4567-e89b-12d3-a456-426614174002",
                "customer_name": "Jane Doe",
                "branch_id": "123e4567-e89b-12d3-a456-426614174003",
                "branch_name": "Downtown",
                "total_amount": "800.00",
                "status": "Active",
                "items": []
            }
        }

    @classmethod
    def from_domain(cls, sale: Sale) -> "SaleResponse":
        return cls(
            id=sale.id,
            sale_number=sale.sale_number,
            sale_date=sale.sale_date,
            customer_id=sale.customer_id,
            customer_name=sale.customer_name,
            branch_id=sale.branch_id,
            branch_name=sale.branch_name,
            total_amount=quantize_money(sale.total_amount),
            status=sale.status.value,
            items=[SaleItemResponse.from_domain(item) for item in sale.items],
        )


class SaleListResponse(BaseModel):
    """Paged sale listing."""
    items: List[SaleResponse]
    total_count: int
    current_page: int
    total_pages: int

    @classmethod
    def from_page(cls, page: SalePage) -> "SaleListResponse":
        return cls(
            items=[SaleResponse.from_domain(sale) for sale in page.items],
            total_count=page.total_count,
            current_page=page.current_page,
            total_pages=page.total_pages,
        )


class DeleteSaleResponse(BaseModel):
    id: UUID
    message: str
