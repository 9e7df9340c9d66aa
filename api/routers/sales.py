"""
Sales API Endpoints.

CRUD endpoints over the Sale aggregate. Business-rule failures map to 400,
missing sales to 404, storage failures to 500.
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status

from api.dependencies import get_clock, get_event_dispatcher, get_sale_repository
from api.models import (
    CreateSaleRequest,
    DeleteSaleResponse,
    SaleItemRequest,
    SaleListResponse,
    SaleResponse,
    UpdateSaleRequest,
)
from domain.errors import InvalidQuantityError, SaleNotFoundError, SaleValidationError
from domain.time import Clock
from repositories.sale_repository import SaleFilters, SaleRepository
from services.event_dispatcher import DomainEventDispatcher
from services.sale_service import (
    CreateSaleCommand,
    SaleItemInput,
    UpdateSaleCommand,
    cancel_sale,
    create_sale,
    delete_sale,
    get_sale,
    list_sales,
    update_sale,
)

router = APIRouter()


def _item_inputs(items: List[SaleItemRequest]) -> List[SaleItemInput]:
    return [
        SaleItemInput(
            product_id=item.product_id,
            product_name=item.product_name,
            unit_price=item.unit_price,
            quantity=item.quantity,
            item_id=item.id,
        )
        for item in items
    ]


def _bad_request(exc: Exception) -> HTTPException:
    if isinstance(exc, SaleValidationError):
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "message": "Sale validation failed.",
                "errors": [{"field": e.field, "message": e.message} for e in exc.errors],
            },
        )
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={"message": str(exc), "errors": []},
    )


def _not_found(exc: SaleNotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


def _storage_failure(action: str, exc: RuntimeError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed to {action}: {str(exc)}",
    )


@router.post(
    "/sales",
    response_model=SaleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Sale",
)
def create_sale_endpoint(
    request: CreateSaleRequest,
    repository: SaleRepository = Depends(get_sale_repository),
    dispatcher: DomainEventDispatcher = Depends(get_event_dispatcher),
    clock: Clock = Depends(get_clock),
):
    """
    Create a sale.

    Discounts are applied per line by quantity:
    - 1-3 units: no discount
    - 4-9 units: 10%
    - 10-20 units: 20%

    More than 20 units of a single product is rejected with 400.
    """
    command = CreateSaleCommand(
        customer_id=request.customer_id,
        customer_name=request.customer_name,
        branch_id=request.branch_id,
        branch_name=request.branch_name,
        sale_number=request.sale_number,
        items=_item_inputs(request.items),
    )
    try:
        sale = create_sale(command, repository, dispatcher, clock)
    except (SaleValidationError, InvalidQuantityError) as e:
        raise _bad_request(e)
    except RuntimeError as e:
        raise _storage_failure("create sale", e)

    return SaleResponse.from_domain(sale)


@router.get("/sales", response_model=SaleListResponse, summary="List Sales")
def list_sales_endpoint(
    page: int = Query(1, ge=1),
    size: int = Query(10, ge=1, le=100),
    order: Optional[str] = Query(None, description='e.g. "sale_date desc, customer_name"'),
    customer_name: Optional[str] = Query(None, description="Supports * wildcard"),
    branch_name: Optional[str] = Query(None, description="Supports * wildcard"),
    sale_status: Optional[str] = Query(None, alias="status"),
    repository: SaleRepository = Depends(get_sale_repository),
):
    """List sales with filters, ordering and pagination."""
    filters = SaleFilters(customer_name=customer_name, branch_name=branch_name, status=sale_status)
    try:
        result = list_sales(repository, page=page, size=size, order=order, filters=filters)
    except RuntimeError as e:
        raise _storage_failure("list sales", e)
    return SaleListResponse.from_page(result)


@router.get("/sales/{sale_id}", response_model=SaleResponse, summary="Get Sale")
def get_sale_endpoint(
    sale_id: UUID,
    repository: SaleRepository = Depends(get_sale_repository),
):
    try:
        sale = get_sale(sale_id, repository)
    except SaleNotFoundError as e:
        raise _not_found(e)
    except RuntimeError as e:
        raise _storage_failure("get sale", e)

    return SaleResponse.from_domain(sale)


@router.put("/sales/{sale_id}", response_model=SaleResponse, summary="Update Sale")
def update_sale_endpoint(
    sale_id: UUID,
    request: UpdateSaleRequest,
    repository: SaleRepository = Depends(get_sale_repository),
    dispatcher: DomainEventDispatcher = Depends(get_event_dispatcher),
    clock: Clock = Depends(get_clock),
):
    """
    Update a sale.

    Lines sent with their existing `id` are matched to the stored lines, so an
    update that repeats the current state does not count as a modification.
    """
    command = UpdateSaleCommand(
        customer_name=request.customer_name,
        branch_name=request.branch_name,
        status=request.status,
        items=_item_inputs(request.items),
    )
    try:
        sale = update_sale(sale_id, command, repository, dispatcher, clock)
    except SaleNotFoundError as e:
        raise _not_found(e)
    except (SaleValidationError, InvalidQuantityError) as e:
        raise _bad_request(e)
    except RuntimeError as e:
        raise _storage_failure("update sale", e)

    return SaleResponse.from_domain(sale)


@router.post("/sales/{sale_id}/cancel", response_model=SaleResponse, summary="Cancel Sale")
def cancel_sale_endpoint(
    sale_id: UUID,
    repository: SaleRepository = Depends(get_sale_repository),
):
    try:
        sale = cancel_sale(sale_id, repository)
    except SaleNotFoundError as e:
        raise _not_found(e)
    except RuntimeError as e:
        raise _storage_failure("cancel sale", e)

    return SaleResponse.from_domain(sale)


@router.delete("/sales/{sale_id}", response_model=DeleteSaleResponse, summary="Delete Sale")
def delete_sale_endpoint(
    sale_id: UUID,
    repository: SaleRepository = Depends(get_sale_repository),
):
    try:
        delete_sale(sale_id, repository)
    except SaleNotFoundError as e:
        raise _not_found(e)
    except RuntimeError as e:
        raise _storage_failure("delete sale", e)

    return DeleteSaleResponse(id=sale_id, message="Sale deleted successfully")
