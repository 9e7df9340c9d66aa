"""
FastAPI dependencies.

Routers receive their collaborators through these functions so tests can
swap them with `app.dependency_overrides`.
"""

from domain.time import Clock, utc_now
from repositories.sale_repository import SaleRepository, SupabaseSaleRepository
from services.event_dispatcher import DomainEventDispatcher, default_dispatcher

_dispatcher = default_dispatcher()


def get_sale_repository() -> SaleRepository:
    return SupabaseSaleRepository()


def get_event_dispatcher() -> DomainEventDispatcher:
    return _dispatcher


def get_clock() -> Clock:
    return utc_now
