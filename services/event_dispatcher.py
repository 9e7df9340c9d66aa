"""
Domain event dispatcher.

Drains the event queue of a Sale and hands each event to the handlers
registered for its type. Handlers run synchronously in registration order.
The queue is cleared only after every handler has run, so a failing handler
leaves the events in place for the caller to inspect.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Callable, DefaultDict, List, Type

from domain.events import SaleCreated, SaleEvent, SaleModified
from domain.sale import Sale

logger = logging.getLogger(__name__)

EventHandler = Callable[[Any], None]


class DomainEventDispatcher:
    def __init__(self) -> None:
        self._handlers: DefaultDict[type, List[EventHandler]] = defaultdict(list)

    def register(self, event_type: Type[SaleEvent], handler: EventHandler) -> None:
        self._handlers[event_type].append(handler)

    def dispatch(self, sale: Sale) -> List[SaleEvent]:
        """
        Publish every queued event of `sale`, then clear the queue.

        Returns:
            The events that were published
        """

        events = list(sale.domain_events)
        for event in events:
            for handler in self._handlers.get(type(event), []):
                handler(event)
        sale.clear_domain_events()
        return events


def log_sale_created(event: SaleCreated) -> None:
    logger.info(
        "Event: SaleCreated | SaleId: %s | CustomerId: %s | CreatedAt: %s",
        event.sale_id,
        event.customer_id,
        event.created_at.isoformat(),
    )


def log_sale_modified(event: SaleModified) -> None:
    logger.info(
        "Event: SaleModified | SaleId: %s | CustomerId: %s | ModifiedAt: %s",
        event.sale_id,
        event.customer_id,
        event.modified_at.isoformat(),
    )


def default_dispatcher() -> DomainEventDispatcher:
    """Dispatcher with the logging handlers registered."""

    dispatcher = DomainEventDispatcher()
    dispatcher.register(SaleCreated, log_sale_created)
    dispatcher.register(SaleModified, log_sale_modified)
    return dispatcher


__all__ = [
    "DomainEventDispatcher",
    "EventHandler",
    "default_dispatcher",
    "log_sale_created",
    "log_sale_modified",
]
