"""Event handlers for Orders domain events.

Handlers run when the outbox publisher dispatches stored events; for now
they only leave an audit trail in the logs.
"""

from __future__ import annotations

import structlog

from shared.domain.bus import IEventHandler
from shared.domain.events import DomainEvent

logger = structlog.get_logger(__name__)


class OrderAuditHandler(IEventHandler[DomainEvent]):
    def handle(self, event: DomainEvent) -> None:
        logger.info(
            "order.event_received",
            event_name=event.event_name,
            event_id=str(event.event_id),
            order_id=event.aggregate_id,
            **event.payload,
        )


class CancellationRequestedHandler(IEventHandler[DomainEvent]):
    """Flags new cancellation requests so staff can arbitrate them."""

    def handle(self, event: DomainEvent) -> None:
        logger.warning(
            "order.cancellation_awaiting_decision",
            order_id=event.aggregate_id,
            order_number=event.payload.get("order_number"),
        )


order_audit_handler = OrderAuditHandler()
cancellation_requested_handler = CancellationRequestedHandler()
