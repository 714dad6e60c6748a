"""Unit tests for Orders event handlers and the in-memory bus.

Covers:
- The audit handler logs every order event with its payload.
- Cancellation requests are flagged for staff.
- The bus routes live and stored (outbox) events by name.
"""

from __future__ import annotations

import logging

import pytest

from modules.orders.events import (
    ORDER_EVENTS,
    CancellationRequested,
    OrderCreated,
    ReceiptApproved,
)
from modules.orders.handlers import (
    CancellationRequestedHandler,
    OrderAuditHandler,
    order_audit_handler,
)
from shared.infrastructure.bus import InMemoryEventBus, event_bus

pytestmark = pytest.mark.unit


class CapturingHandler:
    def __init__(self) -> None:
        self.handled = []

    def handle(self, event) -> None:
        self.handled.append(event)


def test_audit_handler_logs_payload(caplog):
    event = OrderCreated(aggregate_id=12, payload={"order_number": "20261018-1-1"})

    with caplog.at_level(logging.INFO, logger="modules.orders.handlers"):
        OrderAuditHandler().handle(event)

    messages = [record.getMessage() for record in caplog.records]
    assert any("order.event_received" in m and "20261018-1-1" in m for m in messages)


def test_cancellation_request_is_flagged(caplog):
    event = CancellationRequested(aggregate_id=3, payload={"order_number": "N-3"})

    with caplog.at_level(logging.WARNING, logger="modules.orders.handlers"):
        CancellationRequestedHandler().handle(event)

    assert any(
        "order.cancellation_awaiting_decision" in record.getMessage()
        for record in caplog.records
    )


def test_app_registers_audit_handler_for_every_event():
    for event_class in ORDER_EVENTS:
        assert order_audit_handler in event_bus._handlers[event_class.__name__]


def test_bus_routes_live_events():
    bus = InMemoryEventBus()
    handler = CapturingHandler()
    event = OrderCreated(aggregate_id=1)

    bus.subscribe(OrderCreated, handler)
    bus.publish(event)

    assert handler.handled == [event]


def test_bus_rehydrates_stored_events():
    from modules.core.outbox import serialize_event

    bus = InMemoryEventBus()
    handler = CapturingHandler()
    bus.subscribe(ReceiptApproved, handler)
    original = ReceiptApproved(aggregate_id=8, payload={"approved_by": "staffA"})

    assert bus.publish_stored("ReceiptApproved", serialize_event(original)) is True

    (received,) = handler.handled
    assert isinstance(received, ReceiptApproved)
    assert received.event_id == original.event_id
    assert received.aggregate_id == 8
    assert received.payload == {"approved_by": "staffA"}


def test_bus_ignores_unknown_stored_events():
    bus = InMemoryEventBus()
    assert bus.publish_stored("SomethingElse", {}) is False
