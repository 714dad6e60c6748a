"""In-memory event bus implementation."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Type
from uuid import UUID

import structlog

from shared.domain.bus import IEventBus, IEventHandler
from shared.domain.events import DomainEvent

logger = structlog.get_logger(__name__)


class InMemoryEventBus(IEventBus):
    """Simple in-process event bus keyed by event name.

    Keying by name (not class) lets outbox rows, which only store the
    event name, be dispatched to the same handlers.
    """

    def __init__(self) -> None:
        self._handlers: Dict[str, List[IEventHandler]] = {}
        self._event_classes: Dict[str, Type[DomainEvent]] = {}

    def subscribe(self, event_class: Type[DomainEvent], handler: IEventHandler) -> None:
        name = event_class.__name__
        self._event_classes[name] = event_class
        handlers = self._handlers.setdefault(name, [])
        if handler not in handlers:
            handlers.append(handler)

    def publish(self, event: DomainEvent) -> None:
        for handler in self._handlers.get(event.event_name, []):
            handler.handle(event)

    def publish_stored(self, event_name: str, data: Dict[str, Any]) -> bool:
        """Dispatch an outbox payload.  Returns ``False`` for unknown events."""
        event_class = self._event_classes.get(event_name)
        if event_class is None:
            logger.warning("event_bus.unknown_event", event_name=event_name)
            return False
        event = event_class(
            aggregate_id=data["aggregate_id"],
            payload=data.get("payload", {}),
            event_id=UUID(data["event_id"]),
            occurred_on=datetime.fromisoformat(data["occurred_on"]),
        )
        self.publish(event)
        return True


# Global bus instance (singleton)

event_bus = InMemoryEventBus()
