"""Domain bus interfaces for in-process event handling."""

from __future__ import annotations

from typing import Any, Dict, Generic, Protocol, Type, TypeVar

from shared.domain.events import DomainEvent

E = TypeVar("E", bound=DomainEvent, contravariant=True)


class IEventHandler(Protocol, Generic[E]):
    """Handler interface for domain events."""

    def handle(self, event: E) -> None: ...


class IEventBus(Protocol):
    """Event bus interface.

    ``publish_stored`` re-hydrates an event that was persisted in the
    outbox (by name + JSON payload) and dispatches it like ``publish``.
    """

    def publish(self, event: DomainEvent) -> None: ...

    def publish_stored(self, event_name: str, data: Dict[str, Any]) -> bool: ...

    def subscribe(self, event_class: Type[E], handler: IEventHandler[E]) -> None: ...
