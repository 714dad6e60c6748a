"""Write collected domain events to the transactional outbox.

Repositories call ``store_domain_events`` inside the same transaction as
the state change, so an event row exists if and only if the change
committed.
"""

from __future__ import annotations

import json
from dataclasses import asdict
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict
from uuid import UUID

from modules.core.models import OutboxEvent
from shared.domain.events import DomainEvent, DomainEventMixin


def store_domain_events(entity: DomainEventMixin, topic: str) -> int:
    """Persist and clear the entity's pending events.  Returns the count."""
    events = entity.domain_events
    for event in events:
        OutboxEvent.objects.create(
            id=event.event_id,
            event_type=event.event_name,
            aggregate_id=str(event.aggregate_id),
            payload=serialize_event(event),
            topic=topic,
        )
    entity.clear_domain_events()
    return len(events)


def serialize_event(event: DomainEvent) -> Dict[str, Any]:
    data = asdict(event)
    normalized = _normalize_for_json(data)
    return json.loads(json.dumps(normalized))


def _normalize_for_json(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (list, tuple)):
        return [_normalize_for_json(item) for item in value]
    if isinstance(value, dict):
        return {key: _normalize_for_json(val) for key, val in value.items()}
    return value
