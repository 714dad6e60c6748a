"""Human-readable order and document numbers.

Order number: ``YYYYMMDD-<company id>-<ms tail><random>``, dated in
``settings.ORDER_NUMBER_TIMEZONE``.  The last six digits of the epoch
milliseconds plus three random digits make same-company collisions rare;
the unique index makes them impossible, and ``insert_with_unique_number``
regenerates on collision.

Document number: ``DN``/``RC`` + ``YYYYMMDD`` + ``-`` + a four digit
sequence counting documents of that type issued the same day.
"""

from __future__ import annotations

import secrets
from datetime import date, datetime
from typing import Callable, TypeVar
from zoneinfo import ZoneInfo

from django.conf import settings
from django.db import IntegrityError, transaction

from modules.orders.constants import DOCUMENT_NUMBER_PREFIXES
from shared.infrastructure.retry import retry_on_conflict

T = TypeVar("T")


def generate_order_number(company_id: int, now: datetime) -> str:
    local = now.astimezone(ZoneInfo(settings.ORDER_NUMBER_TIMEZONE))
    millis = int(now.timestamp() * 1000)
    sequence = f"{millis % 1_000_000:06d}{secrets.randbelow(1000):03d}"
    return f"{local:%Y%m%d}-{company_id}-{sequence}"


def generate_document_number(document_type: str, day: date, sequence: int) -> str:
    prefix = DOCUMENT_NUMBER_PREFIXES[document_type]
    return f"{prefix}{day:%Y%m%d}-{sequence:04d}"


def insert_with_unique_number(
    insert: Callable[[int], T],
    *,
    max_attempts: int,
    label: str,
) -> T:
    """Run ``insert(attempt)`` until it stops colliding on a unique index.

    Every attempt runs in its own savepoint so a collision leaves the
    surrounding transaction usable.  Raises ``RetryExhausted`` when all
    attempts collided.
    """

    def attempt_in_savepoint(attempt: int) -> T:
        with transaction.atomic():
            return insert(attempt)

    return retry_on_conflict(
        attempt_in_savepoint,
        max_attempts=max_attempts,
        conflict=(IntegrityError,),
        backoff=settings.NUMBER_RETRY_BACKOFF,
        label=label,
    )
