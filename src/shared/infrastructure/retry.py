"""Bounded retry combinator for "generate candidate -> attempt insert".

Only the exceptions listed in ``conflict`` trigger another attempt;
anything else propagates immediately.  When every attempt collides,
``RetryExhausted`` is raised with the last conflict chained as its cause.
"""

from __future__ import annotations

import random
import time
from typing import Callable, Tuple, Type, TypeVar

import structlog

T = TypeVar("T")

logger = structlog.get_logger(__name__)


class RetryExhausted(Exception):
    """Every attempt ended in a conflict."""

    def __init__(self, attempts: int) -> None:
        super().__init__(f"Gave up after {attempts} conflicting attempts.")
        self.attempts = attempts


def retry_on_conflict(
    operation: Callable[[int], T],
    *,
    max_attempts: int,
    conflict: Tuple[Type[BaseException], ...],
    backoff: float = 0.0,
    max_backoff: float = 1.0,
    label: str = "operation",
) -> T:
    """Run ``operation(attempt)`` until it succeeds or attempts run out.

    ``attempt`` is zero-based so the operation can derive a fresh
    candidate per try.  ``backoff`` is the initial sleep in seconds,
    doubled after each conflict (with up to 25% jitter) and capped at
    ``max_backoff``; ``0`` disables sleeping.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1.")

    delay = backoff
    last_exc: BaseException | None = None
    for attempt in range(max_attempts):
        try:
            return operation(attempt)
        except conflict as exc:
            last_exc = exc
            logger.warning(
                "retry.conflict",
                label=label,
                attempt=attempt + 1,
                max_attempts=max_attempts,
            )
            if delay > 0 and attempt + 1 < max_attempts:
                time.sleep(min(delay + delay * 0.25 * random.random(), max_backoff))
                delay *= 2

    logger.error("retry.exhausted", label=label, attempts=max_attempts)
    raise RetryExhausted(max_attempts) from last_exc
