"""Customer-request / staff-arbitration cancellation sub-flow.

    pending | confirmed --request--> cancel_requested
    cancel_requested --approve--> cancelled
    cancel_requested --reject--> cancel_rejected

``cancel_reason`` is kept after a rejection so both reasons remain
visible.  ``cancel_rejected`` is terminal: the order cannot be requested
for cancellation again and its fulfillment is frozen.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Type

import structlog
from django.db import transaction

from modules.orders.constants import CANCELLABLE_STATES, OrderStatus
from modules.orders.events import (
    CancellationApproved,
    CancellationRejected,
    CancellationRequested,
)
from modules.orders.exceptions import (
    CancellationReasonRequired,
    NoPendingCancellation,
    NotEligibleForCancellation,
    OrderNotFound,
)
from shared.domain.events import DomainEvent

if TYPE_CHECKING:
    from modules.orders.dtos import Actor
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)


def _clean_reason(reason: Optional[str]) -> str:
    cleaned = (reason or "").strip()
    if not cleaned:
        raise CancellationReasonRequired()
    return cleaned


class CancellationWorkflow:
    def __init__(self, order_repository: IOrderRepository) -> None:
        self._order_repo = order_repository

    @transaction.atomic
    def request_cancellation(self, order_id: int, reason: str, actor: Actor) -> Order:
        """Customer asks to cancel an order that is not yet being processed.

        Raises:
            CancellationReasonRequired: reason is blank after trimming.
            NotEligibleForCancellation: status is not pending/confirmed.
        """
        cleaned = _clean_reason(reason)
        order = self._lock(order_id)
        if order.status not in CANCELLABLE_STATES:
            logger.warning(
                "order.cancel_not_allowed", order_id=order.id, status=order.status
            )
            raise NotEligibleForCancellation(
                order.status, OrderStatus.CANCEL_REQUESTED
            )

        order.cancel_reason = cleaned
        self._move(
            order,
            OrderStatus.CANCEL_REQUESTED,
            actor,
            CancellationRequested,
            extra_fields=["cancel_reason"],
            notes=cleaned,
        )
        return order

    @transaction.atomic
    def approve_cancellation(self, order_id: int, actor: Actor) -> Order:
        order = self._pending_request(order_id)
        self._move(order, OrderStatus.CANCELLED, actor, CancellationApproved)
        return order

    @transaction.atomic
    def reject_cancellation(
        self, order_id: int, rejection_reason: str, actor: Actor
    ) -> Order:
        cleaned = _clean_reason(rejection_reason)
        order = self._pending_request(order_id)
        order.cancel_reject_reason = cleaned
        self._move(
            order,
            OrderStatus.CANCEL_REJECTED,
            actor,
            CancellationRejected,
            extra_fields=["cancel_reject_reason"],
            notes=cleaned,
        )
        return order

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _lock(self, order_id: int) -> Order:
        order = self._order_repo.get_for_update(order_id)
        if order is None:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def _pending_request(self, order_id: int) -> Order:
        order = self._lock(order_id)
        if order.status != OrderStatus.CANCEL_REQUESTED:
            raise NoPendingCancellation(order.status)
        return order

    def _move(
        self,
        order: Order,
        new_status: str,
        actor: Actor,
        event_class: Type[DomainEvent],
        extra_fields: Optional[list[str]] = None,
        notes: str = "",
    ) -> None:
        old_status = order.status
        order.status = new_status
        order.add_domain_event(
            event_class(
                aggregate_id=order.id,
                payload={
                    "order_number": order.order_number,
                    "old_status": old_status,
                    "new_status": new_status,
                    "reason": notes,
                },
            )
        )
        self._order_repo.save(order, update_fields=["status", *(extra_fields or [])])
        self._order_repo.add_history(
            order_id=order.id,
            new_status=new_status,
            old_status=old_status,
            user_id=actor.user_id,
            notes=notes,
        )
        logger.info(
            "order.cancellation_transition",
            order_id=order.id,
            old_status=old_status,
            new_status=new_status,
            user_id=actor.user_id,
        )
