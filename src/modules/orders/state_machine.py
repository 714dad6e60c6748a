"""Fulfillment status transitions for one or many orders.

Rules:
- Only the next step of ``pending -> confirmed -> processing -> shipped
  -> partially_delivered -> delivered`` may be applied; ``shipped ->
  delivered`` skips the optional partial delivery.
- Delivered orders and orders in the cancellation branch are frozen.
- Cancellation statuses are owned by ``CancellationWorkflow``.
- Orders that still wait for (or failed) internal approval cannot move.
- Every applied transition writes a history row and an
  ``OrderStatusChanged`` outbox event in the same transaction.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, List, Optional

import structlog
from django.db import transaction
from django.utils import timezone

from modules.orders.constants import (
    CANCELLATION_STATES,
    ApprovalStatus,
    OrderStatus,
    SkipReason,
)
from modules.orders.dtos import BulkStatusResult, SkippedOrder
from modules.orders.events import OrderApprovalRecorded, OrderStatusChanged
from modules.orders.exceptions import (
    ApprovalNotPending,
    ApprovalReasonRequired,
    CancellationStatusNotSettable,
    InvalidOrderStatus,
    OrderAwaitingApproval,
    OrderFrozen,
    OrderNotFound,
    UnknownOrderStatus,
)

if TYPE_CHECKING:
    from modules.orders.dtos import Actor
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)


class OrderStateMachine:
    """Validates and applies fulfillment status changes."""

    def __init__(self, order_repository: IOrderRepository) -> None:
        self._order_repo = order_repository

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def set_status(self, order_id: int, new_status: str, actor: Actor) -> Order:
        """Move one order to ``new_status``.

        Raises:
            UnknownOrderStatus / CancellationStatusNotSettable: bad target.
            OrderNotFound: order does not exist.
            OrderFrozen: order is delivered or in the cancellation branch.
            OrderAwaitingApproval: internal approval not completed.
            InvalidOrderStatus: not the next step of the chain.
        """
        self.validate_target(new_status)
        order = self._order_repo.get_for_update(order_id)
        if order is None:
            raise OrderNotFound(f"Order {order_id} not found.")
        self._check_transition(order, new_status)
        self._apply(order, new_status, actor)
        return order

    def bulk_set_status(
        self, order_ids: Iterable[int], new_status: str, actor: Actor
    ) -> BulkStatusResult:
        """Apply ``new_status`` to each order independently.

        Each order runs in its own savepoint inside one transaction, so a
        rejected order never undoes the others.  Rule violations become
        skip entries; nothing is raised per order.
        """
        self.validate_target(new_status)
        ids = list(dict.fromkeys(order_ids))
        updated: List[int] = []
        skipped: List[SkippedOrder] = []

        with transaction.atomic():
            for order_id in ids:
                reason = None
                try:
                    with transaction.atomic():
                        order = self._order_repo.get_for_update(order_id)
                        if order is None:
                            reason = SkipReason.NOT_FOUND
                        else:
                            self._check_transition(order, new_status)
                            self._apply(order, new_status, actor)
                except OrderFrozen:
                    reason = SkipReason.FROZEN
                except OrderAwaitingApproval:
                    reason = SkipReason.AWAITING_APPROVAL
                except InvalidOrderStatus:
                    reason = SkipReason.INVALID_TRANSITION

                if reason is None:
                    updated.append(order_id)
                else:
                    skipped.append(
                        SkippedOrder(order_id=order_id, reason=reason.value)
                    )

        logger.info(
            "order.bulk_status_updated",
            new_status=new_status,
            requested=len(ids),
            updated=len(updated),
            skipped=len(skipped),
        )
        return BulkStatusResult(status=new_status, updated=updated, skipped=skipped)

    @transaction.atomic
    def record_approval(
        self,
        order_id: int,
        approved: bool,
        actor: Actor,
        reason: Optional[str] = None,
    ) -> Order:
        """Record the company's internal approval decision for a pending order.

        The stored status stays ``pending`` either way; only
        ``approval_status`` changes, which unblocks (or keeps blocking)
        fulfillment.  A rejection must carry a reason, stored trimmed.

        Raises:
            ApprovalReasonRequired: rejection without a reason.
            ApprovalNotPending: no decision is outstanding.
        """
        reason = (reason or "").strip()
        if not approved and not reason:
            raise ApprovalReasonRequired()

        order = self._order_repo.get_for_update(order_id)
        if order is None:
            raise OrderNotFound(f"Order {order_id} not found.")
        if (
            order.status != OrderStatus.PENDING
            or order.approval_status != ApprovalStatus.PENDING
        ):
            raise ApprovalNotPending(
                f"Order {order.order_number} is not awaiting approval."
            )

        order.approval_status = (
            ApprovalStatus.APPROVED if approved else ApprovalStatus.REJECTED
        )
        order.approval_decided_by_id = actor.user_id
        order.approval_decided_at = timezone.now()
        order.approval_rejection_reason = None if approved else reason
        order.add_domain_event(
            OrderApprovalRecorded(
                aggregate_id=order.id,
                payload={
                    "order_number": order.order_number,
                    "approval_status": order.approval_status,
                    "rejection_reason": order.approval_rejection_reason,
                },
            )
        )
        self._order_repo.save(
            order,
            update_fields=[
                "approval_status",
                "approval_decided_by",
                "approval_decided_at",
                "approval_rejection_reason",
            ],
        )
        logger.info(
            "order.approval_recorded",
            order_id=order.id,
            approval_status=order.approval_status,
            user_id=actor.user_id,
        )
        return order

    # ------------------------------------------------------------------
    # Rules
    # ------------------------------------------------------------------

    @staticmethod
    def validate_target(new_status: str) -> None:
        if new_status not in OrderStatus.values:
            raise UnknownOrderStatus(f"Unknown order status: {new_status!r}.")
        if new_status in CANCELLATION_STATES:
            raise CancellationStatusNotSettable(
                f"Status {new_status} can only be reached through cancellation."
            )

    @staticmethod
    def _check_transition(order: Order, new_status: str) -> None:
        if order.is_frozen:
            raise OrderFrozen(order.status, new_status)
        if not order.approval_completed:
            raise OrderAwaitingApproval(
                f"Order {order.order_number} has not completed internal approval."
            )
        if not order.can_transition_to(new_status):
            raise InvalidOrderStatus(order.status, new_status)

    def _apply(self, order: Order, new_status: str, actor: Actor) -> None:
        old_status = order.status
        order.status = new_status
        order.add_domain_event(
            OrderStatusChanged(
                aggregate_id=order.id,
                payload={
                    "order_number": order.order_number,
                    "old_status": old_status,
                    "new_status": new_status,
                },
            )
        )
        self._order_repo.save(order, update_fields=["status"])
        self._order_repo.add_history(
            order_id=order.id,
            new_status=new_status,
            old_status=old_status,
            user_id=actor.user_id,
        )
        logger.info(
            "order.status_updated",
            order_id=order.id,
            old_status=old_status,
            new_status=new_status,
            user_id=actor.user_id,
        )
