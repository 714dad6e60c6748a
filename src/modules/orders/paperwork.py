"""Delivery note / receipt lifecycle.

    draft --finalize--> finalized
    receipt only, after finalize: unapproved --approve--> approved

Finalize and approve are irreversible.  The model refuses content
changes on a row stored as finalized, so the approval stamp is the only
thing that can still be written.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING, Callable, Optional

import structlog
from django.conf import settings
from django.db import transaction
from django.utils import timezone

from modules.orders.constants import DocumentType, PaperworkStatus
from modules.orders.events import PaperworkCreated, PaperworkFinalized, ReceiptApproved
from modules.orders.exceptions import (
    AlreadyApproved,
    ApprovalNotApplicable,
    ApproverNameRequired,
    DocumentNumberExhausted,
    PaperworkAlreadyFinalized,
    PaperworkNotFinalized,
    PaperworkNotFound,
    PaperworkOrderMismatch,
)
from modules.orders.models import OrderPaperwork
from modules.orders.numbering import generate_document_number, insert_with_unique_number
from modules.orders.rendering import render_document
from shared.domain.errors import DomainValidationError
from shared.infrastructure.retry import RetryExhausted

if TYPE_CHECKING:
    from modules.orders.dtos import Actor, RenderedDocument
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IPaperworkRepository

logger = structlog.get_logger(__name__)


class PaperworkLifecycle:
    def __init__(
        self,
        paperwork_repository: IPaperworkRepository,
        clock: Callable[[], datetime] = timezone.now,
    ) -> None:
        self._paperwork_repo = paperwork_repository
        self._clock = clock

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_document(
        self,
        order: Order,
        document_type: str,
        delivery_date: Optional[date],
        actor: Actor,
    ) -> OrderPaperwork:
        """Issue a draft document with the next free number of the day.

        ``delivery_date`` defaults to today's local date.  Several documents
        of the same type may exist for one order (reissues).

        Raises:
            DomainValidationError: unknown document type.
            DocumentNumberExhausted: every numbering attempt collided.
        """
        if document_type not in DocumentType.values:
            raise DomainValidationError(f"Unknown document type: {document_type!r}.")

        today = timezone.localdate(self._clock())

        def insert(attempt: int) -> OrderPaperwork:
            sequence = (
                self._paperwork_repo.count_issued_on(document_type, today) + 1 + attempt
            )
            document = OrderPaperwork(
                order=order,
                document_type=document_type,
                document_number=generate_document_number(
                    document_type, today, sequence
                ),
                delivery_date=delivery_date or today,
                created_by_id=actor.user_id,
            )
            return self._paperwork_repo.insert(document)

        try:
            document = insert_with_unique_number(
                insert,
                max_attempts=settings.DOCUMENT_NUMBER_MAX_RETRIES,
                label="document_number",
            )
        except RetryExhausted as exc:
            raise DocumentNumberExhausted(
                f"Could not allocate a {document_type} number after "
                f"{exc.attempts} attempts."
            ) from exc

        document.add_domain_event(
            PaperworkCreated(
                aggregate_id=order.id,
                payload={
                    "paperwork_id": document.id,
                    "document_type": document_type,
                    "document_number": document.document_number,
                },
            )
        )
        self._paperwork_repo.record_events(document)
        logger.info(
            "paperwork.created",
            order_id=order.id,
            paperwork_id=document.id,
            document_number=document.document_number,
        )
        return document

    @transaction.atomic
    def finalize(self, order_id: int, document_id: int, actor: Actor) -> OrderPaperwork:
        document = self._lock(order_id, document_id)
        if document.is_finalized:
            raise PaperworkAlreadyFinalized(
                f"Document {document.document_number} is already finalized."
            )
        document.status = PaperworkStatus.FINALIZED
        document.add_domain_event(
            PaperworkFinalized(
                aggregate_id=order_id,
                payload={
                    "paperwork_id": document.id,
                    "document_number": document.document_number,
                },
            )
        )
        self._paperwork_repo.save(document, update_fields=["status"])
        logger.info(
            "paperwork.finalized",
            paperwork_id=document.id,
            user_id=actor.user_id,
        )
        return document

    @transaction.atomic
    def approve(
        self, order_id: int, document_id: int, approver: str, actor: Actor
    ) -> OrderPaperwork:
        """Stamp a finalized receipt as approved by ``approver``.

        Raises:
            ApproverNameRequired: approver is blank.
            ApprovalNotApplicable: document is not a receipt.
            PaperworkNotFinalized: document is still a draft.
            AlreadyApproved: approval was already recorded.
        """
        approver = (approver or "").strip()
        if not approver:
            raise ApproverNameRequired()

        document = self._lock(order_id, document_id)
        if document.document_type != DocumentType.RECEIPT:
            raise ApprovalNotApplicable()
        if not document.is_finalized:
            raise PaperworkNotFinalized()
        if document.is_approved:
            raise AlreadyApproved(
                f"Receipt {document.document_number} is already approved."
            )

        document.is_approved = True
        document.approved_by = approver
        document.approved_at = self._clock()
        document.add_domain_event(
            ReceiptApproved(
                aggregate_id=order_id,
                payload={
                    "paperwork_id": document.id,
                    "document_number": document.document_number,
                    "approved_by": approver,
                },
            )
        )
        self._paperwork_repo.save(
            document, update_fields=["is_approved", "approved_by", "approved_at"]
        )
        logger.info(
            "paperwork.approved",
            paperwork_id=document.id,
            user_id=actor.user_id,
        )
        return document

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(
        self, order_id: int, document_id: int, actor: Optional[Actor] = None
    ) -> OrderPaperwork:
        """Load a document of ``order_id``.

        Non-staff actors get ``PaperworkNotFound`` for documents of another
        company, never ``PaperworkOrderMismatch``.
        """
        document = self._paperwork_repo.get_by_id(document_id)
        if document is not None and actor is not None and not actor.is_staff:
            if not actor.owns(document.order):
                document = None
        self._check_belongs(document, order_id, document_id)
        return document

    @staticmethod
    def can_render(document: OrderPaperwork, order: Order, actor: Actor) -> bool:
        """Staff may render anything; others only finalized documents they own."""
        if actor.is_staff:
            return True
        return document.is_finalized and actor.owns(order)

    @staticmethod
    def render(document: OrderPaperwork, order: Order) -> RenderedDocument:
        return render_document(document, order)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _lock(self, order_id: int, document_id: int) -> OrderPaperwork:
        document = self._paperwork_repo.get_for_update(document_id)
        self._check_belongs(document, order_id, document_id)
        return document

    @staticmethod
    def _check_belongs(
        document: Optional[OrderPaperwork], order_id: int, document_id: int
    ) -> None:
        if document is None:
            raise PaperworkNotFound(f"Document {document_id} not found.")
        if document.order_id != order_id:
            raise PaperworkOrderMismatch(
                f"Document {document_id} does not belong to order {order_id}."
            )
