"""Unit tests for the paperwork lifecycle.

Covers:
- Draft creation with DN/RC numbering and default delivery date.
- Reissues get the next number; number collisions are retried.
- finalize is one-way; approve only applies to finalized receipts.
- Approving twice fails with "already approved".
- Documents addressed through the wrong order are rejected.
- Customers see and download only finalized documents of their company.
"""

from __future__ import annotations

import re
from datetime import date
from decimal import Decimal

import pytest
from django.utils import timezone

from modules.core.models import OutboxEvent
from modules.orders.constants import DocumentType, PaperworkStatus
from modules.orders.dtos import CreateOrderDTO, CreateOrderItemDTO
from modules.orders.exceptions import (
    AlreadyApproved,
    ApprovalNotApplicable,
    ApproverNameRequired,
    OrderNotAccessible,
    OrderNotFound,
    PaperworkAlreadyFinalized,
    PaperworkNotAccessible,
    PaperworkNotFinalized,
    PaperworkNotFound,
    PaperworkOrderMismatch,
    StaffOnly,
)
from modules.products.models import CompanyProduct
from shared.domain.errors import DomainValidationError

pytestmark = pytest.mark.unit

NUMBER_PATTERN = re.compile(r"^(DN|RC)\d{8}-\d{4}$")


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def receipt(facade, delivered_order, staff_actor):
    return facade.create_document(
        delivered_order.id, DocumentType.RECEIPT, None, staff_actor
    )


@pytest.fixture()
def finalized_receipt(facade, delivered_order, receipt, staff_actor):
    return facade.finalize_document(delivered_order.id, receipt.id, staff_actor)


@pytest.fixture()
def delivery_note(facade, delivered_order, staff_actor):
    return facade.create_document(
        delivered_order.id,
        DocumentType.DELIVERY_NOTE,
        date(2026, 10, 1),
        staff_actor,
    )


@pytest.fixture()
def foreign_order(facade, other_company, grease, delivery, other_member_actor):
    """An order placed by another company."""
    offering = CompanyProduct.objects.create(
        company=other_company, product_master=grease, price=Decimal("500.00")
    )
    dto = CreateOrderDTO(
        items=[CreateOrderItemDTO(offering_id=offering.id, quantity=2)],
        delivery=delivery,
    )
    return facade.create_order(dto, other_member_actor)


# ===========================================================================
# Creation
# ===========================================================================


class TestCreateDocument:
    def test_receipt_starts_as_unapproved_draft(self, receipt, delivered_order):
        assert receipt.order_id == delivered_order.id
        assert receipt.status == PaperworkStatus.DRAFT
        assert receipt.is_approved is False
        assert receipt.approved_by == ""
        assert receipt.document_number.startswith("RC")
        assert NUMBER_PATTERN.match(receipt.document_number)

    def test_delivery_date_defaults_to_today(self, receipt):
        assert receipt.delivery_date == timezone.localdate()

    def test_explicit_delivery_date_is_kept(self, delivery_note):
        assert delivery_note.delivery_date == date(2026, 10, 1)
        assert delivery_note.document_number.startswith("DN")

    def test_reissue_gets_next_number(
        self, facade, delivered_order, receipt, staff_actor
    ):
        reissue = facade.create_document(
            delivered_order.id, DocumentType.RECEIPT, None, staff_actor
        )

        assert reissue.id != receipt.id
        assert reissue.document_number[:-4] == receipt.document_number[:-4]
        assert int(reissue.document_number[-4:]) == (
            int(receipt.document_number[-4:]) + 1
        )

    def test_number_collision_is_retried(
        self, facade, delivered_order, receipt, staff_actor, monkeypatch
    ):
        monkeypatch.setattr(
            facade._paperwork_repo, "count_issued_on", lambda document_type, day: 0
        )

        reissue = facade.create_document(
            delivered_order.id, DocumentType.RECEIPT, None, staff_actor
        )

        assert receipt.document_number.endswith("-0001")
        assert reissue.document_number.endswith("-0002")

    def test_unknown_document_type_is_rejected(
        self, facade, delivered_order, staff_actor
    ):
        with pytest.raises(DomainValidationError):
            facade.create_document(delivered_order.id, "invoice", None, staff_actor)

    def test_missing_order(self, facade, staff_actor):
        with pytest.raises(OrderNotFound):
            facade.create_document(999_999, DocumentType.RECEIPT, None, staff_actor)

    def test_members_cannot_create(self, facade, delivered_order, member_actor):
        with pytest.raises(StaffOnly):
            facade.create_document(
                delivered_order.id, DocumentType.RECEIPT, None, member_actor
            )

    def test_creation_writes_outbox_event(self, receipt, delivered_order):
        event = OutboxEvent.objects.get(
            event_type="PaperworkCreated", aggregate_id=str(delivered_order.id)
        )
        assert event.payload["payload"]["document_number"] == receipt.document_number


# ===========================================================================
# Finalize / approve
# ===========================================================================


class TestFinalizeAndApprove:
    def test_receipt_is_finalized_then_approved(
        self, facade, delivered_order, finalized_receipt, staff_actor
    ):
        assert finalized_receipt.status == PaperworkStatus.FINALIZED

        approved = facade.approve_document(
            delivered_order.id, finalized_receipt.id, "staffA", staff_actor
        )

        assert approved.is_approved is True
        assert approved.approved_by == "staffA"
        assert approved.approved_at is not None

    def test_second_approval_fails(
        self, facade, delivered_order, finalized_receipt, staff_actor
    ):
        facade.approve_document(
            delivered_order.id, finalized_receipt.id, "staffA", staff_actor
        )

        with pytest.raises(AlreadyApproved, match="already approved"):
            facade.approve_document(
                delivered_order.id, finalized_receipt.id, "staffB", staff_actor
            )

        finalized_receipt.refresh_from_db()
        assert finalized_receipt.approved_by == "staffA"

    def test_finalize_twice_fails(
        self, facade, delivered_order, finalized_receipt, staff_actor
    ):
        with pytest.raises(PaperworkAlreadyFinalized):
            facade.finalize_document(
                delivered_order.id, finalized_receipt.id, staff_actor
            )

    def test_draft_cannot_be_approved(
        self, facade, delivered_order, receipt, staff_actor
    ):
        with pytest.raises(PaperworkNotFinalized):
            facade.approve_document(
                delivered_order.id, receipt.id, "staffA", staff_actor
            )

    def test_delivery_note_cannot_be_approved(
        self, facade, delivered_order, delivery_note, staff_actor
    ):
        facade.finalize_document(delivered_order.id, delivery_note.id, staff_actor)

        with pytest.raises(ApprovalNotApplicable):
            facade.approve_document(
                delivered_order.id, delivery_note.id, "staffA", staff_actor
            )

    @pytest.mark.parametrize("approver", ["", "   "])
    def test_blank_approver_is_rejected(
        self, facade, delivered_order, finalized_receipt, staff_actor, approver
    ):
        with pytest.raises(ApproverNameRequired):
            facade.approve_document(
                delivered_order.id, finalized_receipt.id, approver, staff_actor
            )

    def test_wrong_order_is_rejected(
        self, facade, pending_order, receipt, staff_actor
    ):
        with pytest.raises(PaperworkOrderMismatch):
            facade.finalize_document(pending_order.id, receipt.id, staff_actor)

    def test_missing_document(self, facade, delivered_order, staff_actor):
        with pytest.raises(PaperworkNotFound):
            facade.finalize_document(delivered_order.id, 999_999, staff_actor)

    def test_events_are_recorded(
        self, facade, delivered_order, finalized_receipt, staff_actor
    ):
        facade.approve_document(
            delivered_order.id, finalized_receipt.id, "staffA", staff_actor
        )

        event_types = set(
            OutboxEvent.objects.filter(aggregate_id=str(delivered_order.id))
            .values_list("event_type", flat=True)
        )
        assert {"PaperworkFinalized", "ReceiptApproved"} <= event_types


# ===========================================================================
# Customer access
# ===========================================================================


class TestCustomerAccess:
    def test_members_only_list_finalized_documents(
        self, facade, delivered_order, finalized_receipt, delivery_note, member_actor
    ):
        documents = list(facade.list_documents(delivered_order.id, member_actor))
        assert [doc.id for doc in documents] == [finalized_receipt.id]

    def test_staff_list_drafts_too(
        self, facade, delivered_order, finalized_receipt, delivery_note, staff_actor
    ):
        documents = facade.list_documents(delivered_order.id, staff_actor)
        assert {doc.id for doc in documents} == {
            finalized_receipt.id,
            delivery_note.id,
        }

    def test_member_downloads_finalized_document(
        self, facade, delivered_order, finalized_receipt, member_actor
    ):
        rendered = facade.render_document(
            delivered_order.id, finalized_receipt.id, member_actor
        )
        assert rendered.filename == f"{finalized_receipt.document_number}.html"

    def test_member_cannot_download_draft(
        self, facade, delivered_order, receipt, member_actor
    ):
        with pytest.raises(PaperworkNotAccessible):
            facade.render_document(delivered_order.id, receipt.id, member_actor)

    def test_staff_can_download_draft(
        self, facade, delivered_order, receipt, staff_actor
    ):
        rendered = facade.render_document(delivered_order.id, receipt.id, staff_actor)
        assert rendered.content

    def test_other_company_cannot_download(
        self, facade, delivered_order, finalized_receipt, other_member_actor
    ):
        with pytest.raises(OrderNotAccessible):
            facade.render_document(
                delivered_order.id, finalized_receipt.id, other_member_actor
            )

    def test_download_through_wrong_order_is_rejected(
        self, facade, pending_order, finalized_receipt, member_actor
    ):
        with pytest.raises(PaperworkOrderMismatch):
            facade.render_document(
                pending_order.id, finalized_receipt.id, member_actor
            )

    def test_foreign_document_looks_missing_to_customers(
        self, facade, finalized_receipt, foreign_order, other_member_actor
    ):
        with pytest.raises(PaperworkNotFound) as foreign:
            facade.render_document(
                foreign_order.id, finalized_receipt.id, other_member_actor
            )
        with pytest.raises(PaperworkNotFound) as missing:
            facade.render_document(foreign_order.id, 999_999, other_member_actor)

        assert foreign.value.code == missing.value.code == "not_found"

    def test_staff_still_get_mismatch_for_foreign_document(
        self, facade, finalized_receipt, foreign_order, staff_actor
    ):
        with pytest.raises(PaperworkOrderMismatch):
            facade.render_document(foreign_order.id, finalized_receipt.id, staff_actor)
