"""Order domain constants.

Defines status choices, the fulfillment transition table and the
cancellation sub-states layered on top of it.
"""

from django.db import models


class OrderStatus(models.TextChoices):
    PENDING = "pending", "注文受付"
    CONFIRMED = "confirmed", "注文確定"
    PROCESSING = "processing", "商品手配中"
    SHIPPED = "shipped", "発送済み"
    PARTIALLY_DELIVERED = "partially_delivered", "一部納品済み"
    DELIVERED = "delivered", "配送完了"
    CANCEL_REQUESTED = "cancel_requested", "キャンセル申請中"
    CANCELLED = "cancelled", "キャンセル"
    CANCEL_REJECTED = "cancel_rejected", "キャンセル拒否"


class ApprovalStatus(models.TextChoices):
    NOT_REQUIRED = "not_required", "承認不要"
    PENDING = "pending", "承認待ち"
    APPROVED = "approved", "承認済み"
    REJECTED = "rejected", "否認"


class DisplayStatus(models.TextChoices):
    """Read-only statuses shown to people; never stored on an order."""

    AWAITING_APPROVAL = "awaiting_approval", "社内承認待ち"
    APPROVAL_REJECTED = "approval_rejected", "社内承認否認"


class DocumentType(models.TextChoices):
    DELIVERY_NOTE = "delivery_note", "納品書"
    RECEIPT = "receipt", "受領書"


class PaperworkStatus(models.TextChoices):
    DRAFT = "draft", "下書き"
    FINALIZED = "finalized", "確定"


# Single forward steps only.  partially_delivered is an optional waypoint.
VALID_TRANSITIONS: dict[str, set[str]] = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED},
    OrderStatus.CONFIRMED: {OrderStatus.PROCESSING},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED},
    OrderStatus.SHIPPED: {OrderStatus.PARTIALLY_DELIVERED, OrderStatus.DELIVERED},
    OrderStatus.PARTIALLY_DELIVERED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),
}

CANCELLATION_STATES: set[str] = {
    OrderStatus.CANCEL_REQUESTED,
    OrderStatus.CANCELLED,
    OrderStatus.CANCEL_REJECTED,
}

# No fulfillment status can be set on these.
FROZEN_STATES: set[str] = {OrderStatus.DELIVERED} | CANCELLATION_STATES

TERMINAL_STATES: set[str] = {
    OrderStatus.DELIVERED,
    OrderStatus.CANCELLED,
    OrderStatus.CANCEL_REJECTED,
}

CANCELLABLE_STATES: set[str] = {OrderStatus.PENDING, OrderStatus.CONFIRMED}

DOCUMENT_NUMBER_PREFIXES: dict[str, str] = {
    DocumentType.DELIVERY_NOTE: "DN",
    DocumentType.RECEIPT: "RC",
}


class SkipReason(models.TextChoices):
    """Why a bulk status update left an order untouched."""

    NOT_FOUND = "not_found", "Order not found"
    FROZEN = "frozen", "Order is in a terminal or frozen state"
    INVALID_TRANSITION = "invalid_transition", "Transition not allowed"
    AWAITING_APPROVAL = "awaiting_approval", "Internal approval not completed"
