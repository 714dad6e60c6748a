"""Order domain exceptions.

Raised by the lifecycle components and the facade when business rules
are violated.  Each one subclasses a category from
``shared.domain.errors``; the API exception handler maps categories to
HTTP responses.
"""

from __future__ import annotations

from shared.domain.errors import (
    AccessDenied,
    Conflict,
    DomainValidationError,
    NotAuthorized,
    NotFound,
    RuleViolation,
)


# ----------------------------------------------------------------------
# Orders
# ----------------------------------------------------------------------


class OrderNotFound(NotFound):
    """The requested order does not exist."""


class OrderNotAccessible(NotAuthorized):
    """The order does not exist or belongs to another company."""

    def __init__(self, message: str = "") -> None:
        super().__init__(message or "Order not accessible.")


class StaffOnly(AccessDenied):
    """Only staff members may perform this operation."""


class CompanyRequired(AccessDenied):
    """The user is not a member of any company."""


class ApproverRequired(AccessDenied):
    """The user is not allowed to approve orders for their company."""


class InvalidOrderStatus(RuleViolation):
    """A status transition outside the fulfillment chain was requested."""

    def __init__(self, current: str, requested: str) -> None:
        super().__init__(
            f"Cannot transition from {current} to {requested}.",
            code="invalid_transition",
        )
        self.current = current
        self.requested = requested


class OrderFrozen(RuleViolation):
    """The order is delivered or inside the cancellation branch."""

    def __init__(self, current: str, requested: str) -> None:
        super().__init__(
            f"Order is in a terminal or frozen state ({current}); "
            f"cannot move to {requested}.",
            code="order_frozen",
        )
        self.current = current
        self.requested = requested


class UnknownOrderStatus(DomainValidationError):
    """The requested status is not one of the order status literals."""


class CancellationStatusNotSettable(DomainValidationError):
    """Cancellation statuses are only reachable through the cancellation workflow."""


class OrderAwaitingApproval(RuleViolation):
    """The order has not completed its internal approval."""

    default_code = "awaiting_approval"


class ApprovalNotPending(RuleViolation):
    """The order is not waiting for an internal approval decision."""


class ApprovalReasonRequired(DomainValidationError):
    """Rejecting an order internally requires a non-blank reason."""

    default_code = "reason_required"


class OfferingNotFound(DomainValidationError):
    """An item references an offering unknown to the ordering company."""


class PriceMismatch(DomainValidationError):
    """A client-supplied price disagrees with the authoritative price."""

    default_code = "price_mismatch"


class OrderNumberExhausted(Conflict):
    """No unique order number could be generated."""


class OrderSnapshotImmutable(RuleViolation):
    """Order items and the checkout snapshot cannot change after creation."""


# ----------------------------------------------------------------------
# Cancellation
# ----------------------------------------------------------------------


class NotEligibleForCancellation(RuleViolation):
    """Cancellation can only be requested before processing starts."""

    default_code = "not_eligible_for_cancellation"

    def __init__(self, current: str, requested: str) -> None:
        super().__init__(
            f"Order not eligible for cancellation: cannot move from {current} "
            f"to {requested}."
        )
        self.current = current
        self.requested = requested


class NoPendingCancellation(RuleViolation):
    """The order has no cancellation request awaiting a decision."""

    default_code = "no_pending_cancellation"

    def __init__(self, current: str) -> None:
        super().__init__(f"No pending cancellation ({current}).")
        self.current = current


class CancellationReasonRequired(DomainValidationError):
    """A non-blank reason is required."""


# ----------------------------------------------------------------------
# Paperwork
# ----------------------------------------------------------------------


class PaperworkNotFound(NotFound):
    """The requested document does not exist."""


class PaperworkOrderMismatch(DomainValidationError):
    """The document does not belong to the addressed order."""

    default_code = "order_mismatch"


class PaperworkNotAccessible(AccessDenied):
    """Only finalized documents of the caller's own company can be downloaded."""


class PaperworkAlreadyFinalized(RuleViolation):
    """The document has already been finalized."""

    default_code = "already_finalized"


class PaperworkNotFinalized(RuleViolation):
    """The document must be finalized first."""

    default_code = "not_finalized"


class ApprovalNotApplicable(RuleViolation):
    """Only receipts can carry an approval stamp."""


class AlreadyApproved(RuleViolation):
    """The receipt is already approved."""

    default_code = "already_approved"


class ApproverNameRequired(DomainValidationError):
    """The approver name must not be blank."""


class FinalizedPaperworkImmutable(RuleViolation):
    """A finalized document's content cannot be changed."""


class DocumentNumberExhausted(Conflict):
    """No unique document number could be generated."""
