"""Domain events for the Orders bounded context.

Event-specific facts travel in ``payload``; see the producing component
for the keys each event carries.
"""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class OrderCreated(DomainEvent):
    """Raised when an order is placed."""


@dataclass(frozen=True)
class OrderStatusChanged(DomainEvent):
    """Raised when a fulfillment status is applied."""


@dataclass(frozen=True)
class OrderApprovalRecorded(DomainEvent):
    """Raised when a company approver decides on an order."""


@dataclass(frozen=True)
class CancellationRequested(DomainEvent):
    pass


@dataclass(frozen=True)
class CancellationApproved(DomainEvent):
    pass


@dataclass(frozen=True)
class CancellationRejected(DomainEvent):
    pass


@dataclass(frozen=True)
class PaperworkCreated(DomainEvent):
    """Raised when a draft document is issued.  ``aggregate_id`` is the order id."""


@dataclass(frozen=True)
class PaperworkFinalized(DomainEvent):
    pass


@dataclass(frozen=True)
class ReceiptApproved(DomainEvent):
    pass


ORDER_EVENTS = (
    OrderCreated,
    OrderStatusChanged,
    OrderApprovalRecorded,
    CancellationRequested,
    CancellationApproved,
    CancellationRejected,
    PaperworkCreated,
    PaperworkFinalized,
    ReceiptApproved,
)
