"""Read-time projection of an order's status for people.

``display_status`` is never written back to the order.  The only
difference from the stored status concerns orders of companies that
require internal approval: while approval is outstanding (or was
refused) they show that instead of ``pending``, and once approval is
complete they show plain ``pending`` ("order received").
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from modules.orders.constants import ApprovalStatus, DisplayStatus, OrderStatus

if TYPE_CHECKING:
    from modules.orders.models import Order

_LABELS = {**dict(OrderStatus.choices), **dict(DisplayStatus.choices)}


def display_status(order: Order) -> str:
    if order.status != OrderStatus.PENDING or not order.requires_approval:
        return order.status
    if order.approval_status == ApprovalStatus.APPROVED:
        return OrderStatus.PENDING
    if order.approval_status == ApprovalStatus.REJECTED:
        return DisplayStatus.APPROVAL_REJECTED
    return DisplayStatus.AWAITING_APPROVAL


def display_label(order: Order) -> str:
    return str(_LABELS[display_status(order)])
