"""Render delivery notes and receipts as HTML.

Output depends only on stored state (the order, its items and the
document's own fields) and on settings, never on the clock, so rendering
the same document twice yields byte-identical content and checksum.
"""

from __future__ import annotations

import hashlib
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict

from django.conf import settings
from django.template.loader import render_to_string
from django.utils import timezone

from modules.orders.constants import DocumentType
from modules.orders.dtos import RenderedDocument

if TYPE_CHECKING:
    from modules.orders.models import Order, OrderPaperwork

TEMPLATE_NAME = "orders/paperwork.html"
CONTENT_TYPE = "text/html; charset=utf-8"


def _yen(amount: Decimal) -> str:
    return f"¥{amount:,.0f}"


def _day(value: date | datetime) -> str:
    if isinstance(value, datetime):
        value = timezone.localtime(value).date()
    return f"{value.year}年{value.month}月{value.day}日"


def build_context(document: OrderPaperwork, order: Order) -> Dict[str, Any]:
    is_receipt = document.document_type == DocumentType.RECEIPT
    items = [
        {
            "product_name": item.product_name,
            "package_label": item.package_label,
            "quantity": item.quantity,
            "unit_price": _yen(item.unit_price),
            "subtotal": _yen(item.subtotal),
        }
        for item in sorted(order.items.all(), key=lambda item: item.id)
    ]
    approval = None
    if is_receipt and document.is_approved:
        approval = {
            "approved_by": document.approved_by,
            "approved_on": _day(document.approved_at),
        }
    return {
        "title": DocumentType(document.document_type).label,
        "is_receipt": is_receipt,
        "document_number": document.document_number,
        "delivery_date": _day(document.delivery_date),
        "order_number": order.order_number,
        "order_date": _day(order.created_at),
        "recipient": {
            "company": order.delivery_company,
            "name": order.delivery_name,
            "postal_code": order.delivery_postal_code,
            "address": " ".join(
                part
                for part in (
                    order.delivery_prefecture,
                    order.delivery_city,
                    order.delivery_address1,
                    order.delivery_address2,
                )
                if part
            ),
            "phone": order.delivery_phone,
        },
        "issuer": settings.PAPERWORK_ISSUER,
        "items": items,
        "total_amount": _yen(order.total_amount),
        "approval": approval,
    }


def render_document(document: OrderPaperwork, order: Order) -> RenderedDocument:
    html = render_to_string(TEMPLATE_NAME, build_context(document, order))
    content = html.encode("utf-8")
    return RenderedDocument(
        filename=f"{document.document_number}.html",
        content_type=CONTENT_TYPE,
        content=content,
        checksum=hashlib.sha256(content).hexdigest(),
    )
