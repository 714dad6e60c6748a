"""Django ORM implementations of the order and paperwork repositories.

All write operations are wrapped in ``transaction.atomic()`` so they join
the caller's unit of work (or open their own).  Status changes lock the
row with ``select_for_update()``; there is no ``version`` column.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, Optional, Sequence

import structlog
from django.db import transaction
from django.db.models import QuerySet

from modules.core.outbox import store_domain_events
from modules.orders.constants import PaperworkStatus
from modules.orders.models import Order, OrderItem, OrderPaperwork, OrderStatusHistory
from modules.orders.repositories.interfaces import (
    IOrderRepository,
    IPaperworkRepository,
)

logger = structlog.get_logger(__name__)

OUTBOX_TOPIC = "orders"


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: int) -> Optional[Order]:
        """Retrieve an order with eager-loaded relations.

        Uses ``select_related`` for the company FK and ``prefetch_related``
        for items and status history.  Returns ``None`` for non-existent
        or malformed ids.
        """
        try:
            return (
                Order.objects.select_related("company")
                .prefetch_related("items", "status_history")
                .filter(id=id)
                .first()
            )
        except (TypeError, ValueError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet[Order]:
        """List orders with optional filters.

        Returns a lazy queryset so the API layer can apply filtering,
        ordering and pagination in SQL.
        """
        queryset = Order.objects.select_related("company")
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def get_for_update(self, id: int) -> Optional[Order]:
        try:
            return Order.objects.select_for_update().filter(id=id).first()
        except (TypeError, ValueError):
            return None

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    @transaction.atomic
    def insert(self, order: Order, items: Sequence[OrderItem]) -> Order:
        order.save(force_insert=True)
        for item in items:
            item.order = order
            item.save()
        logger.info(
            "order.inserted",
            order_id=order.id,
            order_number=order.order_number,
            item_count=len(items),
        )
        return order

    @transaction.atomic
    def save(
        self, entity: Order, update_fields: Optional[Sequence[str]] = None
    ) -> Order:
        entity.save(update_fields=update_fields)
        event_count = self.record_events(entity)
        logger.info("order.saved", order_id=entity.id, event_count=event_count)
        return entity

    def record_events(self, entity: Order) -> int:
        return store_domain_events(entity, topic=OUTBOX_TOPIC)

    @transaction.atomic
    def add_history(
        self,
        order_id: int,
        new_status: str,
        old_status: Optional[str] = None,
        user_id: Optional[int] = None,
        notes: str = "",
    ) -> OrderStatusHistory:
        history = OrderStatusHistory.objects.create(
            order_id=order_id,
            old_status=old_status,
            new_status=new_status,
            user_id=user_id,
            notes=notes,
        )
        logger.info(
            "order.history_added",
            order_id=order_id,
            old_status=old_status,
            new_status=new_status,
        )
        return history


class PaperworkDjangoRepository(IPaperworkRepository):
    """Concrete paperwork repository backed by Django ORM."""

    def get_by_id(self, id: int) -> Optional[OrderPaperwork]:
        try:
            return OrderPaperwork.objects.select_related("order").filter(id=id).first()
        except (TypeError, ValueError):
            return None

    def get_for_update(self, id: int) -> Optional[OrderPaperwork]:
        try:
            return OrderPaperwork.objects.select_for_update().filter(id=id).first()
        except (TypeError, ValueError):
            return None

    def list(
        self, filters: Optional[Dict[str, Any]] = None
    ) -> QuerySet[OrderPaperwork]:
        queryset = OrderPaperwork.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def list_for_order(
        self, order_id: int, finalized_only: bool = False
    ) -> QuerySet[OrderPaperwork]:
        filters: Dict[str, Any] = {"order_id": order_id}
        if finalized_only:
            filters["status"] = PaperworkStatus.FINALIZED
        return self.list(filters)

    def count_issued_on(self, document_type: str, day: date) -> int:
        return OrderPaperwork.objects.filter(
            document_type=document_type, created_at__date=day
        ).count()

    @transaction.atomic
    def insert(self, document: OrderPaperwork) -> OrderPaperwork:
        document.save(force_insert=True)
        logger.info(
            "paperwork.inserted",
            paperwork_id=document.id,
            order_id=document.order_id,
            document_number=document.document_number,
        )
        return document

    @transaction.atomic
    def save(
        self,
        entity: OrderPaperwork,
        update_fields: Optional[Sequence[str]] = None,
    ) -> OrderPaperwork:
        entity.save(update_fields=update_fields)
        event_count = self.record_events(entity)
        logger.info("paperwork.saved", paperwork_id=entity.id, event_count=event_count)
        return entity

    def record_events(self, entity: OrderPaperwork) -> int:
        return store_domain_events(entity, topic=OUTBOX_TOPIC)

