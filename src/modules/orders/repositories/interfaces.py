"""Order and paperwork repository interfaces.

``IOrderRepository`` persists the Order aggregate (Order + OrderItem +
OrderStatusHistory); ``IPaperworkRepository`` persists documents, which
have a lifecycle independent of their order.

Both write pending domain events to the outbox in the same transaction
as the change that raised them.  Lifecycle components depend only on
these contracts.
"""

from __future__ import annotations

from abc import abstractmethod
from datetime import date
from typing import TYPE_CHECKING, Any, Dict, Iterable, Optional, Sequence

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.orders.models import (
        Order,
        OrderItem,
        OrderPaperwork,
        OrderStatusHistory,
    )


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root."""

    @abstractmethod
    def get_by_id(self, id: int) -> Optional[Order]:
        """Retrieve an order with prefetched items and status history."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> Iterable[Order]:
        """List orders with optional filters (newest first)."""

    @abstractmethod
    def get_for_update(self, id: int) -> Optional[Order]:
        """Retrieve an order holding a row-level lock."""

    @abstractmethod
    def insert(self, order: Order, items: Sequence[OrderItem]) -> Order:
        """Insert a new order and its items.

        Raises ``IntegrityError`` when ``order_number`` is already taken.
        """

    @abstractmethod
    def save(
        self, entity: Order, update_fields: Optional[Sequence[str]] = None
    ) -> Order:
        """Update an order and store its pending domain events."""

    @abstractmethod
    def record_events(self, entity: Order) -> int:
        """Store pending domain events without writing the order row."""

    @abstractmethod
    def add_history(
        self,
        order_id: int,
        new_status: str,
        old_status: Optional[str] = None,
        user_id: Optional[int] = None,
        notes: str = "",
    ) -> OrderStatusHistory:
        """Record a status change in the order's audit trail."""


class IPaperworkRepository(IRepository["OrderPaperwork"]):
    """Repository contract for order documents."""

    @abstractmethod
    def get_by_id(self, id: int) -> Optional[OrderPaperwork]:
        """Retrieve a document with its order."""

    @abstractmethod
    def get_for_update(self, id: int) -> Optional[OrderPaperwork]:
        """Retrieve a document holding a row-level lock."""

    @abstractmethod
    def list_for_order(
        self, order_id: int, finalized_only: bool = False
    ) -> Iterable[OrderPaperwork]:
        """Documents of one order in issue order."""

    @abstractmethod
    def count_issued_on(self, document_type: str, day: date) -> int:
        """Number of documents of ``document_type`` created on ``day``."""

    @abstractmethod
    def insert(self, document: OrderPaperwork) -> OrderPaperwork:
        """Insert a new document.

        Raises ``IntegrityError`` when the number is already used for the
        same order and type.
        """

    @abstractmethod
    def save(
        self,
        entity: OrderPaperwork,
        update_fields: Optional[Sequence[str]] = None,
    ) -> OrderPaperwork:
        """Update a document and store its pending domain events."""

    @abstractmethod
    def record_events(self, entity: OrderPaperwork) -> int:
        """Store pending domain events without writing the document row."""

