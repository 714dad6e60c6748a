"""Order, OrderItem, OrderStatusHistory and OrderPaperwork models.

Business rules implemented:
- Each status change generates a history record (old/new status, user, notes).
- ``order_number`` is unique; it is generated by ``modules.orders.numbering``
  before the insert and retried on collision.
- The delivery-address snapshot, total and items are fixed at creation.
- OrderItem snapshots the offering price (``unit_price``) and product name;
  ``subtotal`` is always ``quantity * unit_price`` and items are never updated.
- Company FK uses PROTECT; orders and documents are never deleted.
- A paperwork row stored as ``finalized`` rejects changes to its content;
  only the approval stamp may still be written.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Iterable

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel
from modules.orders.constants import (
    FROZEN_STATES,
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    ApprovalStatus,
    DocumentType,
    OrderStatus,
    PaperworkStatus,
)
from modules.orders.exceptions import (
    FinalizedPaperworkImmutable,
    OrderSnapshotImmutable,
)
from shared.domain.events import DomainEventMixin


class TracksLoadedValues(models.Model):
    """Remembers the column values a row had when it was read or last saved."""

    class Meta:
        abstract = True

    @classmethod
    def from_db(cls, db, field_names, values):
        instance = super().from_db(db, field_names, values)
        instance._loaded_values = dict(zip(field_names, values))
        return instance

    def changed_fields(self, names: Iterable[str]) -> list[str]:
        loaded: Dict[str, Any] = getattr(self, "_loaded_values", {})
        changed = []
        for name in names:
            attname = self._meta.get_field(name).attname
            if attname in loaded and loaded[attname] != getattr(self, attname):
                changed.append(name)
        return changed

    def remember_loaded_values(self) -> None:
        self._loaded_values = {
            field.attname: getattr(self, field.attname)
            for field in self._meta.concrete_fields
        }


class Order(DomainEventMixin, TracksLoadedValues, BaseModel):
    """Order aggregate root.

    ``order_number`` is the human-readable identifier
    (``YYYYMMDD-<company id>-<sequence>``); the numeric ``id`` is used for
    internal references and API look-ups.

    ``requires_approval`` is copied from the company at checkout.  While
    ``approval_status`` is not ``approved`` the order cannot advance.
    """

    SNAPSHOT_FIELDS = (
        "order_number",
        "company",
        "total_amount",
        "requires_approval",
        "delivery_name",
        "delivery_company",
        "delivery_postal_code",
        "delivery_prefecture",
        "delivery_city",
        "delivery_address1",
        "delivery_address2",
        "delivery_phone",
    )

    order_number = models.CharField(max_length=40, unique=True, editable=False)
    company = models.ForeignKey(
        "companies.Company",
        on_delete=models.PROTECT,
        related_name="orders",
    )
    placed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="placed_orders",
    )
    status = models.CharField(
        max_length=24,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
    )
    total_amount = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal("0.00"),
    )
    requires_approval = models.BooleanField(default=False)
    approval_status = models.CharField(
        max_length=16,
        choices=ApprovalStatus.choices,
        default=ApprovalStatus.NOT_REQUIRED,
    )
    approval_decided_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="approved_orders",
    )
    approval_decided_at = models.DateTimeField(null=True, blank=True)
    approval_rejection_reason = models.TextField(null=True, blank=True)  # noqa: DJ01

    delivery_name = models.CharField(max_length=255)
    delivery_company = models.CharField(max_length=255, blank=True, default="")
    delivery_postal_code = models.CharField(max_length=16)
    delivery_prefecture = models.CharField(max_length=32)
    delivery_city = models.CharField(max_length=128)
    delivery_address1 = models.CharField(max_length=255)
    delivery_address2 = models.CharField(max_length=255, blank=True, default="")
    delivery_phone = models.CharField(max_length=32)

    cancel_reason = models.TextField(null=True, blank=True)  # noqa: DJ01
    cancel_reject_reason = models.TextField(null=True, blank=True)  # noqa: DJ01

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="orders_status_idx"),
            models.Index(fields=["-created_at"], name="orders_created_idx"),
            models.Index(
                fields=["company", "-created_at"], name="orders_company_created_idx"
            ),
        ]

    # ------------------------------------------------------------------
    # State Machine helpers
    # ------------------------------------------------------------------

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATES

    @property
    def is_frozen(self) -> bool:
        """Delivered or anywhere in the cancellation branch."""
        return self.status in FROZEN_STATES

    @property
    def approval_completed(self) -> bool:
        return (
            not self.requires_approval
            or self.approval_status == ApprovalStatus.APPROVED
        )

    def can_transition_to(self, new_status: str) -> bool:
        """Check whether *new_status* is the next step of the fulfillment chain."""
        allowed = VALID_TRANSITIONS.get(self.status, set())
        return new_status in allowed

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self._state.adding:
            changed = self.changed_fields(self.SNAPSHOT_FIELDS)
            if changed:
                raise OrderSnapshotImmutable(
                    f"Order snapshot fields cannot change: {', '.join(changed)}."
                )
        super().save(*args, **kwargs)
        self.remember_loaded_values()

    def __str__(self) -> str:
        return f"{self.order_number} ({self.status})"


class OrderItem(BaseModel):
    """Line item linking an Order to a company offering.

    ``unit_price`` and ``product_name`` are snapshots taken at checkout;
    they never change when the offering is later repriced or renamed.
    Items are insert-only.
    """

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="items",
    )
    offering = models.ForeignKey(
        "products.CompanyProduct",
        on_delete=models.PROTECT,
        related_name="order_items",
    )
    product_name = models.CharField(max_length=255)
    package_label = models.CharField(max_length=48, blank=True, default="")
    quantity = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1)],
    )
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    subtotal = models.DecimalField(max_digits=14, decimal_places=2, editable=False)

    class Meta:
        db_table = "order_items"
        ordering = ["id"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="order_items_quantity_positive",
            ),
        ]

    def clean(self) -> None:
        super().clean()
        if self.quantity is not None and self.quantity < 1:
            raise ValidationError({"quantity": "Quantity must be at least 1."})

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self._state.adding:
            raise OrderSnapshotImmutable("Order items cannot be modified.")
        self.subtotal = self.quantity * self.unit_price
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.product_name} x{self.quantity} ({self.subtotal})"


class OrderStatusHistory(BaseModel):
    """Append-only audit trail for order status transitions.

    ``user`` is nullable: ``None`` means the change was performed by the
    system.  ``notes`` carries reasons (cancellation, rejection).
    """

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="status_history",
    )
    old_status = models.CharField(  # noqa: DJ01
        max_length=24,
        choices=OrderStatus.choices,
        null=True,
        blank=True,
    )
    new_status = models.CharField(max_length=24, choices=OrderStatus.choices)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
    )
    notes = models.TextField(blank=True, default="")

    class Meta:
        db_table = "order_status_history"
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(
                fields=["order", "-created_at"],
                name="osh_order_created_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.order} : {self.old_status} -> {self.new_status}"


class OrderPaperwork(DomainEventMixin, TracksLoadedValues, BaseModel):
    """Delivery note or receipt issued for an order.

    Documents do not copy order lines: rendering reads the order's
    (immutable) items.  Once stored as ``finalized`` the content fields are
    read-only; ``is_approved``/``approved_by``/``approved_at`` form the
    receipt approval stamp and may be written exactly once afterwards.
    """

    CONTENT_FIELDS = (
        "order",
        "document_type",
        "document_number",
        "delivery_date",
        "created_by",
        "status",
    )

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.PROTECT,
        related_name="paperwork",
    )
    document_type = models.CharField(max_length=16, choices=DocumentType.choices)
    document_number = models.CharField(max_length=32)
    status = models.CharField(
        max_length=16,
        choices=PaperworkStatus.choices,
        default=PaperworkStatus.DRAFT,
    )
    delivery_date = models.DateField()
    is_approved = models.BooleanField(default=False)
    approved_by = models.CharField(max_length=255, blank=True, default="")
    approved_at = models.DateTimeField(null=True, blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_paperwork",
    )

    class Meta:
        db_table = "order_paperwork"
        ordering = ["created_at", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["order", "document_type", "document_number"],
                name="order_paperwork_number_uniq",
            ),
        ]

    @property
    def is_finalized(self) -> bool:
        return self.status == PaperworkStatus.FINALIZED

    @property
    def stored_as_finalized(self) -> bool:
        loaded = getattr(self, "_loaded_values", {})
        return loaded.get("status") == PaperworkStatus.FINALIZED

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self._state.adding and self.stored_as_finalized:
            changed = self.changed_fields(self.CONTENT_FIELDS)
            if changed:
                raise FinalizedPaperworkImmutable(
                    f"Finalized document {self.document_number} cannot change: "
                    f"{', '.join(changed)}."
                )
        super().save(*args, **kwargs)
        self.remember_loaded_values()

    def __str__(self) -> str:
        return f"{self.document_number} ({self.document_type}, {self.status})"
