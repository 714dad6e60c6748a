"""Order DTOs for the lifecycle components and the facade.

Framework-agnostic data transfer objects using Pydantic v2.  These are the
contracts between the API layer (DRF serializers) and the facade.  DTOs are
immutable (``frozen=True``).

- ``Actor``: who is calling (staff, company member, approver).
- ``DeliveryInfoDTO``: delivery-address snapshot copied onto the order.
- ``CreateOrderItemDTO`` / ``CreateOrderDTO``: checkout input.
- ``SkippedOrder`` / ``BulkStatusResult``: outcome of a bulk status update.
- ``RenderedDocument``: output of paperwork rendering.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

if TYPE_CHECKING:
    from modules.orders.models import Order


class Actor(BaseModel):
    """The authenticated caller, resolved once per request."""

    model_config = ConfigDict(frozen=True)

    user_id: Optional[int] = None
    company_id: Optional[int] = None
    is_staff: bool = False
    can_approve_orders: bool = False
    display_name: str = ""

    def owns(self, order: Order) -> bool:
        return self.company_id is not None and order.company_id == self.company_id


# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class DeliveryInfoDTO(BaseModel):
    """Delivery address captured at checkout; immutable afterwards."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=255)
    company: str = Field(default="", max_length=255)
    postal_code: str = Field(min_length=1, max_length=16)
    prefecture: str = Field(min_length=1, max_length=32)
    city: str = Field(min_length=1, max_length=128)
    address1: str = Field(min_length=1, max_length=255)
    address2: str = Field(default="", max_length=255)
    phone: str = Field(min_length=1, max_length=32)


class CreateOrderItemDTO(BaseModel):
    """A single checkout line.

    ``unit_price`` is what the client displayed; it is only compared with
    the authoritative offering price, never trusted.
    """

    model_config = ConfigDict(frozen=True)

    offering_id: int
    quantity: int
    unit_price: Optional[Decimal] = None

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v


class CreateOrderDTO(BaseModel):
    """Immutable DTO for order creation requests.

    Validates:
    - ``items`` must contain at least one item.
    - An offering appears at most once per order.
    """

    model_config = ConfigDict(frozen=True)

    items: List[CreateOrderItemDTO]
    delivery: DeliveryInfoDTO
    total_amount: Optional[Decimal] = None

    @field_validator("items")
    @classmethod
    def items_must_not_be_empty(
        cls, v: List[CreateOrderItemDTO]
    ) -> List[CreateOrderItemDTO]:
        if not v:
            raise ValueError("Order must have at least one item.")
        return v

    @model_validator(mode="after")
    def no_duplicate_offerings(self):
        offering_ids = [item.offering_id for item in self.items]
        if len(offering_ids) != len(set(offering_ids)):
            raise ValueError("Duplicate offerings are not allowed in the same order.")
        return self


# ---------------------------------------------------------------------------
# Output DTOs
# ---------------------------------------------------------------------------


class SkippedOrder(BaseModel):
    model_config = ConfigDict(frozen=True)

    order_id: int
    reason: str


class BulkStatusResult(BaseModel):
    """Per-order outcome of a bulk status update."""

    model_config = ConfigDict(frozen=True)

    status: str
    updated: List[int] = Field(default_factory=list)
    skipped: List[SkippedOrder] = Field(default_factory=list)

    @property
    def updated_count(self) -> int:
        return len(self.updated)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)


class RenderedDocument(BaseModel):
    """A rendered delivery note or receipt."""

    model_config = ConfigDict(frozen=True)

    filename: str
    content_type: str
    content: bytes
    checksum: str
