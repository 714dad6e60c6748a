"""Order DRF serializers for API input/output.

Input serializers reject malformed payloads (including unknown status
literals) before anything reaches the facade.  Business rules live in
the lifecycle components, which receive Pydantic DTOs from ``dtos.py``.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.orders.constants import CANCELLATION_STATES, DocumentType, OrderStatus
from modules.orders.display import display_label, display_status
from modules.orders.models import Order, OrderItem, OrderPaperwork, OrderStatusHistory

FULFILLMENT_STATUS_CHOICES = [
    (value, label)
    for value, label in OrderStatus.choices
    if value not in CANCELLATION_STATES
]

BULK_STATUS_MAX_ORDERS = 500

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class DeliveryInfoSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    company = serializers.CharField(
        max_length=255, required=False, default="", allow_blank=True
    )
    postal_code = serializers.CharField(max_length=16)
    prefecture = serializers.CharField(max_length=32)
    city = serializers.CharField(max_length=128)
    address1 = serializers.CharField(max_length=255)
    address2 = serializers.CharField(
        max_length=255, required=False, default="", allow_blank=True
    )
    phone = serializers.CharField(max_length=32)


class CreateOrderItemSerializer(serializers.Serializer):
    """Validates a single item in an order creation request."""

    offering_id = serializers.IntegerField(min_value=1)
    quantity = serializers.IntegerField(min_value=1)
    unit_price = serializers.DecimalField(
        max_digits=12, decimal_places=2, required=False, allow_null=True
    )


class CreateOrderSerializer(serializers.Serializer):
    """Validates the order creation request payload."""

    items = CreateOrderItemSerializer(many=True, allow_empty=False)
    delivery = DeliveryInfoSerializer()
    total_amount = serializers.DecimalField(
        max_digits=14, decimal_places=2, required=False, allow_null=True
    )


class ReasonSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=2000)


class StatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=FULFILLMENT_STATUS_CHOICES)


class BulkStatusUpdateSerializer(serializers.Serializer):
    order_ids = serializers.ListField(
        child=serializers.IntegerField(min_value=1),
        allow_empty=False,
        max_length=BULK_STATUS_MAX_ORDERS,
    )
    status = serializers.ChoiceField(choices=FULFILLMENT_STATUS_CHOICES)


class ApprovalDecisionSerializer(serializers.Serializer):
    action = serializers.ChoiceField(choices=["approve", "reject"])
    reason = serializers.CharField(max_length=2000, allow_blank=True, default="")


class CreateDocumentSerializer(serializers.Serializer):
    document_type = serializers.ChoiceField(choices=DocumentType.choices)
    delivery_date = serializers.DateField(required=False, allow_null=True)


class ApproveDocumentSerializer(serializers.Serializer):
    approved_by = serializers.CharField(max_length=255)


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class OrderItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderItem
        fields = [
            "id",
            "offering_id",
            "product_name",
            "package_label",
            "quantity",
            "unit_price",
            "subtotal",
        ]
        read_only_fields = fields


class StatusHistorySerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderStatusHistory
        fields = ["id", "old_status", "new_status", "user_id", "notes", "created_at"]
        read_only_fields = fields


class DisplayStatusMixin(serializers.Serializer):
    display_status = serializers.SerializerMethodField()
    display_label = serializers.SerializerMethodField()

    def get_display_status(self, order: Order) -> str:
        return str(display_status(order))

    def get_display_label(self, order: Order) -> str:
        return display_label(order)


class OrderSerializer(DisplayStatusMixin, serializers.ModelSerializer):
    """Read serializer for orders with nested items and history."""

    items = OrderItemSerializer(many=True, read_only=True)
    status_history = StatusHistorySerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "company_id",
            "status",
            "display_status",
            "display_label",
            "total_amount",
            "requires_approval",
            "approval_status",
            "approval_rejection_reason",
            "delivery_name",
            "delivery_company",
            "delivery_postal_code",
            "delivery_prefecture",
            "delivery_city",
            "delivery_address1",
            "delivery_address2",
            "delivery_phone",
            "cancel_reason",
            "cancel_reject_reason",
            "created_at",
            "updated_at",
            "items",
            "status_history",
        ]
        read_only_fields = fields


class OrderListSerializer(DisplayStatusMixin, serializers.ModelSerializer):
    """Lightweight serializer for order list (no nested relations)."""

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "company_id",
            "status",
            "approval_status",
            "display_status",
            "display_label",
            "total_amount",
            "created_at",
        ]
        read_only_fields = fields


class PaperworkSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderPaperwork
        fields = [
            "id",
            "order_id",
            "document_type",
            "document_number",
            "status",
            "delivery_date",
            "is_approved",
            "approved_by",
            "approved_at",
            "created_at",
        ]
        read_only_fields = fields


class SkippedOrderSerializer(serializers.Serializer):
    order_id = serializers.IntegerField()
    reason = serializers.CharField()


class BulkStatusResultSerializer(serializers.Serializer):
    status = serializers.CharField()
    updated_count = serializers.IntegerField()
    skipped_count = serializers.IntegerField()
    updated = serializers.ListField(child=serializers.IntegerField())
    skipped = SkippedOrderSerializer(many=True)
