"""Order API views.

Exposes ``OrderFacade`` over HTTP with DRF ViewSets:

- ``OrderViewSet``: storefront and staff reads, checkout, cancellation
  requests, internal approval and document download.
- ``AdminOrderViewSet``: staff-only fulfillment, cancellation arbitration
  and paperwork management.

Views never catch domain errors: the configured exception handler maps
them to standardized error responses.
"""

from __future__ import annotations

from django.http import HttpResponse
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.permissions import IsAdminUser, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.companies.repositories import CompanyDjangoRepository
from modules.core.pagination import StandardResultsSetPagination
from modules.orders.dtos import (
    Actor,
    CreateOrderDTO,
    CreateOrderItemDTO,
    DeliveryInfoDTO,
)
from modules.orders.facade import OrderFacade
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.repositories import OrderDjangoRepository, PaperworkDjangoRepository
from modules.orders.serializers import (
    ApprovalDecisionSerializer,
    ApproveDocumentSerializer,
    BulkStatusResultSerializer,
    BulkStatusUpdateSerializer,
    CreateDocumentSerializer,
    CreateOrderSerializer,
    OrderListSerializer,
    OrderSerializer,
    PaperworkSerializer,
    ReasonSerializer,
    StatusUpdateSerializer,
)
from modules.products.repositories.django_repository import (
    CompanyProductDjangoRepository,
)

DOCUMENT_ID_PATTERN = r"(?P<document_id>\d+)"


def build_facade(company_repository: CompanyDjangoRepository) -> OrderFacade:
    return OrderFacade(
        order_repository=OrderDjangoRepository(),
        paperwork_repository=PaperworkDjangoRepository(),
        company_repository=company_repository,
        offering_repository=CompanyProductDjangoRepository(),
    )


class OrderFacadeMixin:
    """Builds the facade and resolves the calling ``Actor`` once per request."""

    lookup_value_regex = r"\d+"

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._company_repo = CompanyDjangoRepository()
        self._facade = build_facade(self._company_repo)

    def get_actor(self, request: Request) -> Actor:
        if getattr(self, "_actor", None) is None:
            user = request.user
            membership = self._company_repo.get_membership(user.pk)
            self._actor = Actor(
                user_id=user.pk,
                company_id=membership.company_id if membership else None,
                is_staff=user.is_staff,
                can_approve_orders=bool(membership and membership.can_approve_orders),
                display_name=user.get_full_name() or user.get_username(),
            )
        return self._actor


class OrderViewSet(OrderFacadeMixin, GenericViewSet):
    """Orders as seen by their company (staff see all of them)."""

    queryset = Order.objects.none()
    serializer_class = OrderSerializer
    permission_classes = [IsAuthenticated]
    filterset_class = OrderFilter
    search_fields = ["order_number", "delivery_name", "delivery_company"]
    ordering_fields = ["created_at", "total_amount", "status"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]

    def get_throttles(self) -> list[BaseThrottle]:
        """Per-action throttle scopes."""
        throttle_scope: str | None
        if self.action == "create":
            throttle_scope = "order_creation"
        elif self.action in {"list", "retrieve", "pending_approvals"}:
            throttle_scope = "order_listing"
        else:
            throttle_scope = None
        self.throttle_scope = throttle_scope
        return super().get_throttles()

    def get_queryset(self):
        if getattr(self, "swagger_fake_view", False):
            return Order.objects.none()
        return self._facade.list_orders(self.get_actor(self.request))

    # ------------------------------------------------------------------
    # Checkout
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/

        Client prices are optional; when given they must match the
        current offering prices.
        """
        create_serializer = CreateOrderSerializer(data=request.data)
        create_serializer.is_valid(raise_exception=True)

        data = create_serializer.validated_data
        dto = CreateOrderDTO(
            items=[
                CreateOrderItemDTO(
                    offering_id=item["offering_id"],
                    quantity=item["quantity"],
                    unit_price=item.get("unit_price"),
                )
                for item in data["items"]
            ],
            delivery=DeliveryInfoDTO(**data["delivery"]),
            total_amount=data.get("total_amount"),
        )
        order = self._facade.create_order(dto, self.get_actor(request))
        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/

        Filtering is handled by ``OrderFilter``, ordering by
        ``OrderingFilter``.  Results are paginated.
        """
        queryset = self.filter_queryset(self.get_queryset())

        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(queryset, request, view=self)
        serializer = OrderListSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str) -> Response:
        """GET /api/v1/orders/{pk}/"""
        order = self._facade.get_order(int(pk), self.get_actor(request))
        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Cancellation request / internal approval
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"], url_path="cancel-request")
    def cancel_request(self, request: Request, pk: str) -> Response:
        """POST /api/v1/orders/{pk}/cancel-request/"""
        serializer = ReasonSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = self._facade.request_cancellation(
            int(pk), serializer.validated_data["reason"], self.get_actor(request)
        )
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"])
    def approval(self, request: Request, pk: str) -> Response:
        """POST /api/v1/orders/{pk}/approval/  ``{"action", "reason"}``

        ``reason`` is required when ``action`` is ``reject``.
        """
        serializer = ApprovalDecisionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = self._facade.record_approval_decision(
            int(pk),
            serializer.validated_data["action"] == "approve",
            self.get_actor(request),
            serializer.validated_data["reason"],
        )
        return Response(OrderSerializer(order).data)

    @action(detail=False, methods=["get"], url_path="pending-approvals")
    def pending_approvals(self, request: Request) -> Response:
        """GET /api/v1/orders/pending-approvals/ (company approvers only)"""
        queryset = self._facade.list_pending_approvals(self.get_actor(request))

        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(queryset, request, view=self)
        serializer = OrderListSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    @action(detail=True, methods=["get"])
    def documents(self, request: Request, pk: str) -> Response:
        """GET /api/v1/orders/{pk}/documents/ (finalized only for customers)"""
        documents = self._facade.list_documents(int(pk), self.get_actor(request))
        return Response(PaperworkSerializer(documents, many=True).data)

    @action(
        detail=True,
        methods=["get"],
        url_path=f"documents/{DOCUMENT_ID_PATTERN}/download",
    )
    def download(self, request: Request, pk: str, document_id: str) -> HttpResponse:
        """GET /api/v1/orders/{pk}/documents/{document_id}/download/"""
        rendered = self._facade.render_document(
            int(pk), int(document_id), self.get_actor(request)
        )
        response = HttpResponse(rendered.content, content_type=rendered.content_type)
        response["Content-Disposition"] = f'attachment; filename="{rendered.filename}"'
        response["X-Content-SHA256"] = rendered.checksum
        return response


class AdminOrderViewSet(OrderFacadeMixin, GenericViewSet):
    """Staff console operations."""

    queryset = Order.objects.none()
    serializer_class = OrderSerializer
    permission_classes = [IsAdminUser]

    # ------------------------------------------------------------------
    # Fulfillment status
    # ------------------------------------------------------------------

    @action(detail=True, methods=["put"], url_path="status")
    def set_status(self, request: Request, pk: str) -> Response:
        """PUT /api/v1/admin/orders/{pk}/status/"""
        serializer = StatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = self._facade.set_status(
            int(pk), serializer.validated_data["status"], self.get_actor(request)
        )
        return Response(OrderSerializer(order).data)

    @action(detail=False, methods=["put"], url_path="bulk-status")
    def bulk_status(self, request: Request) -> Response:
        """PUT /api/v1/admin/orders/bulk-status/

        Always 200: per-order outcomes are reported in ``updated`` and
        ``skipped``.
        """
        serializer = BulkStatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = self._facade.bulk_set_status(
            serializer.validated_data["order_ids"],
            serializer.validated_data["status"],
            self.get_actor(request),
        )
        return Response(BulkStatusResultSerializer(result).data)

    # ------------------------------------------------------------------
    # Cancellation arbitration
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"], url_path="approve-cancel")
    def approve_cancel(self, request: Request, pk: str) -> Response:
        order = self._facade.approve_cancellation(int(pk), self.get_actor(request))
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"], url_path="reject-cancel")
    def reject_cancel(self, request: Request, pk: str) -> Response:
        serializer = ReasonSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = self._facade.reject_cancellation(
            int(pk), serializer.validated_data["reason"], self.get_actor(request)
        )
        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Paperwork
    # ------------------------------------------------------------------

    @action(detail=True, methods=["get", "post"])
    def documents(self, request: Request, pk: str) -> Response:
        """GET/POST /api/v1/admin/orders/{pk}/documents/"""
        actor = self.get_actor(request)
        if request.method == "GET":
            documents = self._facade.list_documents(int(pk), actor)
            return Response(PaperworkSerializer(documents, many=True).data)

        serializer = CreateDocumentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        document = self._facade.create_document(
            int(pk),
            serializer.validated_data["document_type"],
            serializer.validated_data.get("delivery_date"),
            actor,
        )
        return Response(
            PaperworkSerializer(document).data, status=status.HTTP_201_CREATED
        )

    @action(
        detail=True,
        methods=["post"],
        url_path=f"documents/{DOCUMENT_ID_PATTERN}/finalize",
    )
    def finalize_document(
        self, request: Request, pk: str, document_id: str
    ) -> Response:
        document = self._facade.finalize_document(
            int(pk), int(document_id), self.get_actor(request)
        )
        return Response(PaperworkSerializer(document).data)

    @action(
        detail=True,
        methods=["post"],
        url_path=f"documents/{DOCUMENT_ID_PATTERN}/approve",
    )
    def approve_document(
        self, request: Request, pk: str, document_id: str
    ) -> Response:
        serializer = ApproveDocumentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        document = self._facade.approve_document(
            int(pk),
            int(document_id),
            serializer.validated_data["approved_by"],
            self.get_actor(request),
        )
        return Response(PaperworkSerializer(document).data)
