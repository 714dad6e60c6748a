"""Unit tests for ``OrderFacade`` checkout and capability checks.

Covers:
- Checkout recomputes prices from the offerings and snapshots items.
- Client prices/totals that disagree are rejected; matching ones pass.
- Unknown, foreign and disabled offerings are rejected.
- Company membership requirements (none, inactive, staff).
- Order visibility: own company vs. other company vs. staff.
- Connectivity failures surface as transient errors.
"""

from __future__ import annotations

from decimal import Decimal

import pytest
from django.db import InterfaceError, OperationalError

from modules.core.models import OutboxEvent
from modules.orders.constants import ApprovalStatus, OrderStatus
from modules.orders.dtos import CreateOrderDTO, CreateOrderItemDTO
from modules.orders.exceptions import (
    CompanyRequired,
    OfferingNotFound,
    OrderNotAccessible,
    OrderNotFound,
    PriceMismatch,
)
from modules.orders.models import Order, OrderStatusHistory
from modules.products.models import CompanyProduct
from shared.domain.errors import TransientStoreError

pytestmark = pytest.mark.unit


# ===========================================================================
# Checkout
# ===========================================================================


class TestCreateOrder:
    def test_order_total_and_items(self, pending_order, oil_offering, company):
        assert pending_order.company_id == company.id
        assert pending_order.total_amount == Decimal("3500.00")
        assert pending_order.approval_status == ApprovalStatus.NOT_REQUIRED
        items = {item.offering_id: item for item in pending_order.items.all()}
        assert items[oil_offering.id].quantity == 3
        assert items[oil_offering.id].unit_price == Decimal("1000.00")
        assert items[oil_offering.id].product_name == "エンジンオイル 10W-30"

    def test_delivery_snapshot_is_copied(self, pending_order):
        assert pending_order.delivery_name == "山田 太郎"
        assert pending_order.delivery_company == "アクメ商事"
        assert pending_order.delivery_prefecture == "東京都"

    def test_initial_history_and_event(self, pending_order, member_actor):
        history = OrderStatusHistory.objects.get(order=pending_order)
        assert history.old_status is None
        assert history.new_status == OrderStatus.PENDING
        assert history.user_id == member_actor.user_id

        event = OutboxEvent.objects.get(
            event_type="OrderCreated", aggregate_id=str(pending_order.id)
        )
        assert event.payload["payload"]["total_amount"] == "3500.00"
        assert event.payload["payload"]["item_count"] == 2

    def test_matching_client_prices_are_accepted(
        self, place_order, oil_offering, grease_offering, delivery
    ):
        dto = CreateOrderDTO(
            items=[
                CreateOrderItemDTO(
                    offering_id=oil_offering.id,
                    quantity=3,
                    unit_price=Decimal("1000"),
                ),
                CreateOrderItemDTO(
                    offering_id=grease_offering.id,
                    quantity=1,
                    unit_price=Decimal("500.00"),
                ),
            ],
            delivery=delivery,
            total_amount=Decimal("3500"),
        )
        assert place_order(dto).total_amount == Decimal("3500.00")

    def test_stale_unit_price_is_rejected(self, place_order, oil_offering, delivery):
        dto = CreateOrderDTO(
            items=[
                CreateOrderItemDTO(
                    offering_id=oil_offering.id, quantity=1, unit_price=Decimal("900")
                )
            ],
            delivery=delivery,
        )

        with pytest.raises(PriceMismatch):
            place_order(dto)
        assert Order.objects.count() == 0

    def test_wrong_total_is_rejected(self, place_order, oil_offering, delivery):
        dto = CreateOrderDTO(
            items=[CreateOrderItemDTO(offering_id=oil_offering.id, quantity=2)],
            delivery=delivery,
            total_amount=Decimal("1000"),
        )

        with pytest.raises(PriceMismatch):
            place_order(dto)

    def test_unknown_offering(self, place_order, delivery):
        dto = CreateOrderDTO(
            items=[CreateOrderItemDTO(offering_id=987_654, quantity=1)],
            delivery=delivery,
        )
        with pytest.raises(OfferingNotFound):
            place_order(dto)

    def test_other_company_offering(
        self, place_order, approval_offering, delivery
    ):
        dto = CreateOrderDTO(
            items=[CreateOrderItemDTO(offering_id=approval_offering.id, quantity=1)],
            delivery=delivery,
        )
        with pytest.raises(OfferingNotFound):
            place_order(dto)

    def test_disabled_offering(self, place_order, order_dto, oil_offering):
        CompanyProduct.objects.filter(id=oil_offering.id).update(enabled=False)

        with pytest.raises(OfferingNotFound):
            place_order(order_dto)

    def test_staff_without_company_cannot_order(self, place_order, staff_actor):
        with pytest.raises(CompanyRequired):
            place_order(actor=staff_actor)

    def test_inactive_company_cannot_order(self, place_order, company):
        company.is_active = False
        company.save()

        with pytest.raises(CompanyRequired):
            place_order()


# ===========================================================================
# Visibility
# ===========================================================================


class TestOrderVisibility:
    def test_member_sees_own_order(self, facade, pending_order, member_actor):
        assert facade.get_order(pending_order.id, member_actor).id == pending_order.id

    def test_other_company_gets_not_accessible(
        self, facade, pending_order, other_member_actor
    ):
        with pytest.raises(OrderNotAccessible):
            facade.get_order(pending_order.id, other_member_actor)

    def test_missing_order_looks_the_same_to_members(self, facade, member_actor):
        with pytest.raises(OrderNotAccessible):
            facade.get_order(999_999, member_actor)

    def test_staff_get_not_found(self, facade, staff_actor):
        with pytest.raises(OrderNotFound):
            facade.get_order(999_999, staff_actor)

    def test_list_is_scoped_to_company(
        self, facade, pending_order, member_actor, other_member_actor, staff_actor
    ):
        assert list(facade.list_orders(member_actor)) == [pending_order]
        assert list(facade.list_orders(other_member_actor)) == []
        assert pending_order in list(facade.list_orders(staff_actor))

    def test_list_without_company(self, facade, requester_user):
        from modules.orders.dtos import Actor

        with pytest.raises(CompanyRequired):
            facade.list_orders(Actor(user_id=requester_user.id))


# ===========================================================================
# Store failures
# ===========================================================================


class TestTransientErrors:
    @pytest.mark.parametrize("error", [OperationalError, InterfaceError])
    def test_connection_errors_are_transient(
        self, facade, member_actor, monkeypatch, error
    ):
        def unavailable(order_id):
            raise error("connection already closed")

        monkeypatch.setattr(facade._order_repo, "get_by_id", unavailable)

        with pytest.raises(TransientStoreError):
            facade.get_order(1, member_actor)

    def test_domain_errors_are_not_translated(self, facade, member_actor):
        with pytest.raises(OrderNotAccessible):
            facade.get_order(1, member_actor)
