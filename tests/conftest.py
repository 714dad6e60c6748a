from __future__ import annotations

from decimal import Decimal

import pytest

from django.contrib.auth import get_user_model

from rest_framework.test import APIClient

from modules.companies.models import Company, CompanyMember
from modules.companies.repositories import CompanyDjangoRepository
from modules.orders.constants import OrderStatus
from modules.orders.dtos import (
    Actor,
    CreateOrderDTO,
    CreateOrderItemDTO,
    DeliveryInfoDTO,
)
from modules.orders.facade import OrderFacade
from modules.orders.repositories import (
    OrderDjangoRepository,
    PaperworkDjangoRepository,
)
from modules.products.models import CompanyProduct, ProductMaster
from modules.products.repositories.django_repository import (
    CompanyProductDjangoRepository,
)

User = get_user_model()

FULFILLMENT_PATH = [
    OrderStatus.CONFIRMED,
    OrderStatus.PROCESSING,
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
]


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


# ---------------------------------------------------------------------------
# Companies and catalogue
# ---------------------------------------------------------------------------


@pytest.fixture()
def company():
    return Company.objects.create(code="acme", name="アクメ商事", phone="03-1234-5678")


@pytest.fixture()
def approval_company():
    return Company.objects.create(
        code="kanri", name="管理工業", requires_order_approval=True
    )


@pytest.fixture()
def other_company():
    return Company.objects.create(code="other", name="他社運輸")


@pytest.fixture()
def engine_oil():
    return ProductMaster.objects.create(
        code="eng-10w30", name="エンジンオイル 10W-30", capacity="20", unit="L"
    )


@pytest.fixture()
def grease():
    return ProductMaster.objects.create(
        code="grs-2", name="リチウムグリース No.2", capacity="400", unit="g"
    )


@pytest.fixture()
def oil_offering(company, engine_oil):
    return CompanyProduct.objects.create(
        company=company, product_master=engine_oil, price=Decimal("1000.00")
    )


@pytest.fixture()
def grease_offering(company, grease):
    return CompanyProduct.objects.create(
        company=company, product_master=grease, price=Decimal("500.00")
    )


@pytest.fixture()
def approval_offering(approval_company, engine_oil):
    return CompanyProduct.objects.create(
        company=approval_company, product_master=engine_oil, price=Decimal("1200.00")
    )


# ---------------------------------------------------------------------------
# Users and actors
# ---------------------------------------------------------------------------


@pytest.fixture()
def staff_user():
    return User.objects.create_user(
        username="staff", password="testpass123", is_staff=True
    )


@pytest.fixture()
def member_user(company):
    user = User.objects.create_user(username="member", password="testpass123")
    CompanyMember.objects.create(user=user, company=company)
    return user


@pytest.fixture()
def other_member_user(other_company):
    user = User.objects.create_user(username="outsider", password="testpass123")
    CompanyMember.objects.create(user=user, company=other_company)
    return user


@pytest.fixture()
def requester_user(approval_company):
    user = User.objects.create_user(username="requester", password="testpass123")
    CompanyMember.objects.create(user=user, company=approval_company)
    return user


@pytest.fixture()
def approver_user(approval_company):
    user = User.objects.create_user(username="approver", password="testpass123")
    CompanyMember.objects.create(
        user=user, company=approval_company, can_approve_orders=True
    )
    return user


@pytest.fixture()
def client_for():
    """Factory returning an APIClient force-authenticated as ``user``."""

    def _client(user):
        client = APIClient()
        client.force_authenticate(user=user)
        return client

    return _client


@pytest.fixture()
def staff_client(client_for, staff_user):
    return client_for(staff_user)


@pytest.fixture()
def member_client(client_for, member_user):
    return client_for(member_user)


@pytest.fixture()
def staff_actor(staff_user):
    return Actor(user_id=staff_user.id, is_staff=True, display_name="staff")


@pytest.fixture()
def member_actor(member_user, company):
    return Actor(user_id=member_user.id, company_id=company.id, display_name="member")


@pytest.fixture()
def other_member_actor(other_member_user, other_company):
    return Actor(user_id=other_member_user.id, company_id=other_company.id)


@pytest.fixture()
def requester_actor(requester_user, approval_company):
    return Actor(user_id=requester_user.id, company_id=approval_company.id)


@pytest.fixture()
def approver_actor(approver_user, approval_company):
    return Actor(
        user_id=approver_user.id,
        company_id=approval_company.id,
        can_approve_orders=True,
    )


# ---------------------------------------------------------------------------
# Facade and orders
# ---------------------------------------------------------------------------


@pytest.fixture()
def facade():
    return OrderFacade(
        order_repository=OrderDjangoRepository(),
        paperwork_repository=PaperworkDjangoRepository(),
        company_repository=CompanyDjangoRepository(),
        offering_repository=CompanyProductDjangoRepository(),
    )


@pytest.fixture()
def delivery():
    return DeliveryInfoDTO(
        name="山田 太郎",
        company="アクメ商事",
        postal_code="100-0001",
        prefecture="東京都",
        city="千代田区",
        address1="千代田1-1",
        phone="03-1234-5678",
    )


@pytest.fixture()
def order_dto(oil_offering, grease_offering, delivery):
    """Three cans of oil at 1000 and one grease at 500: total 3500."""
    return CreateOrderDTO(
        items=[
            CreateOrderItemDTO(offering_id=oil_offering.id, quantity=3),
            CreateOrderItemDTO(offering_id=grease_offering.id, quantity=1),
        ],
        delivery=delivery,
    )


@pytest.fixture()
def place_order(facade, order_dto, member_actor):
    """Factory placing a fresh order for the member's company."""

    def _place(dto=None, actor=None):
        return facade.create_order(dto or order_dto, actor or member_actor)

    return _place


@pytest.fixture()
def advance(facade, staff_actor):
    """Factory moving an order along the fulfillment chain up to ``target``."""

    def _advance(order, target):
        for status in FULFILLMENT_PATH:
            facade.set_status(order.id, status, staff_actor)
            if status == target:
                break
        return facade.get_order(order.id, staff_actor)

    return _advance


@pytest.fixture()
def pending_order(place_order):
    return place_order()


@pytest.fixture()
def confirmed_order(place_order, advance):
    return advance(place_order(), OrderStatus.CONFIRMED)


@pytest.fixture()
def delivered_order(place_order, advance):
    return advance(place_order(), OrderStatus.DELIVERED)
