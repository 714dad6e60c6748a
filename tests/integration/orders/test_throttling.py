"""Integration tests for per-action rate limits on the order API.

Covers:
- Checkout is limited by the ``order_creation`` scope.
- Reads use the separate ``order_listing`` scope.
"""

from __future__ import annotations

import pytest
from django.core.cache import cache
from rest_framework.throttling import ScopedRateThrottle

from modules.orders.views import OrderViewSet

pytestmark = pytest.mark.integration

ORDERS_URL = "/api/v1/orders/"


@pytest.fixture()
def scoped_throttling(monkeypatch):
    monkeypatch.setattr(OrderViewSet, "throttle_classes", [ScopedRateThrottle])
    cache.clear()
    yield
    cache.clear()


@pytest.fixture()
def payload(oil_offering):
    return {
        "items": [{"offering_id": oil_offering.id, "quantity": 1}],
        "delivery": {
            "name": "山田 太郎",
            "postal_code": "100-0001",
            "prefecture": "東京都",
            "city": "千代田区",
            "address1": "千代田1-1",
            "phone": "03-1234-5678",
        },
    }


@pytest.mark.usefixtures("scoped_throttling")
class TestOrderThrottling:
    def test_sixth_checkout_in_a_minute_is_throttled(self, member_client, payload):
        codes = [
            member_client.post(ORDERS_URL, payload, format="json").status_code
            for _ in range(6)
        ]

        assert codes == [201] * 5 + [429]

    def test_throttled_response_uses_standard_format(self, member_client, payload):
        for _ in range(5):
            member_client.post(ORDERS_URL, payload, format="json")

        response = member_client.post(ORDERS_URL, payload, format="json")

        assert response.json()["errors"][0]["code"] == "throttled"

    def test_reads_are_counted_separately(self, member_client, payload):
        for _ in range(5):
            member_client.post(ORDERS_URL, payload, format="json")

        assert member_client.get(ORDERS_URL).status_code == 200
