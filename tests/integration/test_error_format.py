"""Integration tests for standardized error responses."""

import pytest

from modules.orders.constants import OrderStatus

pytestmark = pytest.mark.integration


class TestStandardizedErrors:
    def test_auth_error_has_standard_format(self, api_client):
        response = api_client.get("/api/v1/orders/")
        assert response.status_code == 401
        data = response.json()
        assert data["type"] == "client_error"
        assert isinstance(data["errors"], list)
        assert data["errors"]
        assert "code" in data["errors"][0]
        assert "detail" in data["errors"][0]

    def test_validation_error_has_standard_format(self, member_client):
        response = member_client.post(
            "/api/v1/orders/", data="{", content_type="application/json"
        )
        assert response.status_code == 400
        data = response.json()
        assert "type" in data
        assert isinstance(data["errors"], list)

    def test_rule_violation_is_conflict(self, staff_client, pending_order):
        response = staff_client.put(
            f"/api/v1/admin/orders/{pending_order.id}/status/",
            {"status": OrderStatus.DELIVERED},
            format="json",
        )

        assert response.status_code == 409
        error = response.json()["errors"][0]
        assert error["code"] == "invalid_transition"
        assert "pending" in error["detail"]
        assert error["attr"] is None

    def test_not_accessible_is_not_found(self, member_client):
        response = member_client.get("/api/v1/orders/424242/")

        assert response.status_code == 404
        assert response.json() == {
            "type": "client_error",
            "errors": [
                {
                    "code": "not_accessible",
                    "detail": response.json()["errors"][0]["detail"],
                    "attr": None,
                }
            ],
        }

    def test_non_numeric_id_does_not_route(self, member_client):
        response = member_client.get("/api/v1/orders/abc/")
        assert response.status_code == 404
