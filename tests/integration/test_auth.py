"""Integration tests for authentication, roles and throttling.

Validates:
  - /health is public (plain Django view, no DRF).
  - Protected DRF endpoints return 401 without a valid token.
  - SimpleJWT tokens issued by /api/v1/auth/token/ are accepted.
  - /api/v1/me reports the role the order core sees.
  - Order creation has its own throttle scope.
"""

import pytest
from rest_framework.throttling import ScopedRateThrottle

pytestmark = pytest.mark.integration


class TestPublicEndpoints:
    def test_health_is_public(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestProtectedEndpoints:
    def test_no_token_returns_401(self, api_client):
        response = api_client.get("/api/v1/me")
        assert response.status_code == 401

    def test_invalid_token_returns_401(self, api_client):
        api_client.credentials(HTTP_AUTHORIZATION="Bearer invalid.token.here")
        response = api_client.get("/api/v1/me")
        assert response.status_code == 401

    def test_401_includes_www_authenticate_header(self, api_client):
        response = api_client.get("/api/v1/me")
        assert "Bearer" in response.get("WWW-Authenticate", "")

    def test_issued_token_is_accepted(self, api_client, customer):
        tokens = api_client.post(
            "/api/v1/auth/token/",
            {"username": "customer", "password": "testpass123"},
            format="json",
        ).json()

        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {tokens['access']}")
        response = api_client.get("/api/v1/me")

        assert response.status_code == 200
        assert response.json()["id"] == customer.pk


class TestMe:
    @pytest.mark.parametrize(
        "fixture, role",
        [
            ("customer", "customer"),
            ("seller", "business"),
            ("staff", "staff"),
            ("admin", "admin"),
        ],
    )
    def test_reports_role(self, request, client_for, fixture, role):
        user = request.getfixturevalue(fixture)
        data = client_for(user).get("/api/v1/me").json()
        assert data == {"id": user.pk, "username": user.username, "role": role}


class TestThrottling:
    def test_order_creation_is_throttled(
        self, monkeypatch, client_for, customer, address, product_a
    ):
        monkeypatch.setitem(ScopedRateThrottle.THROTTLE_RATES, "order_creation", "2/minute")
        client = client_for(customer)
        payload = {
            "shipping_address_id": str(address.id),
            "items": [{"product_id": str(product_a.id), "quantity": 1}],
        }

        for _ in range(2):
            assert client.post("/api/v1/orders/", payload, format="json").status_code == 201

        response = client.post("/api/v1/orders/", payload, format="json")
        assert response.status_code == 429
        assert response.json()["errors"][0]["code"] == "throttled"

    def test_listing_uses_its_own_scope(
        self, monkeypatch, client_for, customer
    ):
        monkeypatch.setitem(ScopedRateThrottle.THROTTLE_RATES, "order_creation", "1/minute")
        client = client_for(customer)

        for _ in range(3):
            assert client.get("/api/v1/orders/").status_code == 200
