import logging
import uuid

import pytest

pytestmark = pytest.mark.integration


class TestCorrelationIdMiddleware:
    def test_returns_provided_request_id(self, client):
        custom_id = "my-custom-request-id-123"
        response = client.get("/health", HTTP_X_REQUEST_ID=custom_id)
        assert response["X-Request-ID"] == custom_id

    def test_generates_uuid_when_no_request_id(self, client):
        response = client.get("/health")
        request_id = response["X-Request-ID"]
        parsed = uuid.UUID(request_id, version=4)
        assert str(parsed) == request_id

    def test_correlation_id_in_logs(self, client, caplog):
        custom_id = "log-test-correlation-456"
        with caplog.at_level(logging.INFO):
            client.get("/health", HTTP_X_REQUEST_ID=custom_id)
        found = any(custom_id in record.getMessage() for record in caplog.records)
        assert found, (
            f"correlation_id '{custom_id}' not found in log records: "
            f"{[r.getMessage() for r in caplog.records]}"
        )

    def test_order_events_carry_correlation_id(
        self, api_client, customer, address, product_a, caplog
    ):
        custom_id = "order-flow-correlation-789"
        api_client.force_authenticate(user=customer)
        with caplog.at_level(logging.INFO):
            api_client.post(
                "/api/v1/orders/",
                {
                    "shipping_address_id": str(address.id),
                    "items": [{"product_id": str(product_a.id), "quantity": 1}],
                },
                format="json",
                HTTP_X_REQUEST_ID=custom_id,
            )
        messages = [r.getMessage() for r in caplog.records]
        assert any("order.created" in m and custom_id in m for m in messages)

    def test_request_id_is_echoed_on_api_errors(self, api_client_with_correlation):
        api_client, cid = api_client_with_correlation
        response = api_client.get("/api/v1/orders/")
        assert response.status_code == 401
        assert response["X-Request-ID"] == cid
