import logging
import uuid

import pytest

from config.settings import mask_sensitive_data


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

    def test_correlation_id_on_api_rejection(self, api_client_with_correlation):
        api_client, cid = api_client_with_correlation
        response = api_client.get("/api/v1/orders/")
        assert response.status_code == 401
        assert response["X-Request-ID"] == cid


class TestSensitiveDataMasking:
    @pytest.mark.parametrize(
        "raw, secret",
        [
            ("customer ananya.iyer@example.com placed order", "ananya.iyer@example.com"),
            ("password='s3cret123'", "s3cret123"),
            ("token=abc123xyz", "abc123xyz"),
            ("Authorization: Bearer-eyJhbGciOi", "Bearer-eyJhbGciOi"),
        ],
    )
    def test_secret_masked_in_log_output(self, raw, secret):
        result = mask_sensitive_data(None, None, {"event": "test", "data": raw})
        assert secret not in result["data"]
        assert "***MASKED***" in result["data"]

    def test_non_sensitive_data_unchanged(self):
        event_dict = {
            "event": "shipment.created",
            "order_number": "ORD-1718000000000-AB12CD",
            "docket_number": "9988776655",
        }
        result = mask_sensitive_data(None, None, dict(event_dict))
        assert result == event_dict

    def test_non_string_values_untouched(self):
        result = mask_sensitive_data(None, None, {"event": "x", "attempt": 3})
        assert result["attempt"] == 3
