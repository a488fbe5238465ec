import logging
import uuid

import pytest
import structlog

from modules.core.middleware import bind_correlation_id, correlation_id_from_scope
from modules.orders.constants import TransitionAction
from modules.orders.state_machine import TransitionRequest


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

    def test_correlation_id_reaches_order_logs(
        self, client_for, operator, make_order, service_type, caplog
    ):
        order = make_order(service_type=service_type)
        custom_id = "transition-correlation-789"
        with caplog.at_level(logging.INFO):
            client_for(operator).post(
                f"/api/v1/orders/{order.pk}/start-execution/",
                {},
                format="json",
                HTTP_X_REQUEST_ID=custom_id,
            )
        messages = [record.getMessage() for record in caplog.records]
        assert any("order.status_updated" in m and custom_id in m for m in messages), messages


class TestOrderLogging:
    def test_rejected_transition_is_logged(self, repository, make_order, actor_of, seller, caplog):
        order = make_order()
        with caplog.at_level(logging.WARNING):
            with pytest.raises(Exception):
                repository.apply_transition(
                    order.pk,
                    TransitionRequest(action=TransitionAction.MARK_PAID),
                    actor_of(seller),
                )
        assert any("order.transition_rejected" in r.getMessage() for r in caplog.records)


class TestSensitiveDataMasking:
    def test_cpf_masked_in_log_output(self):
        from config.settings import mask_sensitive_data

        event_dict = {"event": "customer.invalid_document", "cpf": "123.456.789-00"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "123.456.789-00" not in result["cpf"]
        assert "***MASKED***" in result["cpf"]

    def test_cnpj_masked_in_log_output(self):
        from config.settings import mask_sensitive_data

        event_dict = {"event": "customer.invalid_document", "cnpj": "12.345.678/0001-90"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "***MASKED***" in result["cnpj"]

    def test_token_masked_in_log_output(self):
        from config.settings import mask_sensitive_data

        event_dict = {"event": "client.request_failed", "header": "token=abc123xyz"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "abc123xyz" not in result["header"]

    def test_order_fields_unchanged(self):
        from config.settings import mask_sensitive_data

        event_dict = {"event": "order.created", "order_number": "ORD-20260301-ABC123"}
        result = mask_sensitive_data(None, None, event_dict)
        assert result["order_number"] == "ORD-20260301-ABC123"


@pytest.mark.unit
class TestPushCorrelation:
    def test_header_is_read_case_insensitively(self):
        headers = [(b"host", b"orders.test"), (b"X-Request-ID", b"ws-42")]
        assert correlation_id_from_scope(headers) == "ws-42"

    def test_missing_header_yields_none(self):
        assert correlation_id_from_scope([(b"host", b"orders.test")]) is None

    def test_generated_id_is_bound_when_absent(self):
        cid = bind_correlation_id(None)
        assert structlog.contextvars.get_contextvars()["correlation_id"] == cid
