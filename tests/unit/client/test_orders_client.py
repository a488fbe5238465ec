"""Unit tests for ``OrdersClient`` with a stubbed HTTP session."""

from __future__ import annotations

import json
from datetime import timedelta
from unittest.mock import MagicMock

import pytest
import requests
from freezegun import freeze_time

from client.api import OrdersClient
from client.cache import ORDERS, QueryCache, VolatileCache, make_key
from client.errors import (
    Conflict,
    PreconditionFailed,
    RequestTimedOut,
    Unavailable,
    ValidationFailed,
)

pytestmark = pytest.mark.unit

BASE_URL = "http://orders.test"

ORDER = {
    "id": 7,
    "orderNumber": "ORD-20260301-ABC123",
    "date": "2026-03-01",
    "customerId": "0190f5a2-0000-7000-8000-000000000001",
    "customerName": "Maria Silva",
    "sellerId": 3,
    "sellerName": "seller",
    "paymentMethodId": "0190f5a2-0000-7000-8000-000000000002",
    "paymentMethodName": "PIX",
    "serviceTypeId": None,
    "serviceTypeName": None,
    "providerIds": [],
    "status": "pending",
    "executionStatus": "pending",
    "financialStatus": "unpaid",
    "totalAmount": "150.00",
    "notes": "",
    "returnReason": "",
    "responsibleOperationalId": None,
    "responsibleFinancialId": None,
    "version": 0,
    "createdAt": "2026-03-01T10:00:00Z",
    "updatedAt": "2026-03-01T10:00:00Z",
}

PAGE = {"data": [ORDER], "total": 1, "page": 1, "pageSize": 15, "totalPages": 1}


def make_response(status_code, body=None):
    response = requests.Response()
    response.status_code = status_code
    response._content = b"" if body is None else json.dumps(body).encode()
    response.headers["Content-Type"] = "application/json"
    return response


def error_body(code, action, attr=None):
    return {
        "type": "client_error",
        "errors": [{"code": code, "detail": f"{code} detail", "attr": attr}],
        "action": action,
    }


@pytest.fixture()
def session():
    session = requests.Session()
    session.request = MagicMock(return_value=make_response(200, PAGE))
    return session


@pytest.fixture()
def orders_client(session):
    with OrdersClient(BASE_URL, token="jwt-token", session=session, timeout=3) as orders_client:
        yield orders_client


class TestReads:
    def test_sends_bearer_token_and_timeout(self, orders_client, session):
        orders_client.list_orders({"page": 1})
        method, url = session.request.call_args.args
        assert (method, url) == ("GET", f"{BASE_URL}/api/v1/orders/")
        assert session.request.call_args.kwargs["timeout"] == 3
        assert session.headers["Authorization"] == "Bearer jwt-token"

    def test_list_is_parsed_and_cached(self, orders_client, session):
        first = orders_client.list_orders({"page": 1, "status": None})
        second = orders_client.list_orders({"page": 1})

        assert first is second
        assert first.total == 1
        assert first.data[0].order_number == "ORD-20260301-ABC123"
        assert session.request.call_count == 1
        assert session.request.call_args.kwargs["params"] == {"page": 1}


class TestMutations:
    def test_success_invalidates_cached_orders(self, orders_client, session):
        orders_client.list_orders({"page": 1})
        session.request.return_value = make_response(200, {**ORDER, "version": 1})

        updated = orders_client.start_execution(7, service_type_id="st-1", expected_version=0)

        assert updated.version == 1
        method, url = session.request.call_args.args
        assert (method, url) == ("POST", f"{BASE_URL}/api/v1/orders/7/start-execution/")
        assert session.request.call_args.kwargs["json"] == {
            "serviceTypeId": "st-1",
            "expectedVersion": 0,
        }
        assert make_key(ORDERS, {"page": 1}) not in orders_client.cache.volatile

    def test_conflict_raises_and_invalidates(self, orders_client, session):
        orders_client.list_orders({"page": 1})
        session.request.return_value = make_response(409, error_body("conflict", "reload"))

        with pytest.raises(Conflict) as exc_info:
            orders_client.complete_execution(7, expected_version=0)

        assert exc_info.value.action == "reload"
        assert exc_info.value.status_code == 409
        assert make_key(ORDERS, {"page": 1}) not in orders_client.cache.volatile

    def test_precondition_failure_keeps_cache(self, orders_client, session):
        orders_client.list_orders({"page": 1})
        session.request.return_value = make_response(
            422, error_body("precondition_failed", "fix_input", attr="providers")
        )

        with pytest.raises(PreconditionFailed) as exc_info:
            orders_client.correct_order(7, service_type_id="st-union", provider_ids=[])

        assert exc_info.value.field == "providers"
        assert exc_info.value.action == "fix_input"
        assert make_key(ORDERS, {"page": 1}) in orders_client.cache.volatile

    def test_timeout_is_never_retried(self, orders_client, session):
        session.request.side_effect = requests.Timeout("slow")

        with pytest.raises(RequestTimedOut) as exc_info:
            orders_client.mark_paid(7)

        assert exc_info.value.action == "reload"
        assert session.request.call_count == 1

    def test_connection_error_is_retryable(self, orders_client, session):
        session.request.side_effect = requests.ConnectionError("refused")
        with pytest.raises(Unavailable) as exc_info:
            orders_client.cancel_order(7)
        assert exc_info.value.action == "retry"

    def test_validation_error_from_framework(self, orders_client, session):
        session.request.return_value = make_response(
            400,
            {
                "type": "client_error",
                "errors": [{"code": "required", "detail": "Required.", "attr": "customerId"}],
                "action": "fix_input",
            },
        )
        with pytest.raises(ValidationFailed) as exc_info:
            orders_client.create_order("cust-1", "pm-1", "10.00")
        assert exc_info.value.field == "customerId"

    def test_delete_returns_none_on_204(self, orders_client, session):
        session.request.return_value = make_response(204)
        assert orders_client.delete_order(7) is None

    def test_clear_orders_returns_count(self, orders_client, session):
        session.request.return_value = make_response(200, {"count": 12})
        assert orders_client.clear_orders() == 12
        method, url = session.request.call_args.args
        assert (method, url) == ("DELETE", f"{BASE_URL}/api/v1/admin/clear-orders/")


class TestPush:
    def test_push_reexecutes_active_view_and_notifies(self, session):
        volatile = VolatileCache(fresh_for=30)
        orders_client = OrdersClient(BASE_URL, session=session, cache=QueryCache(volatile))
        pages = []
        orders_client.subscribe(pages.append)
        orders_client.list_orders({"page": 2, "pageSize": 10})

        page = orders_client.on_push_event({"type": "orders_changed", "timestamp": 1})

        assert page is not None
        assert pages == [page]
        assert session.request.call_count == 2
        assert session.request.call_args.kwargs["params"] == {"page": 2, "pageSize": 10}

    def test_push_without_active_view_only_invalidates(self, orders_client, session):
        assert orders_client.on_push_event({"type": "orders_changed"}) is None
        session.request.assert_not_called()

    def test_ping_does_not_refetch(self, orders_client, session):
        orders_client.list_orders({"page": 1})
        assert orders_client.on_push_event({"type": "ping"}) is None
        assert session.request.call_count == 1


class TestReferenceData:
    PAYMENT_METHODS = [{"id": "0190f5a2-0000-7000-8000-000000000002", "name": "PIX"}]

    def test_default_client_keeps_reference_data_on_disk_for_an_hour(self, session, tmp_path):
        session.request.return_value = make_response(200, self.PAYMENT_METHODS)

        with freeze_time("2026-03-01 10:00:00") as frozen:
            with OrdersClient(BASE_URL, session=session) as orders_client:
                assert orders_client.reference("payment-methods") == self.PAYMENT_METHODS
                frozen.tick(timedelta(minutes=59))
                assert orders_client.reference("payment-methods") == self.PAYMENT_METHODS

        assert session.request.call_count == 1
        assert (tmp_path / "client-cache" / "reference.json").exists()

    def test_reference_data_survives_a_new_client(self, session):
        session.request.return_value = make_response(200, self.PAYMENT_METHODS)

        with freeze_time("2026-03-01 10:00:00") as frozen:
            with OrdersClient(BASE_URL, session=session) as first:
                first.reference("payment-methods")
            frozen.tick(timedelta(minutes=30))
            with OrdersClient(BASE_URL, session=session) as second:
                assert second.reference("payment-methods") == self.PAYMENT_METHODS

        assert session.request.call_count == 1

    def test_reference_data_is_refetched_after_an_hour(self, session):
        session.request.return_value = make_response(200, self.PAYMENT_METHODS)

        with freeze_time("2026-03-01 10:00:00") as frozen:
            with OrdersClient(BASE_URL, session=session) as orders_client:
                orders_client.reference("payment-methods")
                frozen.tick(timedelta(hours=1))
                orders_client.reference("payment-methods")

        assert session.request.call_count == 2


class TestClose:
    def test_close_releases_session_and_refresh_worker(self):
        session = MagicMock(spec=requests.Session)
        orders_client = OrdersClient(BASE_URL, session=session)

        orders_client.close()

        session.close.assert_called_once_with()
        with pytest.raises(RuntimeError):
            orders_client.cache.volatile._executor.submit(print)

    def test_context_manager_closes_on_exit(self):
        session = MagicMock(spec=requests.Session)
        with OrdersClient(BASE_URL, session=session):
            session.close.assert_not_called()
        session.close.assert_called_once_with()
