"""HTTP client for the order lifecycle API.

Reads go through the ``QueryCache``; every successful mutation drops all
cached order data so the next read reflects it.  Errors whose recovery
action is ``reload`` (conflicts, disallowed transitions, timeouts) also
drop order data, since the client is about to refetch anyway.

Requests are never retried: a timed-out mutation raises
``RequestTimedOut`` and the caller decides what to do after reloading.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

import requests
import structlog

from client.cache import ORDERS, QueryCache
from client.errors import ClientError, RequestTimedOut, Unavailable, error_from_response
from client.models import HistoryEntryView, OrderPage, OrderView

logger = structlog.get_logger(__name__)

PageListener = Callable[[OrderPage], None]


def _execution_payload(
    service_type_id: Optional[Any],
    provider_ids: Optional[Sequence[Any]],
    expected_version: Optional[int],
) -> Dict[str, Any]:
    payload: Dict[str, Any] = {}
    if service_type_id is not None:
        payload["serviceTypeId"] = str(service_type_id)
    if provider_ids is not None:
        payload["providerIds"] = [str(pk) for pk in provider_ids]
    if expected_version is not None:
        payload["expectedVersion"] = expected_version
    return payload


def _versioned(expected_version: Optional[int], **fields: Any) -> Dict[str, Any]:
    payload = {key: value for key, value in fields.items() if value is not None}
    if expected_version is not None:
        payload["expectedVersion"] = expected_version
    return payload


class OrdersClient:
    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: float = 10.0,
        cache: Optional[QueryCache] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.cache = cache or QueryCache()
        self._session = session or requests.Session()
        if token:
            self._session.headers["Authorization"] = f"Bearer {token}"
        self._active_view: Optional[Dict[str, Any]] = None
        self._listeners: List[PageListener] = []

    def close(self) -> None:
        """Stop the cache refresh worker and release pooled connections."""
        self.cache.close()
        self._session.close()

    def __enter__(self) -> "OrdersClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = f"{self.base_url}/api/v1/{path.lstrip('/')}"
        try:
            response = self._session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.Timeout as exc:
            logger.warning("client.request_timed_out", method=method, path=path)
            raise RequestTimedOut(f"{method} {path} timed out.", code="timeout") from exc
        except requests.ConnectionError as exc:
            logger.warning("client.connection_failed", method=method, path=path)
            raise Unavailable(f"Could not reach {self.base_url}.", code="unavailable") from exc

        if response.status_code >= 400:
            error = error_from_response(response)
            logger.info(
                "client.request_failed",
                method=method,
                path=path,
                status_code=response.status_code,
                code=error.code,
                action=error.action,
            )
            raise error
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    def _mutate(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Any:
        try:
            body = self._request(method, path, json=payload if payload is not None else {})
        except ClientError as exc:
            if exc.action == "reload":
                self.cache.invalidate(ORDERS)
            raise
        self.cache.invalidate(ORDERS)
        return body

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_orders(self, params: Optional[Mapping[str, Any]] = None) -> OrderPage:
        """Fetch one listing page and remember it as the active view."""
        query = {key: value for key, value in (params or {}).items() if value is not None}
        self._active_view = query
        return self.cache.get_orders(
            query,
            lambda: OrderPage.model_validate(self._request("GET", "orders/", params=query)),
        )

    def get_order(self, order_id: int) -> OrderView:
        return self.cache.get_orders(
            {"id": order_id},
            lambda: OrderView.model_validate(self._request("GET", f"orders/{order_id}/")),
        )

    def get_history(self, order_id: int) -> List[HistoryEntryView]:
        return self.cache.get_orders(
            {"id": order_id, "view": "history"},
            lambda: [
                HistoryEntryView.model_validate(item)
                for item in self._request("GET", f"orders/{order_id}/history/")
            ],
        )

    def reference(self, kind: str) -> List[Dict[str, Any]]:
        """Reference list (customers, users, payment-methods, ...)."""
        return self.cache.get_reference(kind, lambda: self._request("GET", f"{kind}/"))

    def status_labels(self) -> Dict[str, Dict[str, str]]:
        return self._request("GET", "statuses/")

    def me(self) -> Dict[str, Any]:
        """Identity and role of the authenticated user."""
        return self._request("GET", "me")

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create_order(
        self,
        customer_id: Any,
        payment_method_id: Any,
        total_amount: Any,
        date: Optional[str] = None,
        notes: str = "",
        service_type_id: Optional[Any] = None,
        provider_ids: Optional[Sequence[Any]] = None,
        seller_id: Optional[int] = None,
    ) -> OrderView:
        payload = _versioned(
            None,
            customerId=str(customer_id),
            paymentMethodId=str(payment_method_id),
            totalAmount=str(total_amount),
            date=date,
            notes=notes,
            sellerId=seller_id,
        )
        payload.update(_execution_payload(service_type_id, provider_ids, None))
        return OrderView.model_validate(self._mutate("POST", "orders/", payload))

    def start_execution(
        self,
        order_id: int,
        service_type_id: Optional[Any] = None,
        provider_ids: Optional[Sequence[Any]] = None,
        expected_version: Optional[int] = None,
    ) -> OrderView:
        payload = _execution_payload(service_type_id, provider_ids, expected_version)
        return self._transition(order_id, "start-execution", payload)

    def complete_execution(
        self, order_id: int, expected_version: Optional[int] = None
    ) -> OrderView:
        return self._transition(order_id, "complete-execution", _versioned(expected_version))

    def return_order(
        self, order_id: int, reason: str, expected_version: Optional[int] = None
    ) -> OrderView:
        return self._transition(order_id, "return", _versioned(expected_version, reason=reason))

    def correct_order(
        self,
        order_id: int,
        service_type_id: Any,
        provider_ids: Optional[Sequence[Any]] = None,
        notes: str = "",
        expected_version: Optional[int] = None,
    ) -> OrderView:
        payload = _execution_payload(service_type_id, provider_ids, expected_version)
        payload["notes"] = notes
        return self._transition(order_id, "correct", payload)

    def resend_order(
        self, order_id: int, notes: str = "", expected_version: Optional[int] = None
    ) -> OrderView:
        return self._transition(order_id, "resend", _versioned(expected_version, notes=notes))

    def mark_paid(self, order_id: int, expected_version: Optional[int] = None) -> OrderView:
        return self._transition(order_id, "mark-paid", _versioned(expected_version))

    def cancel_order(
        self, order_id: int, notes: str = "", expected_version: Optional[int] = None
    ) -> OrderView:
        return self._transition(order_id, "cancel", _versioned(expected_version, notes=notes))

    def delete_order(self, order_id: int) -> None:
        self._mutate("DELETE", f"orders/{order_id}/")

    def clear_orders(self) -> int:
        body = self._mutate("DELETE", "admin/clear-orders/")
        return int(body["count"])

    def _transition(self, order_id: int, path: str, payload: Dict[str, Any]) -> OrderView:
        body = self._mutate("POST", f"orders/{order_id}/{path}/", payload)
        return OrderView.model_validate(body)

    # ------------------------------------------------------------------
    # Push integration
    # ------------------------------------------------------------------

    def subscribe(self, listener: PageListener) -> None:
        """Register a callback receiving the refreshed active page after a push."""
        self._listeners.append(listener)

    def on_push_event(self, message: Mapping[str, Any]) -> Optional[OrderPage]:
        """Handle a push message: drop order data and re-execute the active view."""
        if not self.cache.handle_push_event(message):
            return None
        if self._active_view is None:
            return None
        page = self.list_orders(self._active_view)
        for listener in list(self._listeners):
            listener(page)
        return page
