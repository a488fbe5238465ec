"""Integration tests for order listing (pagination, filters, sorting, scope)."""

from __future__ import annotations

import datetime
from decimal import Decimal

import pytest

from modules.accounts.actors import Actor
from modules.orders.constants import ExecutionStatus
from modules.orders.exceptions import OrderValidationError
from modules.orders.pagination import PageRequest, PaginationEngine, build_ordering

pytestmark = pytest.mark.integration


@pytest.fixture()
def many_orders(make_order, seller, other_seller):
    """32 orders: 20 for ``seller``, 12 for ``other_seller``, several per date."""
    base = datetime.date(2026, 1, 1)
    orders = []
    for i in range(32):
        orders.append(
            make_order(
                seller=seller if i < 20 else other_seller,
                date=base + datetime.timedelta(days=i % 4),
                total_amount=Decimal("100.00"),
                execution_status=(
                    ExecutionStatus.RETURNED if i % 8 == 0 else ExecutionStatus.PENDING
                ),
            )
        )
    return orders


@pytest.fixture()
def operator_client(client_for, operator):
    return client_for(operator)


class TestPageRequest:
    def test_defaults(self):
        request = PageRequest.from_query_params({})
        assert request.page == 1
        assert request.page_size == 15
        assert request.sort_field == "date"
        assert request.sort_direction == "desc"
        assert request.status == "all"

    def test_limit_is_an_alias_of_page_size(self):
        assert PageRequest.from_query_params({"limit": "5"}).page_size == 5

    def test_blank_values_mean_default(self):
        request = PageRequest.from_query_params({"searchTerm": "", "status": ""})
        assert request.search_term is None
        assert request.status == "all"

    @pytest.mark.parametrize(
        "params,field",
        [
            ({"page": "0"}, "page"),
            ({"pageSize": "101"}, "pageSize"),
            ({"sortField": "secret"}, "sortField"),
            ({"sortDirection": "sideways"}, "sortDirection"),
            ({"status": "lost"}, "status"),
        ],
    )
    def test_invalid_values_are_rejected(self, params, field):
        with pytest.raises(OrderValidationError) as exc_info:
            PageRequest.from_query_params(params)
        assert exc_info.value.field == field

    def test_reversed_date_range_is_rejected(self):
        with pytest.raises(OrderValidationError):
            PageRequest.from_query_params({"startDate": "2026-02-01", "endDate": "2026-01-01"})

    def test_ordering_always_ends_with_id(self):
        assert build_ordering("customerName", "asc") == ["customer__name", "id"]
        assert build_ordering("totalAmount", "desc") == ["-total_amount", "id"]


class TestPaginationEngine:
    def test_pages_are_disjoint_and_sum_to_total(self, repository, many_orders, operator):
        engine = PaginationEngine(repository)
        actor = Actor.from_user(operator)

        seen = []
        page_number = 1
        while True:
            page = engine.resolve_page(
                PageRequest(page=page_number, page_size=10, sort_field="totalAmount"), actor
            )
            seen.extend(order.pk for order in page.data)
            if page_number >= page.total_pages:
                break
            page_number += 1

        assert page.total == 32
        assert page.total_pages == 4
        assert len(seen) == len(set(seen)) == 32

    def test_equal_sort_keys_break_ties_by_id(self, repository, many_orders, operator):
        engine = PaginationEngine(repository)
        page = engine.resolve_page(
            PageRequest(page=1, page_size=32, sort_field="date", sort_direction="asc"),
            Actor.from_user(operator),
        )
        keys = [(order.date, order.pk) for order in page.data]
        assert keys == sorted(keys)

    def test_empty_result_has_one_page(self, repository, operator):
        page = PaginationEngine(repository).resolve_page(
            PageRequest(), Actor.from_user(operator)
        )
        assert page.total == 0
        assert page.data == []
        assert page.total_pages == 1

    def test_seller_scope_overrides_seller_filter(
        self, repository, many_orders, seller, other_seller
    ):
        page = PaginationEngine(repository).resolve_page(
            PageRequest(page_size=100, seller_id=other_seller.pk), Actor.from_user(seller)
        )
        assert page.total == 20
        assert {order.seller_id for order in page.data} == {seller.pk}


class TestListEndpoint:
    def test_envelope_and_default_page_size(self, operator_client, many_orders):
        response = operator_client.get("/api/v1/orders/")
        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 32
        assert body["page"] == 1
        assert body["pageSize"] == 15
        assert body["totalPages"] == 3
        assert len(body["data"]) == 15

    def test_page_two_is_disjoint_from_page_one(self, operator_client, many_orders):
        first = operator_client.get("/api/v1/orders/", {"page": 1, "pageSize": 10}).json()
        second = operator_client.get("/api/v1/orders/", {"page": 2, "pageSize": 10}).json()
        first_ids = {order["id"] for order in first["data"]}
        second_ids = {order["id"] for order in second["data"]}
        assert len(second_ids) == 10
        assert not first_ids & second_ids

    def test_status_filter(self, operator_client, many_orders):
        body = operator_client.get("/api/v1/orders/", {"status": "returned"}).json()
        assert body["total"] == 4
        assert {order["status"] for order in body["data"]} == {"returned"}

    def test_date_range_is_inclusive(self, operator_client, many_orders):
        body = operator_client.get(
            "/api/v1/orders/", {"startDate": "2026-01-02", "endDate": "2026-01-03"}
        ).json()
        assert body["total"] == 16

    def test_search_matches_seller_username(self, operator_client, many_orders):
        body = operator_client.get("/api/v1/orders/", {"searchTerm": "other"}).json()
        assert body["total"] == 12

    def test_search_matches_order_number(self, operator_client, many_orders):
        target = many_orders[5]
        body = operator_client.get(
            "/api/v1/orders/", {"searchTerm": target.order_number.lower()}
        ).json()
        assert [order["id"] for order in body["data"]] == [target.pk]

    def test_invalid_sort_field_uses_error_envelope(self, operator_client):
        response = operator_client.get("/api/v1/orders/", {"sortField": "password"})
        assert response.status_code == 400
        body = response.json()
        assert body["action"] == "fix_input"
        assert body["errors"][0]["attr"] == "sortField"

    def test_seller_sees_only_own_orders(self, client_for, seller, many_orders):
        body = client_for(seller).get("/api/v1/orders/", {"pageSize": 100}).json()
        assert body["total"] == 20
        assert {order["sellerId"] for order in body["data"]} == {seller.pk}
