from decimal import Decimal

import pytest

from django.contrib.auth import get_user_model

from rest_framework.test import APIClient

from modules.accounts.actors import Actor
from modules.accounts.constants import Role
from modules.accounts.models import Profile
from modules.catalog.models import (
    Customer,
    DocumentType,
    PaymentMethod,
    ServiceProvider,
    ServiceType,
)
from modules.orders.constants import ExecutionStatus, FinancialStatus
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository

User = get_user_model()

VALID_CPF = "59860184275"


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture(autouse=True)
def _client_cache_dir(tmp_path, monkeypatch):
    """Keep the client reference cache file inside the test directory."""
    monkeypatch.setenv("ORDERS_CLIENT_CACHE_DIR", str(tmp_path / "client-cache"))


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
# Users and actors
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_user():
    def _make(username: str, role: str):
        user = User.objects.create_user(username=username, password="testpass123")
        Profile.objects.create(user=user, role=role)
        return user

    return _make


@pytest.fixture()
def seller(make_user):
    return make_user("seller", Role.SELLER)


@pytest.fixture()
def other_seller(make_user):
    return make_user("other-seller", Role.SELLER)


@pytest.fixture()
def operator(make_user):
    return make_user("operator", Role.OPERATOR)


@pytest.fixture()
def supervisor(make_user):
    return make_user("supervisor", Role.SUPERVISOR)


@pytest.fixture()
def finance(make_user):
    return make_user("finance", Role.FINANCE)


@pytest.fixture()
def admin_user(make_user):
    return make_user("admin", Role.ADMIN)


@pytest.fixture()
def actor_of():
    return Actor.from_user


@pytest.fixture()
def client_for():
    """Build an APIClient authenticated as the given user."""

    def _client(user):
        client = APIClient()
        client.force_authenticate(user=user)
        return client

    return _client


# ---------------------------------------------------------------------------
# Reference data
# ---------------------------------------------------------------------------


@pytest.fixture()
def customer():
    return Customer.objects.create(
        name="Maria Silva",
        document=VALID_CPF,
        document_type=DocumentType.CPF,
        email="maria@example.com",
    )


@pytest.fixture()
def payment_method():
    return PaymentMethod.objects.create(name="PIX")


@pytest.fixture()
def service_type():
    return ServiceType.objects.create(name="Emplacamento")


@pytest.fixture()
def union_service_type():
    """Service type that cannot run without a partner provider."""
    return ServiceType.objects.create(name="Sindicato", requires_partner_providers=True)


@pytest.fixture()
def provider():
    return ServiceProvider.objects.create(name="Parceiro Norte")


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


@pytest.fixture()
def repository():
    return OrderDjangoRepository()


@pytest.fixture()
def make_order(seller, customer, payment_method):
    """Insert an order directly, bypassing the gateway."""

    def _make(**overrides):
        providers = overrides.pop("providers", None)
        fields = {
            "customer": customer,
            "seller": seller,
            "payment_method": payment_method,
            "total_amount": Decimal("150.00"),
            "execution_status": ExecutionStatus.PENDING,
            "financial_status": FinancialStatus.UNPAID,
        }
        fields.update(overrides)
        order = Order.objects.create(**fields)
        if providers:
            order.service_providers.set(providers)
        return order

    return _make
