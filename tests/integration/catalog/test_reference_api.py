"""Integration tests for the read-only reference data endpoints."""

from __future__ import annotations

import pytest
from django.core.exceptions import ValidationError

from modules.catalog.models import Customer, DocumentType, PaymentMethod

pytestmark = pytest.mark.integration


@pytest.fixture()
def auth_client(client_for, seller):
    return client_for(seller)


class TestReferenceEndpoints:
    def test_customers_list_is_unpaginated_and_active_only(self, auth_client, customer):
        Customer.objects.create(
            name="Inativo",
            document="11222333000181",
            document_type=DocumentType.CNPJ,
            is_active=False,
        )
        response = auth_client.get("/api/v1/customers/")
        assert response.status_code == 200
        assert [item["name"] for item in response.json()] == ["Maria Silva"]

    def test_service_types_expose_provider_requirement(
        self, auth_client, service_type, union_service_type
    ):
        body = auth_client.get("/api/v1/service-types/").json()
        flags = {item["name"]: item["requiresPartnerProviders"] for item in body}
        assert flags == {"Emplacamento": False, "Sindicato": True}

    def test_payment_methods_and_providers(self, auth_client, payment_method, provider):
        assert auth_client.get("/api/v1/payment-methods/").json()[0]["name"] == "PIX"
        assert auth_client.get("/api/v1/service-providers/").json()[0]["name"] == "Parceiro Norte"

    def test_users_carry_roles(self, auth_client, seller, operator):
        body = auth_client.get("/api/v1/users/").json()
        assert {item["username"]: item["role"] for item in body} == {
            "operator": "operator",
            "seller": "seller",
        }

    def test_reference_data_is_read_only(self, auth_client):
        response = auth_client.post("/api/v1/payment-methods/", {"name": "Boleto"}, format="json")
        assert response.status_code == 405
        assert not PaymentMethod.objects.exists()

    def test_requires_authentication(self, api_client):
        assert api_client.get("/api/v1/customers/").status_code == 401


class TestCustomerDocument:
    def test_document_is_sanitized_on_save(self):
        customer = Customer.objects.create(
            name="Formatado", document="598.601.842-75", document_type=DocumentType.CPF
        )
        assert customer.document == "59860184275"

    def test_invalid_cpf_fails_validation(self):
        customer = Customer(name="Errado", document="12345678900", document_type=DocumentType.CPF)
        with pytest.raises(ValidationError) as exc_info:
            customer.full_clean()
        assert "document" in exc_info.value.message_dict

    def test_valid_cnpj_passes_validation(self):
        customer = Customer(
            name="Empresa", document="11222333000181", document_type=DocumentType.CNPJ
        )
        customer.full_clean()
        assert customer.document == "11222333000181"
