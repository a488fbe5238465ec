"""Read-only serializers for reference data."""

from __future__ import annotations

from rest_framework import serializers

from modules.catalog.models import Customer, PaymentMethod, ServiceProvider, ServiceType


class CustomerSerializer(serializers.ModelSerializer):
    class Meta:
        model = Customer
        fields = ["id", "name", "document_type", "email", "phone", "is_active"]
        read_only_fields = fields


class PaymentMethodSerializer(serializers.ModelSerializer):
    class Meta:
        model = PaymentMethod
        fields = ["id", "name", "is_active"]
        read_only_fields = fields


class ServiceTypeSerializer(serializers.ModelSerializer):
    requiresPartnerProviders = serializers.BooleanField(
        source="requires_partner_providers", read_only=True
    )

    class Meta:
        model = ServiceType
        fields = ["id", "name", "description", "requiresPartnerProviders", "is_active"]
        read_only_fields = fields


class ServiceProviderSerializer(serializers.ModelSerializer):
    class Meta:
        model = ServiceProvider
        fields = ["id", "name", "phone", "is_active"]
        read_only_fields = fields
