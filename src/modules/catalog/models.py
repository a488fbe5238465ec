"""Reference data referenced by orders.

Low-churn records (customers, payment methods, service types and partner
service providers).  Clients keep them in their long-lived persistent
cache tier, so they are exposed read-only by the API.

Customer documents are validated by *validate-docbr*; the checksum rules
are not reimplemented here.
"""

from __future__ import annotations

import re

import structlog
from django.core.exceptions import ValidationError
from django.db import models
from validate_docbr import CNPJ, CPF

from modules.core.models import BaseModel

logger = structlog.get_logger(__name__)


class DocumentType(models.TextChoices):
    CPF = "CPF", "CPF"
    CNPJ = "CNPJ", "CNPJ"


def sanitize_document(value: str) -> str:
    """Strip all non-digit characters from a document string."""
    return re.sub(r"\D", "", value or "")


class Customer(BaseModel):
    name: models.CharField = models.CharField(max_length=255)
    document: models.CharField = models.CharField(max_length=14, unique=True)
    document_type: models.CharField = models.CharField(
        max_length=4, choices=DocumentType.choices
    )
    email: models.EmailField = models.EmailField(max_length=254, blank=True, default="")
    phone: models.CharField = models.CharField(max_length=20, blank=True, default="")
    is_active: models.BooleanField = models.BooleanField(default=True)

    class Meta:
        db_table = "customers"
        ordering = ["name", "id"]

    def clean(self) -> None:
        super().clean()
        self.document = sanitize_document(self.document)
        if self.document_type not in DocumentType.values:
            raise ValidationError({"document_type": "Invalid document type."})
        validator = CPF() if self.document_type == DocumentType.CPF else CNPJ()
        if not validator.validate(self.document):
            logger.warning(
                "customer.invalid_document",
                document_type=self.document_type,
                document_suffix=self.document[-4:],
            )
            raise ValidationError({"document": f"Invalid {self.document_type} number."})

    def save(self, *args, **kwargs) -> None:
        self.document = sanitize_document(self.document)
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        suffix = self.document[-4:] if self.document else "????"
        return f"{self.name} ({self.document_type}: ***{suffix})"


class PaymentMethod(BaseModel):
    name: models.CharField = models.CharField(max_length=100, unique=True)
    is_active: models.BooleanField = models.BooleanField(default=True)

    class Meta:
        db_table = "payment_methods"
        ordering = ["name", "id"]

    def __str__(self) -> str:
        return self.name


class ServiceType(BaseModel):
    """How an order is executed.

    ``requires_partner_providers`` marks types (e.g. union-mediated
    execution) that cannot start without at least one partner provider.
    """

    name: models.CharField = models.CharField(max_length=100, unique=True)
    description: models.TextField = models.TextField(blank=True, default="")
    requires_partner_providers: models.BooleanField = models.BooleanField(
        default=False
    )
    is_active: models.BooleanField = models.BooleanField(default=True)

    class Meta:
        db_table = "service_types"
        ordering = ["name", "id"]

    def __str__(self) -> str:
        return self.name


class ServiceProvider(BaseModel):
    name: models.CharField = models.CharField(max_length=255)
    document: models.CharField = models.CharField(max_length=14, blank=True, default="")
    phone: models.CharField = models.CharField(max_length=20, blank=True, default="")
    is_active: models.BooleanField = models.BooleanField(default=True)

    class Meta:
        db_table = "service_providers"
        ordering = ["name", "id"]

    def __str__(self) -> str:
        return self.name
