"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2; immutable
(``frozen=True``).  They are the contract between the API layer (DRF
serializers) and the service layer.
"""

from __future__ import annotations

import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator


class CreateOrderDTO(BaseModel):
    """Immutable DTO for order creation requests."""

    model_config = ConfigDict(frozen=True)

    customer_id: UUID
    payment_method_id: UUID
    total_amount: Decimal
    date: Optional[datetime.date] = None
    notes: Optional[str] = ""
    service_type_id: Optional[UUID] = None
    provider_ids: Optional[List[UUID]] = None
    seller_id: Optional[int] = None

    @field_validator("total_amount")
    @classmethod
    def amount_must_be_valid(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError("Total amount cannot be negative.")
        if v.as_tuple().exponent < -2:
            raise ValueError("Total amount must have at most 2 decimal places.")
        return v

    @field_validator("provider_ids")
    @classmethod
    def no_duplicate_providers(cls, v: Optional[List[UUID]]) -> Optional[List[UUID]]:
        if v is not None and len(v) != len(set(v)):
            raise ValueError("Duplicate service providers are not allowed.")
        return v
