"""Read models returned by the API client (camelCase aliases on the wire)."""

from __future__ import annotations

import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _WireModel(BaseModel):
    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True
    )


class OrderView(_WireModel):
    id: int
    order_number: str
    date: datetime.date
    customer_id: UUID
    customer_name: str
    seller_id: int
    seller_name: str
    payment_method_id: UUID
    payment_method_name: str
    service_type_id: Optional[UUID] = None
    service_type_name: Optional[str] = None
    provider_ids: List[UUID] = Field(default_factory=list)
    execution_status: str
    financial_status: str
    total_amount: Decimal
    notes: str = ""
    return_reason: str = ""
    responsible_operational_id: Optional[int] = None
    responsible_financial_id: Optional[int] = None
    version: int
    created_at: datetime.datetime
    updated_at: datetime.datetime


class OrderPage(_WireModel):
    data: List[OrderView]
    total: int
    page: int
    page_size: int
    total_pages: int


class HistoryEntryView(_WireModel):
    id: UUID
    sequence: int
    action: str
    from_status: str
    to_status: str
    from_financial_status: str
    to_financial_status: str
    actor_id: Optional[int] = None
    actor_name: Optional[str] = None
    actor_role: str
    notes: str = ""
    created_at: datetime.datetime
