"""Pagination & filter engine for order listings.

``PageRequest`` validates raw query parameters (camelCase on the wire);
``PaginationEngine.resolve_page`` turns it into one page of orders plus the
total computed with the same filter.  Ordering always ends with ``id``
ascending so equal sort keys never shuffle rows between pages.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING, Any, List, Mapping, Optional

from django.conf import settings
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from modules.orders.constants import (
    ALL_STATUSES,
    DEFAULT_PAGE_SIZE,
    DEFAULT_SORT_DIRECTION,
    DEFAULT_SORT_FIELD,
    MAX_PAGE_SIZE,
    SORT_FIELD_COLUMNS,
    ExecutionStatus,
)
from modules.orders.exceptions import OrderValidationError

if TYPE_CHECKING:
    from modules.accounts.actors import Actor
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository


class PageRequest(BaseModel):
    """Immutable, validated listing request."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    page: int = Field(default=1, ge=1)
    page_size: int = Field(
        default_factory=lambda: getattr(
            settings, "ORDERS_DEFAULT_PAGE_SIZE", DEFAULT_PAGE_SIZE
        ),
        ge=1,
        le=MAX_PAGE_SIZE,
        alias="pageSize",
    )
    sort_field: str = Field(default=DEFAULT_SORT_FIELD, alias="sortField")
    sort_direction: str = Field(default=DEFAULT_SORT_DIRECTION, alias="sortDirection")
    status: str = ALL_STATUSES
    search_term: Optional[str] = Field(default=None, alias="searchTerm")
    start_date: Optional[date] = Field(default=None, alias="startDate")
    end_date: Optional[date] = Field(default=None, alias="endDate")
    seller_id: Optional[int] = Field(default=None, alias="sellerId")

    @model_validator(mode="before")
    @classmethod
    def blank_means_default(cls, data: Any) -> Any:
        """Query strings send ``""`` for cleared inputs; treat it as absent."""
        if isinstance(data, Mapping):
            return {key: value for key, value in data.items() if value not in ("", None)}
        return data

    @field_validator("sort_field")
    @classmethod
    def known_sort_field(cls, v: str) -> str:
        if v not in SORT_FIELD_COLUMNS:
            raise ValueError(
                f"Unknown sort field. Use one of: {', '.join(SORT_FIELD_COLUMNS)}."
            )
        return v

    @field_validator("sort_direction")
    @classmethod
    def known_direction(cls, v: str) -> str:
        v = v.lower()
        if v not in ("asc", "desc"):
            raise ValueError("Sort direction must be 'asc' or 'desc'.")
        return v

    @field_validator("status")
    @classmethod
    def known_status(cls, v: str) -> str:
        if v != ALL_STATUSES and v not in ExecutionStatus.values:
            raise ValueError("Unknown status.")
        return v

    @model_validator(mode="after")
    def ordered_date_range(self) -> PageRequest:
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("startDate must not be after endDate.")
        return self

    @classmethod
    def from_query_params(cls, params: Mapping[str, Any]) -> PageRequest:
        """Build a request from query parameters.

        ``limit`` is accepted as an alias of ``pageSize``.
        """
        data = {key: params.get(key) for key in params}
        if "limit" in data and "pageSize" not in data:
            data["pageSize"] = data.pop("limit")
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            first = exc.errors()[0]
            field = ".".join(str(part) for part in first.get("loc", ())) or None
            raise OrderValidationError(first["msg"], field=field) from exc

    def filters(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "search": self.search_term,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "seller": self.seller_id,
        }


def build_ordering(sort_field: str, sort_direction: str) -> List[str]:
    """ORM ordering for a public sort key, with ``id`` as the tie-breaker."""
    column = SORT_FIELD_COLUMNS[sort_field]
    prefix = "-" if sort_direction == "desc" else ""
    return [f"{prefix}{column}", "id"]


@dataclass(frozen=True)
class Page:
    data: List[Order]
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        return max(1, math.ceil(self.total / self.page_size))


class PaginationEngine:
    """Resolves page requests against the order store gateway."""

    def __init__(self, order_repository: IOrderRepository) -> None:
        self._order_repo = order_repository

    def resolve_page(self, request: PageRequest, actor: Actor) -> Page:
        items, total = self._order_repo.query_page(
            filters=request.filters(),
            ordering=build_ordering(request.sort_field, request.sort_direction),
            page=request.page,
            page_size=request.page_size,
            actor=actor,
        )
        return Page(data=items, total=total, page=request.page, page_size=request.page_size)
