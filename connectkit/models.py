"""
Shared Models — Pydantic models used across the resolver and connectors.

Defines the core data structures:
  - FilterCriterion: One caller-supplied (field, value) filter
  - EntityDescriptor: Declarative endpoint description for a logical entity
  - EntityInfo: Advertised entity summary for listings
  - ConnectorInfo: Summary info for listing connectors
  - PagedResult: Envelope returned by page walks
"""

from __future__ import annotations

import enum
import math
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

Record = dict[str, Any]


# ── Filters ──────────────────────────────────────────────────────────


class FilterCriterion(BaseModel):
    """A single field/value filter supplied by the caller."""

    model_config = ConfigDict(frozen=True)

    field_name: str
    value: Any = None


# ── Entities ─────────────────────────────────────────────────────────


class HttpMethod(str, enum.Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"


class EntityDescriptor(BaseModel):
    """
    Immutable description of one logical entity.

    `endpoint` may embed `{param}` placeholders that are filled from the
    caller's filters. `root` is a dotted path locating the payload inside
    the response envelope (None means the whole document).
    """

    model_config = ConfigDict(frozen=True)

    name: str
    endpoint: str
    root: str | None = None
    required: frozenset[str] = Field(default_factory=frozenset)
    method: HttpMethod = HttpMethod.GET
    description: str = ""

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("entity name must not be blank")
        return value

    @field_validator("root")
    @classmethod
    def _blank_root_is_none(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return value.strip()

    @field_validator("required", mode="before")
    @classmethod
    def _coerce_required(cls, value: Any) -> frozenset[str]:
        if value is None:
            return frozenset()
        if isinstance(value, str):
            value = [value]
        return frozenset(str(v).strip() for v in value if str(v).strip())


class EntityInfo(BaseModel):
    """Summary of an advertised entity."""

    name: str
    endpoint: str
    root: str | None = None
    required_filters: list[str] = Field(default_factory=list)
    description: str = ""


# ── Connectors ───────────────────────────────────────────────────────


class ConnectorInfo(BaseModel):
    """Summary info for listing connectors."""

    name: str
    icon: str
    description: str
    healthy: bool = True
    entities: list[str] = Field(default_factory=list)


# ── Paging ───────────────────────────────────────────────────────────


class PagedResult(BaseModel):
    """
    One page of records plus best-effort paging metadata.

    `total_records` and `total_pages` are estimates unless the vendor
    reports an authoritative total.
    """

    data: list[Record] = Field(default_factory=list)
    page_number: int = 1
    page_size: int = 0
    total_records: int = 0
    total_pages: int = 0
    has_previous_page: bool = False
    has_next_page: bool = False

    @computed_field  # type: ignore[prop-decorator]
    @property
    def count(self) -> int:
        """Number of records on this page."""
        return len(self.data)

    @classmethod
    def estimate(
        cls,
        data: list[Record],
        page_number: int,
        page_size: int,
        total: int | None = None,
        has_next: bool | None = None,
    ) -> PagedResult:
        """
        Build a result, inferring missing totals from the page contents.

        Without an authoritative `total`, a full page implies there may be
        another page.
        """
        page_number = max(1, page_number)
        if has_next is None:
            if total is not None:
                has_next = page_number * page_size < total
            else:
                has_next = len(data) >= page_size > 0

        if total is None:
            total = (page_number - 1) * page_size + len(data)
            total_pages = page_number + 1 if has_next else page_number
        else:
            total_pages = math.ceil(total / page_size) if page_size else 0

        return cls(
            data=data,
            page_number=page_number,
            page_size=page_size,
            total_records=total,
            total_pages=total_pages,
            has_previous_page=page_number > 1,
            has_next_page=has_next,
        )
