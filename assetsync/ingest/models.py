"""Ingestion data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Protocol


@dataclass(slots=True)
class InventoryRecord:
    lookup_token: str
    key: str | None = None
    excluded: bool = False
    payload: Mapping[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class Page:
    records: list[InventoryRecord] = field(default_factory=list)
    total_count: int | None = None
    rate_limited: bool = False
    raw_count: int | None = None

    @property
    def advance(self) -> int:
        """Listings consumed upstream, including ones that produced no record."""
        return len(self.records) if self.raw_count is None else self.raw_count


@dataclass(slots=True, frozen=True)
class CatalogEntry:
    key: str
    excluded: bool = False


@dataclass(slots=True, frozen=True)
class SearchFilters:
    query: str = ""
    category: str = ""


class UpstreamSource(Protocol):
    async def list_page(self, offset: int, page_size: int, filters: SearchFilters) -> Page:
        ...

    async def resolve_value(self, record: InventoryRecord) -> str | None:
        ...


class CatalogLookup(Protocol):
    def lookup(self, token: str) -> CatalogEntry | None:
        ...
