"""Community item catalog used to map market names to inventory keys."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Mapping

import httpx

from assetsync.errors import CatalogUnavailableError
from assetsync.ingest.models import CatalogEntry
from assetsync.utils.retry import retry_async

logger = logging.getLogger(__name__)

CATALOG_URL = "https://raw.githubusercontent.com/ByMykel/CSGO-API/main/public/api/en/all.json"


def catalog_url() -> str:
    return os.environ.get("ASSETSYNC_CATALOG_URL", CATALOG_URL)


@dataclass(slots=True)
class Catalog:
    entries: dict[str, CatalogEntry] = field(default_factory=dict)

    def lookup(self, token: str) -> CatalogEntry | None:
        return self.entries.get(token)

    @property
    def excluded_count(self) -> int:
        return sum(1 for entry in self.entries.values() if entry.excluded)

    @classmethod
    def from_items(cls, items: Mapping[str, Any] | list[Any]) -> Catalog:
        """Build the catalog from the raw ``all.json`` payload.

        Items without a market hash name or an inventory image are dropped.
        Items carrying a ``phase`` (Doppler variants) share their hash name
        with the base item and are kept only as excluded entries, so a
        non-phase item always wins the name.
        """
        values = items.values() if isinstance(items, Mapping) else items
        entries: dict[str, CatalogEntry] = {}
        for item in values:
            if not isinstance(item, Mapping):
                continue
            hash_name = item.get("market_hash_name")
            original = item.get("original") or {}
            image_inventory = original.get("image_inventory") if isinstance(original, Mapping) else None
            if not hash_name or not image_inventory:
                continue
            entry = CatalogEntry(key=image_inventory, excluded=bool(item.get("phase")))
            current = entries.get(hash_name)
            if current is None or (current.excluded and not entry.excluded):
                entries[hash_name] = entry
        return cls(entries)


class IdentityCatalog:
    """Catalog for sources whose lookup token already is the inventory key."""

    def lookup(self, token: str) -> CatalogEntry | None:
        return CatalogEntry(key=token)


async def load_catalog(session: httpx.AsyncClient | None = None, *, url: str | None = None) -> Catalog:
    url = url or catalog_url()
    owns_session = session is None
    session = session or httpx.AsyncClient(timeout=60.0)
    try:
        logger.info("Fetching item catalog from %s", url)
        response = await retry_async(session.get)(url)
        response.raise_for_status()
        try:
            payload = response.json()
        except ValueError as exc:
            raise CatalogUnavailableError(f"Catalog at {url} is not valid JSON") from exc
        if not isinstance(payload, (Mapping, list)):
            raise CatalogUnavailableError(f"Catalog at {url} is not a list or object")
        catalog = Catalog.from_items(payload)
    finally:
        if owns_session:
            await session.aclose()
    logger.info(
        "Loaded %s items from catalog (excluding %s phase items)",
        len(catalog.entries) - catalog.excluded_count,
        catalog.excluded_count,
    )
    return catalog
