"""Resumable pagination cursor."""

from __future__ import annotations

import logging
import pathlib
from dataclasses import dataclass

import pendulum

from assetsync.errors import StoreCorruptError
from assetsync.store import read_json, write_json
from assetsync.utils.dates import parse_iso, to_iso, utc_now

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ProgressCursor:
    offset: int = 0
    query: str = ""
    category: str = ""
    last_updated: pendulum.DateTime | None = None

    def matches(self, query: str, category: str) -> bool:
        return self.query == query and self.category == category

    def to_json(self) -> dict[str, object]:
        return {
            "lastStart": self.offset,
            "lastUpdated": to_iso(self.last_updated),
            "query": self.query,
            "category": self.category,
        }


class ProgressStore:
    def __init__(self, path: pathlib.Path) -> None:
        self.path = path

    def load(self, query: str, category: str) -> ProgressCursor:
        """Return the saved cursor if it belongs to ``(query, category)``."""
        raw = read_json(self.path)
        fresh = ProgressCursor(query=query, category=category)
        if raw is None:
            logger.info("Starting fresh (no progress file found)")
            return fresh
        cursor = _parse_cursor(self.path, raw)
        if not cursor.matches(query, category):
            logger.info(
                "Query/category changed (was query=%r category=%r); starting fresh",
                cursor.query,
                cursor.category,
            )
            return fresh
        logger.info("Resuming from position %s (last updated: %s)", cursor.offset, to_iso(cursor.last_updated))
        return cursor

    def save(self, cursor: ProgressCursor) -> None:
        cursor.last_updated = utc_now()
        write_json(self.path, cursor.to_json())


def _parse_cursor(path: pathlib.Path, raw: object) -> ProgressCursor:
    if not isinstance(raw, dict):
        raise StoreCorruptError(path, "top-level value is not an object")
    offset = raw.get("lastStart", 0)
    query = raw.get("query") or ""
    category = raw.get("category") or ""
    if isinstance(offset, bool) or not isinstance(offset, int) or offset < 0:
        raise StoreCorruptError(path, "lastStart is not a non-negative integer")
    if not isinstance(query, str) or not isinstance(category, str):
        raise StoreCorruptError(path, "query/category must be strings")
    last_updated = raw.get("lastUpdated")
    if last_updated is not None and not isinstance(last_updated, str):
        raise StoreCorruptError(path, "lastUpdated is not a string")
    try:
        parsed = parse_iso(last_updated)
    except ValueError as exc:
        raise StoreCorruptError(path, f"lastUpdated is not ISO-8601: {last_updated!r}") from exc
    return ProgressCursor(offset=offset, query=query, category=category, last_updated=parsed)
