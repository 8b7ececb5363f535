"""Key -> image URL inventory kept in ``images.json``."""

from __future__ import annotations

import logging
import pathlib
from collections.abc import Iterator, MutableMapping

from assetsync.errors import StoreCorruptError
from assetsync.store import read_json, write_json

logger = logging.getLogger(__name__)


class InventoryStore(MutableMapping[str, str | None]):
    """In-memory inventory that is loaded once and rewritten on save.

    Values are image URLs, or ``None`` for keys known to exist whose URL is
    not resolved yet. Saving always writes keys in ascending order so two
    saves of the same content are byte-identical.
    """

    def __init__(self, path: pathlib.Path, data: dict[str, str | None] | None = None) -> None:
        self.path = path
        self._data: dict[str, str | None] = dict(data or {})

    @classmethod
    def load(cls, path: pathlib.Path) -> InventoryStore:
        raw = read_json(path)
        if raw is None:
            logger.info("No inventory at %s; starting empty", path)
            return cls(path)
        if not isinstance(raw, dict):
            raise StoreCorruptError(path, "top-level value is not an object")
        for key, value in raw.items():
            if value is not None and not isinstance(value, str):
                raise StoreCorruptError(path, f"value for {key!r} is not a string or null")
        logger.info("Loaded %s existing image URLs from %s", len(raw), path)
        return cls(path, raw)

    def __getitem__(self, key: str) -> str | None:
        return self._data[key]

    def __setitem__(self, key: str, value: str | None) -> None:
        self._data[key] = value

    def __delitem__(self, key: str) -> None:
        del self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def null_keys(self) -> list[str]:
        return sorted(key for key, value in self._data.items() if value is None)

    def to_dict(self) -> dict[str, str | None]:
        return {key: self._data[key] for key in sorted(self._data)}

    def save(self) -> None:
        write_json(self.path, self.to_dict())
        logger.debug("Saved %s entries to %s", len(self._data), self.path)
