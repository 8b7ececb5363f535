import json
from pathlib import Path

import pytest

from assetsync.ingest.models import CatalogEntry, InventoryRecord, Page


class FakeUpstream:
    """Serves ``tokens`` in pages and resolves each token from ``values``."""

    def __init__(self, tokens, values, *, report_total=True, rate_limit_at=(), on_page=None, on_resolve=None):
        self.tokens = list(tokens)
        self.values = dict(values)
        self.report_total = report_total
        self.rate_limit_at = set(rate_limit_at)
        self.on_page = on_page
        self.on_resolve = on_resolve
        self.offsets: list[int] = []
        self.resolved: list[str] = []

    async def list_page(self, offset, page_size, filters):
        self.offsets.append(offset)
        if offset in self.rate_limit_at:
            return Page(rate_limited=True)
        chunk = self.tokens[offset : offset + page_size]
        if self.on_page:
            self.on_page(offset)
        return Page(
            records=[InventoryRecord(lookup_token=token) for token in chunk],
            total_count=len(self.tokens) if self.report_total else None,
        )

    async def resolve_value(self, record):
        self.resolved.append(record.lookup_token)
        if self.on_resolve:
            self.on_resolve(record)
        value = self.values.get(record.lookup_token)
        if isinstance(value, Exception):
            raise value
        return value


class FakeCatalog:
    def __init__(self, entries):
        self.entries = {
            token: entry if isinstance(entry, CatalogEntry) else CatalogEntry(key=entry)
            for token, entry in entries.items()
        }

    def lookup(self, token):
        return self.entries.get(token)


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture()
def static_dir(tmp_path) -> Path:
    path = tmp_path / "static"
    path.mkdir()
    return path


@pytest.fixture()
def store_file(static_dir) -> Path:
    return static_dir / "images.json"


@pytest.fixture()
def progress_file(static_dir) -> Path:
    return static_dir / "sync-progress.json"


def write_json(path: Path, data) -> None:
    path.write_text(json.dumps(data, indent=4))


def read_json(path: Path):
    return json.loads(path.read_text())
