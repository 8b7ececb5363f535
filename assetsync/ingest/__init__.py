"""Ingestion helpers."""

from __future__ import annotations

import pathlib

import yaml

from assetsync.ingest.models import SearchFilters

TARGETS_PATH = pathlib.Path(__file__).with_name("targets.yml")


def load_targets(path: pathlib.Path = TARGETS_PATH) -> dict[str, SearchFilters]:
    data = yaml.safe_load(path.read_text()) or {}
    return {
        name: SearchFilters(query=item.get("query") or "", category=item.get("category") or "")
        for name, item in data.items()
    }


def resolve_filters(query: str, category: str, *, targets: dict[str, SearchFilters] | None = None) -> SearchFilters:
    """Expand ``@name`` presets; anything else is taken literally."""
    if not query.startswith("@"):
        return SearchFilters(query=query, category=category)
    targets = load_targets() if targets is None else targets
    name = query[1:]
    if name not in targets:
        raise KeyError(f"Unknown target preset: {name}")
    preset = targets[name]
    return SearchFilters(query=preset.query, category=category or preset.category)
