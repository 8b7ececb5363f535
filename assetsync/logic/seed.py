"""Seed the inventory with unresolved keys found in an extracted image tree."""

from __future__ import annotations

import logging
import pathlib
from dataclasses import dataclass

from assetsync.store.inventory import InventoryStore

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SeedResult:
    found: int = 0
    added: int = 0
    existing: int = 0


def path_to_key(path: pathlib.Path, econ_dir: pathlib.Path) -> str:
    """``<econ>/stickers/alyx/sticker_alyx_01_png.png`` -> ``econ/stickers/alyx/sticker_alyx_01``."""
    key = path.relative_to(econ_dir).as_posix()
    if key.endswith("_png.png"):
        key = key[: -len("_png.png")]
    elif key.endswith(".png"):
        key = key[: -len(".png")]
    if not key.startswith("econ/"):
        key = f"econ/{key}"
    return key


def seed_null_entries(store: InventoryStore, econ_dir: pathlib.Path) -> SeedResult:
    if not econ_dir.is_dir():
        raise FileNotFoundError(f"Econ directory not found: {econ_dir}")
    result = SeedResult()
    for path in sorted(econ_dir.rglob("*.png")):
        if not path.is_file():
            continue
        result.found += 1
        key = path_to_key(path, econ_dir)
        if key in store:
            result.existing += 1
            continue
        store[key] = None
        result.added += 1
        logger.info("[ADDED] %s", key)
    return result
