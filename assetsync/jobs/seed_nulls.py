"""Add ``null`` inventory entries for every extracted econ image."""

from __future__ import annotations

import logging
import sys

from dotenv import load_dotenv

from assetsync.errors import PersistError, StoreCorruptError
from assetsync.jobs import configure_logging, econ_dir, store_path
from assetsync.logic.seed import seed_null_entries
from assetsync.store.inventory import InventoryStore

logger = logging.getLogger(__name__)


def main() -> None:
    load_dotenv()
    configure_logging()
    try:
        store = InventoryStore.load(store_path())
        result = seed_null_entries(store, econ_dir())
        store.save()
    except (FileNotFoundError, StoreCorruptError, PersistError) as exc:
        logger.error("Failed to add null entries: %s", exc)
        sys.exit(1)
    logger.info(
        "PNG files found: %s, new entries: %s, existing: %s, total entries: %s",
        result.found,
        result.added,
        result.existing,
        len(store),
    )


if __name__ == "__main__":
    main()
