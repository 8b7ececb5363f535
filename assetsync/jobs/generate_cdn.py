"""Resolve ``null`` inventory entries to canonical CDN URLs."""

from __future__ import annotations

import asyncio
import logging
import os
import pathlib
import sys

from dotenv import load_dotenv

from assetsync import jobs
from assetsync.errors import PersistError, StoreCorruptError
from assetsync.ingest.catalog import IdentityCatalog
from assetsync.ingest.cdn import CDN_CONCURRENCY, CdnSource
from assetsync.logic.policy import NEVER_PRESERVE
from assetsync.logic.reconcile import Reconciler, ReconcileConfig, RunOutcome
from assetsync.store.inventory import InventoryStore
from assetsync.store.progress import ProgressStore
from assetsync.utils.cancel import CancellationToken

logger = logging.getLogger(__name__)

CDN_PROGRESS_FILE = "cdn-progress.json"


async def generate(
    static_dir: pathlib.Path | None = None,
    panorama_dir: pathlib.Path | None = None,
    *,
    source: CdnSource | None = None,
    cancel: CancellationToken | None = None,
) -> tuple[RunOutcome, Reconciler]:
    concurrency = int(os.environ.get("ASSETSYNC_CDN_CONCURRENCY", CDN_CONCURRENCY))
    store = InventoryStore.load(jobs.store_path(static_dir))
    # The null-key snapshot shifts once keys resolve, so a saved offset is meaningless.
    progress = ProgressStore(jobs.progress_path(static_dir).with_name(CDN_PROGRESS_FILE))
    config = ReconcileConfig(
        query="cdn", page_size=concurrency * 10, inter_request_delay=0.1, max_duration=float("inf")
    )
    source = source or CdnSource(
        store.null_keys(), panorama_dir or jobs.panorama_dir(), concurrency=concurrency
    )
    logger.info("Found %s images with null values to process", len(source.keys))
    reconciler = Reconciler(
        source,
        IdentityCatalog(),
        store,
        progress,
        progress.load(config.query, config.category),
        preserve=NEVER_PRESERVE,
        cancel=cancel,
        resolve_concurrency=concurrency,
    )
    reconciler.cursor.offset = 0
    try:
        outcome = await reconciler.run(config)
    finally:
        await source.close()
    return outcome, reconciler


async def main_async() -> int:
    load_dotenv()
    jobs.configure_logging()
    cancel = CancellationToken()
    cancel.install_signal_handlers()
    try:
        _, reconciler = await generate(cancel=cancel)
    except (StoreCorruptError, PersistError) as exc:
        logger.error("Failed to process images: %s", exc)
        return 1
    reconciler.report()
    source = reconciler.upstream
    if isinstance(source, CdnSource) and source.skipped_files:
        logger.info("Skipped files (not found locally):")
        for path in source.skipped_files:
            logger.info("  - %s", path)
    return 0


def main() -> None:
    sys.exit(asyncio.run(main_async()))


if __name__ == "__main__":
    main()
