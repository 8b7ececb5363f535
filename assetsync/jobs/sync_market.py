"""Sync inventory image URLs from Steam community market search.

Usage: python -m assetsync.jobs.sync_market [account] [credential] [query] [category]

``query`` may name a preset from ``targets.yml`` as ``@name``. Without a
credential the market is queried anonymously.
"""

from __future__ import annotations

import asyncio
import logging
import pathlib
import sys
from collections.abc import Sequence

import httpx
from dotenv import load_dotenv

from assetsync.errors import CatalogUnavailableError, PersistError, StoreCorruptError
from assetsync.ingest import resolve_filters
from assetsync.ingest.catalog import load_catalog
from assetsync.ingest.market import MarketSearchClient
from assetsync.jobs import configure_logging, progress_path, store_path
from assetsync.logic.reconcile import Reconciler, ReconcileConfig, RunOutcome
from assetsync.store.inventory import InventoryStore
from assetsync.store.progress import ProgressStore
from assetsync.utils.cancel import CancellationToken

logger = logging.getLogger(__name__)


def parse_args(argv: Sequence[str]) -> tuple[str | None, str | None, ReconcileConfig]:
    args = list(argv) + [""] * (4 - len(argv))
    account, credential, query, category = args[:4]
    filters = resolve_filters(query, category)
    config = ReconcileConfig.from_env(filters.query, filters.category)
    return account or None, credential or None, config


async def run_sync(
    config: ReconcileConfig,
    *,
    static_dir: pathlib.Path | None = None,
    account: str | None = None,
    credential: str | None = None,
    client: MarketSearchClient | None = None,
    cancel: CancellationToken | None = None,
) -> RunOutcome:
    cancel = cancel or CancellationToken()
    client = client or MarketSearchClient(login_cookie=credential)
    if account:
        logger.info("Using Steam session for %s", account)
    try:
        store = InventoryStore.load(store_path(static_dir))
        progress = ProgressStore(progress_path(static_dir))
        cursor = progress.load(config.query, config.category)
        catalog = await load_catalog()
        reconciler = Reconciler(client, catalog, store, progress, cursor, cancel=cancel)
        try:
            return await reconciler.run(config)
        finally:
            reconciler.report()
    finally:
        await client.close()


async def main_async(argv: Sequence[str]) -> int:
    load_dotenv()
    configure_logging()
    try:
        account, credential, config = parse_args(argv)
    except KeyError as exc:
        logger.error("%s", exc.args[0])
        return 1
    logger.info("Steam market image sync")
    cancel = CancellationToken()
    cancel.install_signal_handlers()
    try:
        await run_sync(config, account=account, credential=credential, cancel=cancel)
    except StoreCorruptError as exc:
        logger.error("Refusing to run on a corrupt store: %s", exc)
        return 1
    except PersistError as exc:
        logger.error("%s", exc)
        return 1
    except (httpx.HTTPError, CatalogUnavailableError) as exc:
        logger.error("Could not load the item catalog: %s", exc)
        return 1
    return 0


def main() -> None:
    sys.exit(asyncio.run(main_async(sys.argv[1:])))


if __name__ == "__main__":
    main()
