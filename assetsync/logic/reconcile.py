"""Incremental reconciliation of a paginated upstream into the inventory."""

from __future__ import annotations

import asyncio
import enum
import logging
import os
import pathlib
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from assetsync.errors import CatalogLookupMiss, UpstreamTransientError
from assetsync.ingest.models import CatalogLookup, InventoryRecord, Page, SearchFilters, UpstreamSource
from assetsync.logic.policy import PreservePolicy
from assetsync.store.inventory import InventoryStore
from assetsync.store.progress import ProgressCursor, ProgressStore
from assetsync.utils.cancel import CancellationToken
from assetsync.utils.dates import format_elapsed

logger = logging.getLogger(__name__)

PAGE_SIZE = 10
DELAY_SECONDS = 15.0
MAX_DURATION_SECONDS = 3600 * 5.5


@dataclass(slots=True)
class ReconcileConfig:
    query: str = ""
    category: str = ""
    page_size: int = PAGE_SIZE
    inter_request_delay: float = DELAY_SECONDS
    max_duration: float = MAX_DURATION_SECONDS

    @classmethod
    def from_env(cls, query: str = "", category: str = "") -> ReconcileConfig:
        """Read ``ASSETSYNC_*`` tuning variables at call time, after ``.env`` is loaded."""
        return cls(
            query=query,
            category=category,
            page_size=int(os.environ.get("ASSETSYNC_PAGE_SIZE", PAGE_SIZE)),
            inter_request_delay=float(os.environ.get("ASSETSYNC_DELAY_SECONDS", DELAY_SECONDS)),
            max_duration=float(os.environ.get("ASSETSYNC_MAX_DURATION_SECONDS", MAX_DURATION_SECONDS)),
        )

    @property
    def filters(self) -> SearchFilters:
        return SearchFilters(query=self.query, category=self.category)


class RunOutcome(str, enum.Enum):
    BUDGET_EXHAUSTED = "budget_exhausted"
    RATE_LIMITED = "rate_limited"
    EXHAUSTED = "exhausted"
    CANCELLED = "cancelled"
    UPSTREAM_ERROR = "upstream_error"


@dataclass(slots=True)
class RunStats:
    processed: int = 0
    updated: int = 0
    skipped: int = 0
    preserved: int = 0
    not_found: int = 0
    pages: int = 0
    not_found_tokens: list[str] = field(default_factory=list)

    def record_miss(self, miss: CatalogLookupMiss) -> None:
        self.not_found += 1
        if miss.token not in self.not_found_tokens:
            self.not_found_tokens.append(miss.token)

    def as_dict(self) -> dict[str, int]:
        return {
            "processed": self.processed,
            "updated": self.updated,
            "skipped": self.skipped,
            "preserved": self.preserved,
            "notFound": self.not_found,
        }


class Reconciler:
    """Pages through an upstream and merges resolved values into the store.

    The store is only ever written by the run loop. Progress is persisted
    after every page so an interrupted or rate-limited run resumes at the
    first unprocessed offset.
    """

    def __init__(
        self,
        upstream: UpstreamSource,
        catalog: CatalogLookup,
        store: InventoryStore,
        progress_store: ProgressStore,
        cursor: ProgressCursor,
        *,
        preserve: Callable[[str | None], bool] | None = None,
        cancel: CancellationToken | None = None,
        clock: Callable[[], float] = time.monotonic,
        resolve_concurrency: int = 1,
    ) -> None:
        self.upstream = upstream
        self.catalog = catalog
        self.store = store
        self.progress_store = progress_store
        self.cursor = cursor
        self.preserve = preserve or PreservePolicy()
        self.cancel = cancel or CancellationToken()
        self.clock = clock
        self.resolve_concurrency = resolve_concurrency
        self.stats = RunStats()
        self._started = clock()

    @classmethod
    def initialize(
        cls,
        store_path: pathlib.Path,
        progress_path: pathlib.Path,
        config: ReconcileConfig,
        *,
        upstream: UpstreamSource,
        catalog: CatalogLookup,
        **kwargs,
    ) -> Reconciler:
        """Load both stores; raises StoreCorruptError before anything is written."""
        store = InventoryStore.load(store_path)
        progress_store = ProgressStore(progress_path)
        cursor = progress_store.load(config.query, config.category)
        return cls(upstream, catalog, store, progress_store, cursor, **kwargs)

    @property
    def elapsed(self) -> float:
        return self.clock() - self._started

    async def run(self, config: ReconcileConfig) -> RunOutcome:
        logger.info(
            "Starting from position %s (query=%r, category=%r, max duration %s)",
            self.cursor.offset,
            config.query or "(all items)",
            config.category or "(all categories)",
            format_elapsed(config.max_duration),
        )
        self._started = self.clock()
        try:
            outcome = await self._loop(config)
        finally:
            self.persist()
        logger.info("Run finished: %s after %s", outcome.value, format_elapsed(self.elapsed))
        return outcome

    async def _loop(self, config: ReconcileConfig) -> RunOutcome:
        total_count: int | None = None
        while True:
            if self.cancel.cancelled:
                return RunOutcome.CANCELLED
            if self.elapsed >= config.max_duration:
                logger.info("Max duration reached (%s)", format_elapsed(self.elapsed))
                return RunOutcome.BUDGET_EXHAUSTED

            offset = self.cursor.offset
            try:
                page = await self.upstream.list_page(offset, config.page_size, config.filters)
            except UpstreamTransientError as exc:
                logger.warning("Page request failed at position %s: %s", offset, exc)
                return RunOutcome.UPSTREAM_ERROR
            if page.rate_limited:
                logger.info("Rate limited. Progress saved at position %s", offset)
                return RunOutcome.RATE_LIMITED
            if not page.advance:
                logger.info("No more results to fetch")
                self.cursor.offset = 0
                return RunOutcome.EXHAUSTED

            if page.total_count is not None:
                total_count = page.total_count
            self.stats.pages += 1
            logger.info(
                "Page %s: processing %s listings (%s-%s%s) [%s]",
                self.stats.pages,
                page.advance,
                offset + 1,
                offset + page.advance,
                f" of {total_count}" if total_count is not None else "",
                format_elapsed(self.elapsed),
            )
            await self.process_page(page)

            self.cursor.offset = offset + page.advance
            if total_count is not None and self.cursor.offset >= total_count:
                logger.info("Reached end of results (%s >= %s)", self.cursor.offset, total_count)
                self.cursor.offset = 0
                return RunOutcome.EXHAUSTED
            self.persist()

            logger.info("Waiting %ss before next page", config.inter_request_delay)
            if await self.cancel.sleep(config.inter_request_delay):
                return RunOutcome.CANCELLED

    async def process_page(self, page: Page) -> None:
        """Resolve a page of records and apply the results in received order."""
        if self.resolve_concurrency <= 1:
            for record in page.records:
                await self.process_record(record)
            return

        semaphore = asyncio.Semaphore(self.resolve_concurrency)

        async def bounded(record: InventoryRecord, key: str) -> str | None:
            if self._should_preserve(key):
                return None
            async with semaphore:
                return await self._resolve(record)

        pending = [(record, key) for record in page.records if (key := self._eligible_key(record))]
        values = await asyncio.gather(*(bounded(record, key) for record, key in pending))
        for (_, key), value in zip(pending, values):
            self._apply(key, value)

    async def process_record(self, record: InventoryRecord) -> None:
        key = self._eligible_key(record)
        if key is None:
            return
        value = None if self._should_preserve(key) else await self._resolve(record)
        self._apply(key, value)

    def _eligible_key(self, record: InventoryRecord) -> str | None:
        if record.excluded:
            return None
        entry = self.catalog.lookup(record.lookup_token)
        if entry is None:
            self.stats.record_miss(CatalogLookupMiss(record.lookup_token))
            return None
        if entry.excluded:
            return None
        return record.key or entry.key

    def _should_preserve(self, key: str) -> bool:
        existing = self.store.get(key)
        return existing is not None and self.preserve(existing)

    async def _resolve(self, record: InventoryRecord) -> str | None:
        try:
            return await self.upstream.resolve_value(record)
        except UpstreamTransientError as exc:
            logger.warning("Could not resolve %s: %s", record.lookup_token, exc)
            return None

    def _apply(self, key: str, value: str | None) -> None:
        """Merge one resolved value, re-reading the store so repeated keys behave sequentially."""
        existing = self.store.get(key)
        if self._should_preserve(key):
            self.stats.preserved += 1
        elif value is not None:
            if value == existing:
                self.stats.skipped += 1
            else:
                self.store[key] = value
                self.stats.updated += 1
                logger.info("[UPDATED] %s", key)
        self.stats.processed += 1

    def persist(self) -> None:
        self.progress_store.save(self.cursor)
        self.store.save()

    def report(self) -> None:
        stats = self.stats
        logger.info(
            "Processed %s, updated %s, unchanged %s, preserved %s, not in catalog %s (%s)",
            stats.processed,
            stats.updated,
            stats.skipped,
            stats.preserved,
            stats.not_found,
            format_elapsed(self.elapsed),
        )
        if stats.not_found_tokens:
            logger.info("Items not in catalog (%s unique):", len(stats.not_found_tokens))
            for token in sorted(stats.not_found_tokens):
                logger.info("  - %s", token)
