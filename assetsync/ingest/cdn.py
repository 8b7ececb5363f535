"""Canonical CDN URLs for locally extracted panorama images."""

from __future__ import annotations

import asyncio
import hashlib
import logging
import os
import pathlib
from urllib.parse import urlparse

import httpx

from assetsync.errors import UpstreamTransientError
from assetsync.ingest.models import InventoryRecord, Page, SearchFilters
from assetsync.utils.rate_limit import RateLimiter
from assetsync.utils.retry import retry_async

logger = logging.getLogger(__name__)

CDN_BASE_URL = "https://cdn.steamstatic.com/apps/730/icons"
CDN_CONCURRENCY = 5


def sha1_of_file(path: pathlib.Path) -> str:
    digest = hashlib.sha1()
    with path.open("rb") as fh:
        for chunk in iter(lambda: fh.read(65536), b""):
            digest.update(chunk)
    return digest.hexdigest()


def cdn_url(key: str, sha1: str, *, base_url: str = CDN_BASE_URL) -> str:
    return f"{base_url.rstrip('/')}/{key.replace(os.sep, '/')}.{sha1}.png"


class CdnSource:
    """Pages over unresolved inventory keys and checks them against the CDN.

    The key list is a snapshot taken at construction, so writes made while
    the run progresses do not shift later pages.
    """

    def __init__(
        self,
        keys: list[str],
        panorama_dir: pathlib.Path,
        *,
        session: httpx.AsyncClient | None = None,
        rate_limiter: RateLimiter | None = None,
        concurrency: int = CDN_CONCURRENCY,
        base_url: str | None = None,
    ) -> None:
        self.keys = sorted(keys)
        self.panorama_dir = panorama_dir
        self.base_url = base_url or os.environ.get("ASSETSYNC_CDN_BASE_URL", CDN_BASE_URL)
        self.skipped_files: list[pathlib.Path] = []
        self._session = session or httpx.AsyncClient(timeout=10.0)
        self._rate_limiter = rate_limiter or RateLimiter(rate=0)
        self._semaphore = asyncio.Semaphore(concurrency)

    async def close(self) -> None:
        await self._session.aclose()

    def local_path(self, key: str) -> pathlib.Path:
        return self.panorama_dir / f"{key}_png.png"

    async def list_page(self, offset: int, page_size: int, filters: SearchFilters) -> Page:
        chunk = self.keys[offset : offset + page_size]
        records = [InventoryRecord(lookup_token=key, key=key) for key in chunk]
        return Page(records=records, total_count=len(self.keys))

    async def resolve_value(self, record: InventoryRecord) -> str | None:
        key = record.key or record.lookup_token
        local = self.local_path(key)
        if not local.exists():
            logger.info("Local file not found: %s", local)
            self.skipped_files.append(local)
            return None
        try:
            sha1 = sha1_of_file(local)
        except OSError as exc:
            logger.warning("Could not read %s: %s", local, exc)
            self.skipped_files.append(local)
            return None
        url = cdn_url(key, sha1, base_url=self.base_url)
        if await self.exists(url):
            logger.info("CDN hit %s -> %s", key, url)
            return url
        logger.info("CDN image not found: %s", url)
        return None

    async def exists(self, url: str) -> bool:
        async with self._semaphore:
            await self._rate_limiter.wait_for_host(urlparse(url).netloc)
            try:
                response = await retry_async(self._session.head)(url)
            except httpx.HTTPError as exc:
                raise UpstreamTransientError(f"HEAD {url} failed: {exc}") from exc
        return response.status_code == 200
