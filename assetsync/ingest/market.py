"""Steam community market search upstream."""

from __future__ import annotations

import logging
import os
from typing import Any
from urllib.parse import urlparse

import httpx

from assetsync.errors import UpstreamRateLimited, UpstreamTransientError
from assetsync.ingest.models import InventoryRecord, Page, SearchFilters
from assetsync.utils.rate_limit import RateLimiter
from assetsync.utils.retry import retry_async

logger = logging.getLogger(__name__)

MARKET_SEARCH_URL = "https://steamcommunity.com/market/search/render/"
ECONOMY_IMAGE_URL = "https://community.akamai.steamstatic.com/economy/image/"
STEAM_APP_ID = 730
USER_AGENT = "Mozilla/5.0 (compatible; AssetSync/1.0)"


def image_url_from_listing(listing: dict[str, Any]) -> str | None:
    description = listing.get("asset_description") or {}
    icon_url = description.get("icon_url")
    if not icon_url:
        return None
    return f"{ECONOMY_IMAGE_URL}{icon_url}"


class MarketSearchClient:
    def __init__(
        self,
        *,
        session: httpx.AsyncClient | None = None,
        rate_limiter: RateLimiter | None = None,
        login_cookie: str | None = None,
    ) -> None:
        cookies = {"steamLoginSecure": login_cookie} if login_cookie else None
        self._session = session or httpx.AsyncClient(
            timeout=30.0, headers={"User-Agent": USER_AGENT}, cookies=cookies
        )
        if session is not None and login_cookie:
            self._session.cookies.set("steamLoginSecure", login_cookie)
        self._rate_limiter = rate_limiter or RateLimiter()

    async def close(self) -> None:
        await self._session.aclose()

    async def list_page(self, offset: int, page_size: int, filters: SearchFilters) -> Page:
        app_id = int(os.environ.get("ASSETSYNC_APP_ID", STEAM_APP_ID))
        params: dict[str, str | int] = {
            "query": filters.query,
            "appid": app_id,
            "norender": 1,
            "start": offset,
            "count": page_size,
        }
        if filters.category:
            params[f"category_{app_id}_Type[]"] = filters.category
        try:
            data = await self._get_json(MARKET_SEARCH_URL, params=params)
        except UpstreamRateLimited:
            logger.warning("Rate limited by market search at offset %s", offset)
            return Page(rate_limited=True)
        except (httpx.HTTPError, OSError) as exc:
            raise UpstreamTransientError(f"Market search failed at offset {offset}: {exc}") from exc
        if not isinstance(data, dict):
            raise UpstreamTransientError(f"Unexpected market search payload at offset {offset}")
        results = data.get("results") or []
        records = []
        for listing in results:
            hash_name = listing.get("hash_name")
            if not hash_name:
                continue
            records.append(InventoryRecord(lookup_token=hash_name, payload=listing))
        total = data.get("total_count")
        return Page(
            records=records,
            total_count=total if isinstance(total, int) else None,
            raw_count=len(results),
        )

    async def resolve_value(self, record: InventoryRecord) -> str | None:
        return image_url_from_listing(dict(record.payload))

    async def _get_json(self, url: str, *, params: dict[str, str | int]) -> Any:
        await self._rate_limiter.wait_for_host(urlparse(url).netloc)
        response = await retry_async(self._session.get)(url, params=params)
        if response.status_code == 429:
            raise UpstreamRateLimited(url)
        response.raise_for_status()
        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamTransientError(f"Invalid JSON from {url}") from exc
