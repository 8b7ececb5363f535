"""Spacing of outgoing requests, tracked separately for each host."""

from __future__ import annotations

import asyncio
import os
import time

DEFAULT_RATE = 1.5


class RateLimiter:
    """Keeps requests to one host at least ``1 / rate`` seconds apart.

    ``rate`` is requests per second; zero or less turns limiting off. When
    omitted it comes from ``ASSETSYNC_HTTP_RATE`` at construction time.
    """

    def __init__(self, *, rate: float | None = None) -> None:
        if rate is None:
            rate = float(os.environ.get("ASSETSYNC_HTTP_RATE", DEFAULT_RATE))
        self.rate = rate
        self._host_locks: dict[str, asyncio.Lock] = {}
        self._next_allowed: dict[str, float] = {}

    @property
    def interval(self) -> float:
        return 1.0 / self.rate if self.rate > 0 else 0.0

    async def wait_for_host(self, host: str) -> None:
        if self.rate <= 0:
            return
        async with self._host_locks.setdefault(host, asyncio.Lock()):
            delay = self._next_allowed.get(host, 0.0) - time.monotonic()
            if delay > 0:
                await asyncio.sleep(delay)
            self._next_allowed[host] = time.monotonic() + self.interval
