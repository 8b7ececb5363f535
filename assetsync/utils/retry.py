"""Retry helpers for transient network failures."""

from __future__ import annotations

import asyncio
import functools
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import httpx

RETRY_EXCEPTIONS = (OSError, asyncio.TimeoutError, httpx.TransportError)


@dataclass(frozen=True, slots=True)
class BackoffPolicy:
    attempts: int = 3
    base: float = 1.0
    cap: float = 30.0
    jitter: bool = True

    def delay(self, attempt: int) -> float:
        """Seconds to wait after the given (1-based) failed attempt."""
        return min(self.base * 2 ** (attempt - 1), self.cap)


DEFAULT_POLICY = BackoffPolicy()


def retry_async(func: Callable[..., Awaitable], *, policy: BackoffPolicy = DEFAULT_POLICY):
    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        for attempt in range(1, policy.attempts + 1):
            try:
                return await func(*args, **kwargs)
            except RETRY_EXCEPTIONS:
                if attempt == policy.attempts:
                    raise
                delay = policy.delay(attempt)
                if policy.jitter:
                    delay += random.random()
                await asyncio.sleep(delay)
    return wrapper
