"""Cooperative cancellation for long-running jobs."""

from __future__ import annotations

import asyncio
import logging
import signal

logger = logging.getLogger(__name__)


class CancellationToken:
    """Flag polled by the run loop at page boundaries."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        if not self._event.is_set():
            logger.info("Interrupt received; finishing current page before stopping")
        self._event.set()

    async def sleep(self, seconds: float) -> bool:
        """Sleep up to ``seconds``; return True if cancelled meanwhile."""
        if seconds <= 0:
            return self.cancelled
        try:
            await asyncio.wait_for(self._event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return False
        return True

    def install_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self.cancel)
            except (NotImplementedError, RuntimeError):  # pragma: no cover - windows
                signal.signal(sig, lambda *_: loop.call_soon_threadsafe(self.cancel))
