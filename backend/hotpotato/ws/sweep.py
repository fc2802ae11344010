"""Periodic round-expiry sweep."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from collections.abc import Callable
import logging

logger = logging.getLogger(__name__)


class RoundTimerSweep:
    """Call tick() every interval until stopped; one failing tick never ends the loop."""

    def __init__(self, *, interval_seconds: float, tick: Callable[[], Awaitable[None]]) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")

        self._interval_seconds = interval_seconds
        self._tick = tick
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self.run())
        logger.info("round sweep started, interval %.3fs", self._interval_seconds)

    async def stop(self) -> None:
        task = self._task
        self._task = None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def run(self) -> None:
        while True:
            await asyncio.sleep(self._interval_seconds)
            try:
                await self._tick()
            except Exception:
                logger.exception("round sweep tick failed")
