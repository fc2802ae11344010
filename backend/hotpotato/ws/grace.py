"""Deferred removal of abruptly disconnected players.

Pending removals live in one table keyed by player id. A removal is never
cancelled by a rejoin: the callback re-checks membership when it fires, and
a player who already left (or was replaced by a fresh identity) makes it a
no-op.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from collections.abc import Callable
from dataclasses import dataclass
import logging

logger = logging.getLogger(__name__)

ExpireCallback = Callable[[str, str], Awaitable[None]]


@dataclass(slots=True)
class PendingRemoval:
    player_id: str
    room_code: str
    task: asyncio.Task[None]


class DisconnectGraceTable:
    """Process-wide table of one-shot grace timers."""

    def __init__(self, *, delay_seconds: float, on_expire: ExpireCallback) -> None:
        self._delay_seconds = delay_seconds
        self._on_expire = on_expire
        self._pending: dict[str, PendingRemoval] = {}

    @property
    def delay_seconds(self) -> float:
        return self._delay_seconds

    def schedule(self, *, player_id: str, room_code: str) -> None:
        """Start the grace window for one player; must run inside the event loop."""
        previous = self._pending.pop(player_id, None)
        if previous is not None:
            previous.task.cancel()

        task = asyncio.get_running_loop().create_task(self._expire_later(player_id))
        self._pending[player_id] = PendingRemoval(player_id=player_id, room_code=room_code, task=task)
        logger.info("player %s in room %s disconnected, removal in %.1fs", player_id, room_code, self._delay_seconds)

    def is_pending(self, player_id: str) -> bool:
        return player_id in self._pending

    def pending_player_ids(self) -> list[str]:
        return list(self._pending)

    async def fire_now(self, player_id: str) -> bool:
        """Run a pending removal immediately instead of waiting out the window."""
        entry = self._pending.pop(player_id, None)
        if entry is None:
            return False
        entry.task.cancel()
        await self._run(entry)
        return True

    async def cancel_all(self) -> None:
        entries = list(self._pending.values())
        self._pending.clear()
        for entry in entries:
            entry.task.cancel()
        for entry in entries:
            try:
                await entry.task
            except asyncio.CancelledError:
                pass

    async def _expire_later(self, player_id: str) -> None:
        await asyncio.sleep(self._delay_seconds)
        entry = self._pending.get(player_id)
        if entry is None or entry.task is not asyncio.current_task():
            return
        del self._pending[player_id]
        await self._run(entry)

    async def _run(self, entry: PendingRemoval) -> None:
        logger.info("grace window over for player %s in room %s", entry.player_id, entry.room_code)
        try:
            await self._on_expire(entry.player_id, entry.room_code)
        except Exception:
            logger.exception("disconnect removal failed for player %s", entry.player_id)
