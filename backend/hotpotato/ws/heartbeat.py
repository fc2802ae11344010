"""Connection liveness probing and the per-connection receive loop.

The server pings, the client answers PONG. Two unanswered probes in a row
close the socket with 4408, and the normal disconnect path takes over.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from collections.abc import Callable
import json
import logging
import time
from typing import Any

from fastapi import WebSocketDisconnect

from .protocol import MalformedMessageError
from .protocol import ws_send_event

logger = logging.getLogger(__name__)

HEARTBEAT_CLOSE_CODE = 4408
MAX_MISSED_PONGS = 2


class HeartbeatState:
    """Liveness bookkeeping for one connection (monotonic timestamps)."""

    def __init__(self) -> None:
        self.last_ping_at: float | None = None
        self.last_pong_at: float | None = None
        self.missed_pongs = 0
        self._answered = asyncio.Event()
        self._answered.set()

    @property
    def probe_outstanding(self) -> bool:
        return not self._answered.is_set()

    def mark_ping_sent(self) -> None:
        self.last_ping_at = time.monotonic()
        self._answered.clear()

    def mark_pong_received(self) -> None:
        self.last_pong_at = time.monotonic()
        if self.probe_outstanding:
            self.missed_pongs = 0
            self._answered.set()

    async def wait_for_pong(self, *, timeout_seconds: float) -> bool:
        """True when the outstanding probe was answered in time."""
        try:
            await asyncio.wait_for(self._answered.wait(), timeout=timeout_seconds)
        except TimeoutError:
            self.missed_pongs += 1
            self._answered.set()
            return False
        return True


def _message_type(message: str) -> str | None:
    if message in {"PING", "PONG"}:
        return message
    try:
        payload = json.loads(message)
    except json.JSONDecodeError:
        return None
    if not isinstance(payload, dict):
        return None
    event_type = payload.get("type")
    return event_type if isinstance(event_type, str) else None


def is_ping_message(message: str) -> bool:
    return _message_type(message) == "PING"


def is_pong_message(message: str) -> bool:
    return _message_type(message) == "PONG"


async def send_heartbeat_ping(websocket: Any) -> None:
    await ws_send_event(websocket, "PING", {})


async def reply_with_pong(websocket: Any) -> None:
    await ws_send_event(websocket, "PONG", {})


async def handle_heartbeat_message(*, websocket: Any, heartbeat_state: HeartbeatState, message: str) -> bool:
    """Consume PING/PONG frames; False for anything else."""
    if is_ping_message(message):
        await reply_with_pong(websocket)
        return True
    if is_pong_message(message):
        heartbeat_state.mark_pong_received()
        return True
    return False


async def heartbeat_loop(
    websocket: Any,
    *,
    heartbeat_state: HeartbeatState,
    interval_seconds: float = 30.0,
    pong_timeout_seconds: float = 10.0,
    max_missed_pongs: int = MAX_MISSED_PONGS,
) -> None:
    idle_seconds = max(interval_seconds - pong_timeout_seconds, 0.0)
    while True:
        await asyncio.sleep(idle_seconds)
        heartbeat_state.mark_ping_sent()
        await send_heartbeat_ping(websocket)
        if await heartbeat_state.wait_for_pong(timeout_seconds=pong_timeout_seconds):
            continue
        if heartbeat_state.missed_pongs >= max_missed_pongs:
            logger.info("closing connection after %d missed pongs", heartbeat_state.missed_pongs)
            await websocket.close(code=HEARTBEAT_CLOSE_CODE, reason="HEARTBEAT_TIMEOUT")
            return


async def ws_message_loop(
    websocket: Any,
    *,
    on_message: Callable[[str], Awaitable[None]],
    heartbeat_interval_seconds: float = 30.0,
    pong_timeout_seconds: float = 10.0,
) -> None:
    """Pump text frames into on_message until the client goes away.

    Binary frames are answered with a MALFORMED_MESSAGE error and skipped.
    """
    heartbeat_state = HeartbeatState()
    heartbeat_task: asyncio.Task[Any] | None = None
    if heartbeat_interval_seconds > 0:
        heartbeat_task = asyncio.create_task(
            heartbeat_loop(
                websocket,
                heartbeat_state=heartbeat_state,
                interval_seconds=heartbeat_interval_seconds,
                pong_timeout_seconds=pong_timeout_seconds,
            )
        )
    try:
        while True:
            frame = await websocket.receive()
            if frame["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(code=frame.get("code", 1000), reason=frame.get("reason"))
            message = frame.get("text")
            if message is None:
                await ws_send_event(
                    websocket,
                    "ERROR",
                    {"message": "Only text frames are supported", "code": MalformedMessageError.code},
                )
                continue
            if await handle_heartbeat_message(websocket=websocket, heartbeat_state=heartbeat_state, message=message):
                continue
            await on_message(message)
    except WebSocketDisconnect:
        return
    finally:
        if heartbeat_task is not None:
            heartbeat_task.cancel()
            try:
                await heartbeat_task
            except asyncio.CancelledError:
                pass
            except Exception:
                logger.warning("heartbeat stopped with an error", exc_info=True)
