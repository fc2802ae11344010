"""WebSocket route handler for game sessions."""

from __future__ import annotations

from functools import partial

from fastapi import APIRouter
from fastapi import WebSocket

from hotpotato.runtime import GameRuntime

from .heartbeat import ws_message_loop

router = APIRouter()


@router.websocket("/ws")
async def ws_session(websocket: WebSocket) -> None:
    """One participant's session: intents in, snapshots out, grace handling on close."""
    runtime: GameRuntime = websocket.app.state.runtime
    settings = runtime.settings

    await websocket.accept()
    try:
        await ws_message_loop(
            websocket,
            on_message=partial(runtime.handle_message, websocket),
            heartbeat_interval_seconds=settings.hotpotato_heartbeat_interval_seconds,
            pong_timeout_seconds=settings.hotpotato_heartbeat_pong_timeout_seconds,
        )
    finally:
        await runtime.handle_disconnect(websocket)
