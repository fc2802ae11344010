"""Heartbeat probing and receive-loop tests."""

from __future__ import annotations

import asyncio
from typing import Any

from hotpotato.ws.heartbeat import HEARTBEAT_CLOSE_CODE
from hotpotato.ws.heartbeat import HeartbeatState
from hotpotato.ws.heartbeat import heartbeat_loop
from hotpotato.ws.heartbeat import ws_message_loop


class _SilentWebSocket:
    def __init__(
        self,
        inbound: list[str | bytes] | None = None,
        *,
        linger_seconds: float = 0.0,
        fail_sends: bool = False,
    ) -> None:
        self.sent: list[dict[str, Any]] = []
        self.close_code: int | None = None
        self._inbound = list(inbound or [])
        self._linger_seconds = linger_seconds
        self._fail_sends = fail_sends

    async def send_json(self, payload: dict[str, Any]) -> None:
        if self._fail_sends:
            raise RuntimeError("socket closed")
        self.sent.append(payload)

    async def close(self, *, code: int = 1000, reason: str | None = None) -> None:
        self.close_code = code

    async def receive(self) -> dict[str, Any]:
        if self._inbound:
            frame = self._inbound.pop(0)
            key = "bytes" if isinstance(frame, bytes) else "text"
            return {"type": "websocket.receive", key: frame}
        await asyncio.sleep(self._linger_seconds)
        return {"type": "websocket.disconnect", "code": 1000}


def test_unanswered_probes_close_with_heartbeat_code() -> None:
    """Input: client never answers -> Output: two PINGs then close 4408."""

    async def _run() -> None:
        websocket = _SilentWebSocket()
        state = HeartbeatState()

        await asyncio.wait_for(
            heartbeat_loop(websocket, heartbeat_state=state, interval_seconds=0.01, pong_timeout_seconds=0.01),
            timeout=2,
        )

        assert [frame["type"] for frame in websocket.sent] == ["PING", "PING"]
        assert websocket.close_code == HEARTBEAT_CLOSE_CODE
        assert state.missed_pongs == 2

    asyncio.run(_run())


def test_pong_answers_probe_and_resets_missed_count() -> None:
    async def _run() -> None:
        state = HeartbeatState()
        state.mark_ping_sent()
        assert not await state.wait_for_pong(timeout_seconds=0.01)
        assert state.missed_pongs == 1

        state.mark_ping_sent()
        state.mark_pong_received()

        assert await state.wait_for_pong(timeout_seconds=0.01)
        assert state.missed_pongs == 0
        assert not state.probe_outstanding

    asyncio.run(_run())


def test_message_loop_answers_ping_and_forwards_other_frames() -> None:
    async def _run() -> None:
        websocket = _SilentWebSocket(inbound=["PING", '{"type": "START_GAME"}', '{"type": "PONG"}'])
        forwarded: list[str] = []

        async def _on_message(message: str) -> None:
            forwarded.append(message)

        await ws_message_loop(websocket, on_message=_on_message, heartbeat_interval_seconds=0)

        assert forwarded == ['{"type": "START_GAME"}']
        assert [frame["type"] for frame in websocket.sent] == ["PONG"]

    asyncio.run(_run())


def test_binary_frame_gets_malformed_error_and_loop_continues() -> None:
    async def _run() -> None:
        websocket = _SilentWebSocket(inbound=[b"\xff\xfe not json", "PING", '{"type": "LEAVE_ROOM"}'])
        forwarded: list[str] = []

        async def _on_message(message: str) -> None:
            forwarded.append(message)

        await ws_message_loop(websocket, on_message=_on_message, heartbeat_interval_seconds=0)

        assert [frame["type"] for frame in websocket.sent] == ["ERROR", "PONG"]
        assert websocket.sent[0]["code"] == "MALFORMED_MESSAGE"
        assert forwarded == ['{"type": "LEAVE_ROOM"}']

    asyncio.run(_run())


def test_failed_ping_does_not_escape_the_message_loop() -> None:
    """Input: heartbeat send raises -> Output: loop still returns normally on disconnect."""

    async def _run() -> None:
        websocket = _SilentWebSocket(linger_seconds=0.05, fail_sends=True)

        async def _on_message(message: str) -> None:
            raise AssertionError("no frames expected")

        await ws_message_loop(
            websocket,
            on_message=_on_message,
            heartbeat_interval_seconds=0.01,
            pong_timeout_seconds=0.01,
        )

        assert websocket.close_code is None

    asyncio.run(_run())
