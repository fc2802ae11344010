"""WebSocket wire protocol helpers."""

from __future__ import annotations

import json
from typing import Any

from pydantic import ValidationError as PayloadValidationError

from hotpotato.rooms.models import INTENT_ADAPTER
from hotpotato.rooms.models import Intent

WS_PROTOCOL_VERSION = 1


class MalformedMessageError(ValueError):
    """Raised when an inbound frame is not a well-formed intent."""

    code = "MALFORMED_MESSAGE"


def ws_event(event_type: str, payload: dict[str, Any]) -> dict[str, Any]:
    return {"v": WS_PROTOCOL_VERSION, "type": event_type, **payload}


async def ws_send_event(websocket: Any, event_type: str, payload: dict[str, Any]) -> None:
    message = ws_event(event_type, payload)
    if hasattr(websocket, "send_json"):
        await websocket.send_json(message)
        return
    if hasattr(websocket, "send_text"):
        await websocket.send_text(json.dumps(message))


def parse_intent(raw: str) -> Intent:
    """Decode one text frame into a typed intent."""
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise MalformedMessageError("Message is not valid JSON") from exc
    try:
        return INTENT_ADAPTER.validate_python(payload)
    except PayloadValidationError as exc:
        raise MalformedMessageError("Unrecognized or malformed message") from exc
