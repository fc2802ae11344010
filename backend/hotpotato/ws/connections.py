"""Connection registry: live socket -> (player id, room code)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class ConnectionBinding:
    player_id: str
    room_code: str


class ConnectionRegistry:
    """Track which player and room each open connection speaks for."""

    def __init__(self) -> None:
        self._bindings: dict[Any, ConnectionBinding] = {}

    def bind(self, websocket: Any, *, player_id: str, room_code: str) -> ConnectionBinding:
        binding = ConnectionBinding(player_id=player_id, room_code=room_code)
        self._bindings[websocket] = binding
        return binding

    def get(self, websocket: Any) -> ConnectionBinding | None:
        return self._bindings.get(websocket)

    def unbind(self, websocket: Any) -> ConnectionBinding | None:
        return self._bindings.pop(websocket, None)

    def connections_in_room(self, room_code: str) -> list[Any]:
        """Return room connections in registration order."""
        return [websocket for websocket, binding in self._bindings.items() if binding.room_code == room_code]

    def __contains__(self, websocket: object) -> bool:
        return websocket in self._bindings

    def __len__(self) -> int:
        return len(self._bindings)
