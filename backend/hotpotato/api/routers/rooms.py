"""Read-only room inspection endpoints."""

from __future__ import annotations

from fastapi import APIRouter
from fastapi import Depends

from hotpotato.api.deps import get_runtime
from hotpotato.api.errors import raise_api_error
from hotpotato.api.room_views import room_detail
from hotpotato.api.room_views import room_summary
from hotpotato.runtime import GameRuntime

router = APIRouter(prefix="/api")


@router.get("/health")
def health() -> dict[str, bool]:
    return {"ok": True}


@router.get("/rooms")
def list_rooms(runtime: GameRuntime = Depends(get_runtime)) -> list[dict[str, object]]:
    """Return summaries of every live room."""
    return [room_summary(room) for room in runtime.registry.list_rooms()]


@router.get("/rooms/{room_code}")
def get_room_detail(room_code: str, runtime: GameRuntime = Depends(get_runtime)) -> dict[str, object]:
    """Return one room snapshot."""
    room = runtime.registry.find_room(room_code)
    if room is None:
        raise_api_error(
            status_code=404,
            code="ROOM_NOT_FOUND",
            message="room not found",
            detail={"room_code": room_code},
        )
    return room_detail(room)
