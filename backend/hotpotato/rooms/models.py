"""Pydantic models for inbound client intents."""

from __future__ import annotations

from typing import Annotated
from typing import Literal
from typing import Union

from pydantic import AliasChoices
from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import TypeAdapter


class _Intent(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class JoinRoomIntent(_Intent):
    """JOIN_ROOM{roomCode, playerName}; `roomId` is accepted for older clients."""

    type: Literal["JOIN_ROOM"]
    room_code: str | None = Field(default=None, validation_alias=AliasChoices("roomCode", "roomId"))
    player_name: str | None = Field(default=None, validation_alias=AliasChoices("playerName"))


class LeaveRoomIntent(_Intent):
    type: Literal["LEAVE_ROOM"]


class ToggleReadyIntent(_Intent):
    type: Literal["TOGGLE_READY"]


class StartGameIntent(_Intent):
    type: Literal["START_GAME"]


class PassPotatoIntent(_Intent):
    """PASS_POTATO{targetPlayerId}."""

    type: Literal["PASS_POTATO"]
    target_player_id: str | None = Field(default=None, validation_alias=AliasChoices("targetPlayerId"))


class PlayAgainIntent(_Intent):
    type: Literal["PLAY_AGAIN"]


class EnterGameRoomIntent(_Intent):
    """GAME_ROOM{}: host moves everyone to the game screen."""

    type: Literal["GAME_ROOM"]


Intent = Annotated[
    Union[
        JoinRoomIntent,
        LeaveRoomIntent,
        ToggleReadyIntent,
        StartGameIntent,
        PassPotatoIntent,
        PlayAgainIntent,
        EnterGameRoomIntent,
    ],
    Field(discriminator="type"),
]

INTENT_ADAPTER: TypeAdapter[Intent] = TypeAdapter(Intent)


__all__ = [
    "EnterGameRoomIntent",
    "INTENT_ADAPTER",
    "Intent",
    "JoinRoomIntent",
    "LeaveRoomIntent",
    "PassPotatoIntent",
    "PlayAgainIntent",
    "StartGameIntent",
    "ToggleReadyIntent",
]
