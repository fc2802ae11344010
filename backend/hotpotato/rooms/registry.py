"""In-memory room store: admission, departure and host succession."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from dataclasses import field
import logging

from hotpotato.core.identity import new_player_id

from .errors import CapacityError
from .errors import DuplicateNameError
from .errors import PhaseError
from .errors import RoleError
from .errors import RoomNotFoundError
from .errors import TargetError
from .errors import ValidationError

logger = logging.getLogger(__name__)

MAX_PLAYERS = 4
NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 17

PHASE_LOBBY = "lobby"
PHASE_COUNTDOWN = "countdown"
PHASE_PLAYING = "playing"
PHASE_ENDED = "ended"


@dataclass(slots=True)
class Player:
    """Room member state tracked in memory."""

    player_id: str
    name: str
    potato_slot: int
    is_host: bool = False
    is_ready: bool = False
    connected: bool = True


@dataclass(slots=True)
class Room:
    """Room aggregate state."""

    code: str
    max_players: int = MAX_PLAYERS
    players: list[Player] = field(default_factory=list)
    phase: str = PHASE_LOBBY
    host_id: str | None = None
    potato_holder_id: str | None = None
    end_time: int | None = None
    countdown_ends_at: int | None = None

    def find_player(self, player_id: str | None) -> Player | None:
        for player in self.players:
            if player.player_id == player_id:
                return player
        return None

    @property
    def host(self) -> Player | None:
        return self.find_player(self.host_id)

    @property
    def potato_holder(self) -> Player | None:
        return self.find_player(self.potato_holder_id)

    def clear_round(self) -> None:
        """Drop back to lobby, forgetting holder and deadlines."""
        self.phase = PHASE_LOBBY
        self.potato_holder_id = None
        self.end_time = None
        self.countdown_ends_at = None

    def return_to_lobby(self) -> None:
        """Lobby reset that also clears everyone's readiness."""
        self.clear_round()
        for player in self.players:
            player.is_ready = False


@dataclass(slots=True)
class Departure:
    """Outcome of removing one player from a room."""

    room_code: str
    player: Player
    room: Room | None
    previous_host_id: str | None = None
    new_host_id: str | None = None

    @property
    def room_deleted(self) -> bool:
        return self.room is None

    @property
    def host_transferred(self) -> bool:
        return self.new_host_id is not None


class RoomRegistry:
    """In-memory room code -> Room mapping; the single source of game truth."""

    def __init__(
        self,
        *,
        max_players: int = MAX_PLAYERS,
        name_min_length: int = NAME_MIN_LENGTH,
        name_max_length: int = NAME_MAX_LENGTH,
        id_factory: Callable[[], str] = new_player_id,
    ) -> None:
        if max_players < 1:
            raise ValueError("max_players must be >= 1")

        self._rooms: dict[str, Room] = {}
        self._max_players = max_players
        self._name_min_length = name_min_length
        self._name_max_length = name_max_length
        self._id_factory = id_factory

    @property
    def max_players(self) -> int:
        return self._max_players

    def get_room(self, room_code: str) -> Room:
        """Return room by code."""
        room = self._rooms.get(room_code)
        if room is None:
            raise RoomNotFoundError(f"room_code={room_code} not found")
        return room

    def find_room(self, room_code: str) -> Room | None:
        return self._rooms.get(room_code)

    def list_rooms(self) -> list[Room]:
        """Return all live rooms in creation order."""
        return list(self._rooms.values())

    def __contains__(self, room_code: object) -> bool:
        return room_code in self._rooms

    def __len__(self) -> int:
        return len(self._rooms)

    def join(self, *, room_code: str | None, player_name: str | None) -> tuple[Room, Player]:
        """Admit a player, creating the room on first join to an unknown code."""
        if not room_code or not player_name:
            raise ValidationError("Room code and player name required")
        if not self._name_min_length <= len(player_name) <= self._name_max_length:
            raise ValidationError(
                f"Player name must be between {self._name_min_length} "
                f"and {self._name_max_length} characters"
            )

        room = self._rooms.get(room_code)
        if room is not None:
            if len(room.players) >= room.max_players:
                raise CapacityError(f"Room is full (max {room.max_players} players)")
            if room.phase in {PHASE_COUNTDOWN, PHASE_PLAYING}:
                raise PhaseError("Game in progress! Please wait for the next round.")
            if any(player.name == player_name for player in room.players):
                raise DuplicateNameError(
                    "Player name already taken in this room. Please change it and try again."
                )

        created = room is None
        if room is None:
            room = Room(code=room_code, max_players=self._max_players)

        player = Player(
            player_id=self._id_factory(),
            name=player_name,
            potato_slot=self._pick_min_available_slot(room),
        )
        if room.host_id is None:
            player.is_host = True
            room.host_id = player.player_id
        room.players.append(player)

        if created:
            self._rooms[room_code] = room
            logger.info("room %s created, host %s", room_code, player_name)
        return room, player

    def leave(self, *, room_code: str, player_id: str) -> Departure:
        """Remove a player immediately and reset the remaining room to lobby."""
        room = self.get_room(room_code)
        departure = self._remove(room, player_id)
        if departure.room is not None:
            departure.room.return_to_lobby()
        return departure

    def remove_disconnected(self, *, room_code: str, player_id: str) -> Departure | None:
        """Grace-expiry removal; None when the player already left on their own."""
        room = self._rooms.get(room_code)
        if room is None or room.find_player(player_id) is None:
            return None
        return self._remove(room, player_id)

    def toggle_ready(self, *, room_code: str, player_id: str) -> tuple[Room, Player]:
        """Flip a non-host player's readiness while the room is in lobby."""
        room = self.get_room(room_code)
        player = room.find_player(player_id)
        if player is None:
            raise TargetError("You are not in this room")
        if player.player_id == room.host_id:
            raise RoleError("Host doesn't need to ready up")
        if room.phase != PHASE_LOBBY:
            raise PhaseError("Readiness can only change in the lobby")

        player.is_ready = not player.is_ready
        return room, player

    def mark_disconnected(self, *, room_code: str, player_id: str) -> Player | None:
        room = self._rooms.get(room_code)
        if room is None:
            return None
        player = room.find_player(player_id)
        if player is not None:
            player.connected = False
        return player

    def _remove(self, room: Room, player_id: str) -> Departure:
        player = room.find_player(player_id)
        if player is None:
            raise TargetError("You are not in this room")

        room.players.remove(player)
        departure = Departure(room_code=room.code, player=player, room=room, previous_host_id=room.host_id)

        if not room.players:
            del self._rooms[room.code]
            departure.room = None
            logger.info("room %s deleted (empty)", room.code)
            return departure

        if room.host_id == player.player_id:
            new_host = room.players[0]
            new_host.is_host = True
            room.host_id = new_host.player_id
            departure.new_host_id = new_host.player_id
            logger.info("room %s host transferred from %s to %s", room.code, player.name, new_host.name)
        return departure

    def _pick_min_available_slot(self, room: Room) -> int:
        used_slots = {player.potato_slot for player in room.players}
        for slot in range(room.max_players):
            if slot not in used_slots:
                return slot
        return 0


__all__ = [
    "Departure",
    "MAX_PLAYERS",
    "NAME_MAX_LENGTH",
    "NAME_MIN_LENGTH",
    "PHASE_COUNTDOWN",
    "PHASE_ENDED",
    "PHASE_LOBBY",
    "PHASE_PLAYING",
    "Player",
    "Room",
    "RoomRegistry",
]
