"""Round lifecycle: start, pass, expiry, play-again and countdown go-live."""

from __future__ import annotations

from collections.abc import Callable
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from datetime import timezone
import logging
import random

from .errors import AuthorityError
from .errors import PhaseError
from .errors import PlayerCountError
from .errors import RoleError
from .errors import TargetError
from .registry import Departure
from .registry import PHASE_COUNTDOWN
from .registry import PHASE_ENDED
from .registry import PHASE_LOBBY
from .registry import PHASE_PLAYING
from .registry import Player
from .registry import Room

logger = logging.getLogger(__name__)

MIN_PLAYERS = 2
ROUND_MIN_MS = 10_000
ROUND_MAX_MS = 30_000


def now_ms() -> int:
    """Wall-clock epoch milliseconds, the unit of every room deadline."""
    return int(datetime.now(timezone.utc).timestamp() * 1000)


@dataclass(slots=True)
class RoundEnd:
    """One round that blew up during a sweep."""

    room: Room
    loser: Player | None


@dataclass(slots=True)
class DepartureRepair:
    """Round-state fixups applied after a mid-round disconnect removal."""

    returned_to_lobby: bool = False
    new_holder: Player | None = None


class RoundRules:
    """Phase transitions and potato rules operating on one Room aggregate."""

    def __init__(
        self,
        *,
        min_players: int = MIN_PLAYERS,
        round_min_ms: int = ROUND_MIN_MS,
        round_max_ms: int = ROUND_MAX_MS,
        countdown_ms: int = 0,
        rng: random.Random | None = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        if round_min_ms > round_max_ms:
            raise ValueError("round_min_ms must be <= round_max_ms")

        self._min_players = min_players
        self._round_min_ms = round_min_ms
        self._round_max_ms = round_max_ms
        self._countdown_ms = countdown_ms
        self._rng = rng or random.Random()
        self._clock = clock

    def now(self) -> int:
        return self._clock()

    def draw_duration_ms(self) -> int:
        return round(self._rng.uniform(self._round_min_ms, self._round_max_ms))

    def start_round(self, room: Room, *, player_id: str) -> Player:
        """Host starts a round from the lobby; returns the initial holder."""
        self._require_host(room, player_id, "Only the host can start the game")
        if len(room.players) < self._min_players:
            raise PlayerCountError(f"Need at least {self._min_players} players to start")
        if room.phase != PHASE_LOBBY:
            raise PhaseError("Game already in progress")
        return self._begin_round(room)

    def play_again(self, room: Room, *, player_id: str) -> Player:
        """Host chains straight into a new round from the ended phase."""
        self._require_host(room, player_id, "Only the host can reset the game")
        if room.phase != PHASE_ENDED:
            raise PhaseError("Game is still in progress")
        room.clear_round()
        logger.info("room %s reset for new game", room.code)
        return self._begin_round(room)

    def pass_potato(self, room: Room, *, player_id: str, target_player_id: str | None) -> Player:
        """Hand the potato from the caller to another member; returns the target."""
        if room.phase != PHASE_PLAYING:
            raise PhaseError("Game is not active")
        if room.potato_holder_id != player_id:
            raise AuthorityError("You do not have the potato")
        target = room.find_player(target_player_id)
        if target is None:
            raise TargetError("Invalid target player")

        room.potato_holder_id = target.player_id
        logger.debug("room %s potato passed to %s", room.code, target.name)
        return target

    def go_live_due(self, rooms: Iterable[Room], *, now: int) -> list[Room]:
        """Move every room whose countdown finished into play."""
        live: list[Room] = []
        for room in rooms:
            if room.phase != PHASE_COUNTDOWN or room.countdown_ends_at is None:
                continue
            if now < room.countdown_ends_at:
                continue
            room.phase = PHASE_PLAYING
            room.countdown_ends_at = None
            room.end_time = now + self.draw_duration_ms()
            live.append(room)
        return live

    def expire_due(self, rooms: Iterable[Room], *, now: int) -> list[RoundEnd]:
        """End every playing round whose deadline has passed."""
        ended: list[RoundEnd] = []
        for room in rooms:
            if room.phase != PHASE_PLAYING or room.end_time is None:
                continue
            if now < room.end_time:
                continue
            ended.append(RoundEnd(room=room, loser=self.expire_round(room)))
        return ended

    def expire_round(self, room: Room) -> Player | None:
        loser = room.potato_holder
        room.phase = PHASE_ENDED
        room.end_time = None
        logger.info("game ended in room %s, loser: %s", room.code, loser.name if loser else None)
        return loser

    def repair_after_departure(self, departure: Departure) -> DepartureRepair:
        """Keep an in-flight round consistent after a player vanished from it."""
        room = departure.room
        repair = DepartureRepair()
        if room is None or room.phase == PHASE_LOBBY:
            return repair

        if len(room.players) < self._min_players:
            room.return_to_lobby()
            repair.returned_to_lobby = True
            return repair

        in_round = room.phase in {PHASE_COUNTDOWN, PHASE_PLAYING}
        if in_round and room.potato_holder_id == departure.player.player_id:
            repair.new_holder = self._rng.choice(room.players)
            room.potato_holder_id = repair.new_holder.player_id
        return repair

    def _begin_round(self, room: Room) -> Player:
        holder = self._rng.choice(room.players)
        room.potato_holder_id = holder.player_id
        now = self._clock()
        if self._countdown_ms > 0:
            room.phase = PHASE_COUNTDOWN
            room.countdown_ends_at = now + self._countdown_ms
            room.end_time = None
            logger.info("countdown started in room %s, ends at %s", room.code, room.countdown_ends_at)
            return holder

        duration = self.draw_duration_ms()
        room.phase = PHASE_PLAYING
        room.end_time = now + duration
        logger.info("game started in room %s, timer: %.1fs", room.code, duration / 1000)
        return holder

    @staticmethod
    def _require_host(room: Room, player_id: str, message: str) -> None:
        if room.host_id != player_id:
            raise RoleError(message)


__all__ = [
    "DepartureRepair",
    "MIN_PLAYERS",
    "ROUND_MAX_MS",
    "ROUND_MIN_MS",
    "RoundEnd",
    "RoundRules",
    "now_ms",
]
