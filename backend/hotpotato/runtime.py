"""Process-wide runtime: the single serialized worker behind every room mutation.

Inbound intents, the round sweep and grace-window expiry all mutate rooms
under one asyncio.Lock, and each broadcasts while still holding it, so a
room's notifications go out in the order its state changed.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
import logging
import random
from typing import Any

from hotpotato.api.room_views import player_detail
from hotpotato.api.room_views import room_detail
from hotpotato.core.config import Settings
from hotpotato.core.identity import new_player_id
from hotpotato.rooms.errors import GameError
from hotpotato.rooms.errors import RoleError
from hotpotato.rooms.errors import ValidationError
from hotpotato.rooms.game import RoundRules
from hotpotato.rooms.game import now_ms
from hotpotato.rooms.models import EnterGameRoomIntent
from hotpotato.rooms.models import Intent
from hotpotato.rooms.models import JoinRoomIntent
from hotpotato.rooms.models import LeaveRoomIntent
from hotpotato.rooms.models import PassPotatoIntent
from hotpotato.rooms.models import PlayAgainIntent
from hotpotato.rooms.models import StartGameIntent
from hotpotato.rooms.models import ToggleReadyIntent
from hotpotato.rooms.registry import PHASE_COUNTDOWN
from hotpotato.rooms.registry import Player
from hotpotato.rooms.registry import Room
from hotpotato.rooms.registry import RoomRegistry
from hotpotato.ws.broadcast import BroadcastFanout
from hotpotato.ws.connections import ConnectionBinding
from hotpotato.ws.connections import ConnectionRegistry
from hotpotato.ws.grace import DisconnectGraceTable
from hotpotato.ws.protocol import MalformedMessageError
from hotpotato.ws.protocol import parse_intent
from hotpotato.ws.sweep import RoundTimerSweep

logger = logging.getLogger(__name__)


class GameRuntime:
    """Owns the room store, connection registry, fanout, grace table and sweep."""

    def __init__(
        self,
        settings: Settings,
        *,
        rng: random.Random | None = None,
        clock: Callable[[], int] = now_ms,
        id_factory: Callable[[], str] = new_player_id,
    ) -> None:
        self.settings = settings
        self.registry = RoomRegistry(
            max_players=settings.hotpotato_max_players,
            name_min_length=settings.hotpotato_name_min_length,
            name_max_length=settings.hotpotato_name_max_length,
            id_factory=id_factory,
        )
        self.rules = RoundRules(
            min_players=settings.hotpotato_min_players,
            round_min_ms=settings.hotpotato_round_min_ms,
            round_max_ms=settings.hotpotato_round_max_ms,
            countdown_ms=settings.hotpotato_countdown_ms,
            rng=rng,
            clock=clock,
        )
        self.connections = ConnectionRegistry()
        self.fanout = BroadcastFanout(self.connections)
        self.grace = DisconnectGraceTable(
            delay_seconds=settings.hotpotato_disconnect_grace_ms / 1000,
            on_expire=self.expire_disconnected,
        )
        self.sweep = RoundTimerSweep(
            interval_seconds=settings.hotpotato_sweep_interval_ms / 1000,
            tick=self.sweep_once,
        )
        self._lock = asyncio.Lock()

    async def start(self) -> None:
        self.sweep.start()

    async def shutdown(self) -> None:
        await self.sweep.stop()
        await self.grace.cancel_all()

    async def handle_message(self, websocket: Any, raw: str) -> None:
        """Parse one inbound frame and apply it; domain errors go back privately."""
        try:
            intent = parse_intent(raw)
        except MalformedMessageError as exc:
            await self.fanout.send_error(websocket, message=str(exc), code=exc.code)
            return

        async with self._lock:
            try:
                await self._dispatch(websocket, intent)
            except GameError as exc:
                await self.fanout.send_error(websocket, message=exc.message, code=exc.code)

    async def handle_disconnect(self, websocket: Any) -> None:
        """Abrupt socket loss: unregister now, remove the player after the grace window."""
        async with self._lock:
            binding = self.connections.unbind(websocket)
            if binding is None:
                return
            player = self.registry.mark_disconnected(room_code=binding.room_code, player_id=binding.player_id)
            if player is None:
                return
            self.grace.schedule(player_id=binding.player_id, room_code=binding.room_code)

    async def expire_disconnected(self, player_id: str, room_code: str) -> None:
        """Grace window elapsed: remove the player if they are still a member."""
        async with self._lock:
            departure = self.registry.remove_disconnected(room_code=room_code, player_id=player_id)
            if departure is None or departure.room is None:
                return

            room = departure.room
            name = departure.player.name
            repair = self.rules.repair_after_departure(departure)
            message = f"{name} has disconnected"
            if departure.host_transferred:
                message = f"{message}. {room.host.name} is now the host"
            if repair.returned_to_lobby:
                message = f"{message}. Returning to lobby..."
            elif repair.new_holder is not None:
                message = f"{message}. {repair.new_holder.name} has the potato!"

            # One notice per removal: a host transfer carries the lobby reset or potato handoff.
            if departure.host_transferred:
                await self.fanout.broadcast(
                    room.code,
                    "HOST_TRANSFERRED",
                    {
                        "newHostId": departure.new_host_id,
                        "previousHostId": departure.previous_host_id,
                        "room": room_detail(room),
                        "message": message,
                    },
                )
            elif repair.returned_to_lobby:
                await self.fanout.broadcast(room.code, "RETURN_TO_LOBBY", {"room": room_detail(room), "message": message})
            else:
                await self.fanout.broadcast(room.code, "ROOM_UPDATE", {"room": room_detail(room), "message": message})

    async def sweep_once(self, now: int | None = None) -> None:
        """One sweep tick: finish countdowns, then blow up expired rounds."""
        async with self._lock:
            if now is None:
                now = self.rules.now()
            for room in self.rules.go_live_due(self.registry.list_rooms(), now=now):
                holder = room.potato_holder
                await self.fanout.broadcast(
                    room.code,
                    "GAME_LIVE",
                    {"room": room_detail(room), "message": f"Go! {_name_or(holder, 'Someone')} has the potato!"},
                )
            for round_end in self.rules.expire_due(self.registry.list_rooms(), now=now):
                loser = round_end.loser
                await self.fanout.broadcast(
                    round_end.room.code,
                    "GAME_ENDED",
                    {
                        "room": room_detail(round_end.room),
                        "loser": player_detail(loser) if loser is not None else None,
                        "message": f"BOOM! {_name_or(loser, 'Someone')} lost!",
                    },
                )

    async def _dispatch(self, websocket: Any, intent: Intent) -> None:
        if isinstance(intent, JoinRoomIntent):
            await self._on_join(websocket, intent)
            return

        binding = self.connections.get(websocket)
        if binding is None:
            return
        room = self.registry.find_room(binding.room_code)
        if room is None or room.find_player(binding.player_id) is None:
            return

        if isinstance(intent, LeaveRoomIntent):
            await self._on_leave(websocket, binding)
        elif isinstance(intent, ToggleReadyIntent):
            await self._on_toggle_ready(binding)
        elif isinstance(intent, StartGameIntent):
            self.rules.start_round(room, player_id=binding.player_id)
            await self._announce_round_start(room)
        elif isinstance(intent, PlayAgainIntent):
            self.rules.play_again(room, player_id=binding.player_id)
            await self._announce_round_start(room)
        elif isinstance(intent, PassPotatoIntent):
            target = self.rules.pass_potato(
                room,
                player_id=binding.player_id,
                target_player_id=intent.target_player_id,
            )
            await self.fanout.broadcast(
                room.code,
                "POTATO_PASSED",
                {"room": room_detail(room), "message": f"Potato passed to {target.name}!"},
            )
        elif isinstance(intent, EnterGameRoomIntent):
            if room.host_id != binding.player_id:
                raise RoleError("Only the host can start the game")
            await self.fanout.broadcast(room.code, "GAME_ROOM", {"room": room_detail(room)})

    async def _on_join(self, websocket: Any, intent: JoinRoomIntent) -> None:
        if websocket in self.connections:
            raise ValidationError("Already in a room. Leave it before joining another.")

        room, player = self.registry.join(room_code=intent.room_code, player_name=intent.player_name)
        self.connections.bind(websocket, player_id=player.player_id, room_code=room.code)
        await self.fanout.broadcast(
            room.code,
            "ROOM_UPDATE",
            {"room": room_detail(room), "message": f"{player.name} joined the room!"},
        )
        await self.fanout.send(websocket, "JOIN_SUCCESS", {"playerId": player.player_id, "room": room_detail(room)})

    async def _on_leave(self, websocket: Any, binding: ConnectionBinding) -> None:
        departure = self.registry.leave(room_code=binding.room_code, player_id=binding.player_id)
        self.connections.unbind(websocket)
        logger.info("%s left room %s", departure.player.name, binding.room_code)
        if departure.room is not None:
            await self.fanout.broadcast(
                departure.room.code,
                "RETURN_TO_LOBBY",
                {
                    "room": room_detail(departure.room),
                    "message": f"{departure.player.name} left. Returning to lobby...",
                },
            )
        await self.fanout.send(websocket, "LEAVE_SUCCESS", {"message": "You left the room"})

    async def _on_toggle_ready(self, binding: ConnectionBinding) -> None:
        room, player = self.registry.toggle_ready(room_code=binding.room_code, player_id=binding.player_id)
        state = "ready" if player.is_ready else "not ready"
        await self.fanout.broadcast(
            room.code,
            "ROOM_UPDATE",
            {"room": room_detail(room), "message": f"{player.name} is {state}"},
        )

    async def _announce_round_start(self, room: Room) -> None:
        holder_name = _name_or(room.potato_holder, "Someone")
        if room.phase == PHASE_COUNTDOWN:
            await self.fanout.broadcast(
                room.code,
                "GAME_PREPARING",
                {
                    "room": room_detail(room),
                    "countdownEndsAt": room.countdown_ends_at,
                    "message": f"Get ready! {holder_name} starts with the potato!",
                },
            )
            return
        await self.fanout.broadcast(
            room.code,
            "GAME_STARTED",
            {"room": room_detail(room), "message": f"Game started! {holder_name} has the potato!"},
        )


def _name_or(player: Player | None, fallback: str) -> str:
    return player.name if player is not None else fallback


__all__ = ["GameRuntime"]
