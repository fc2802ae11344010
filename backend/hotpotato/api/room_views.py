"""Room snapshot serializers shared by HTTP and WebSocket payloads."""

from __future__ import annotations

from hotpotato.rooms.registry import Player
from hotpotato.rooms.registry import Room


def room_summary(room: Room) -> dict[str, object]:
    return {
        "roomCode": room.code,
        "phase": room.phase,
        "playerCount": len(room.players),
        "maxPlayers": room.max_players,
    }


def player_detail(player: Player) -> dict[str, object]:
    return {
        "id": player.player_id,
        "name": player.name,
        "isHost": player.is_host,
        "isReady": player.is_ready,
        "potatoSlot": player.potato_slot,
        "connected": player.connected,
    }


def room_detail(room: Room) -> dict[str, object]:
    return {
        "roomCode": room.code,
        "players": [player_detail(player) for player in room.players],
        "phase": room.phase,
        "hostId": room.host_id,
        "potatoHolderId": room.potato_holder_id,
        "endTime": room.end_time,
        "countdownEndsAt": room.countdown_ends_at,
        "maxPlayers": room.max_players,
    }
