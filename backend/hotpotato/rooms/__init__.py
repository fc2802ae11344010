"""Room domain package."""

from hotpotato.rooms.errors import AuthorityError
from hotpotato.rooms.errors import CapacityError
from hotpotato.rooms.errors import DuplicateNameError
from hotpotato.rooms.errors import GameError
from hotpotato.rooms.errors import PhaseError
from hotpotato.rooms.errors import PlayerCountError
from hotpotato.rooms.errors import RoleError
from hotpotato.rooms.errors import RoomNotFoundError
from hotpotato.rooms.errors import TargetError
from hotpotato.rooms.errors import ValidationError
from hotpotato.rooms.game import RoundRules
from hotpotato.rooms.registry import Player
from hotpotato.rooms.registry import Room
from hotpotato.rooms.registry import RoomRegistry

__all__ = [
    "AuthorityError",
    "CapacityError",
    "DuplicateNameError",
    "GameError",
    "PhaseError",
    "Player",
    "PlayerCountError",
    "RoleError",
    "Room",
    "RoomNotFoundError",
    "RoomRegistry",
    "RoundRules",
    "TargetError",
    "ValidationError",
]
