"""Room-domain errors reported back to the offending connection."""

from __future__ import annotations


class GameError(Exception):
    """Base class for errors that become a private ERROR notification."""

    code = "GAME_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(GameError):
    """Raised for missing, malformed or out-of-range input."""

    code = "VALIDATION_ERROR"


class CapacityError(GameError):
    """Raised when trying to join a full room."""

    code = "ROOM_FULL"


class PhaseError(GameError):
    """Raised when an operation is not valid in the room's current phase."""

    code = "INVALID_PHASE"


class RoleError(GameError):
    """Raised when the caller lacks (or must not have) host authority."""

    code = "NOT_HOST"


class AuthorityError(GameError):
    """Raised when the caller does not hold the potato."""

    code = "NOT_POTATO_HOLDER"


class TargetError(GameError):
    """Raised when a referenced player is not a member of the room."""

    code = "INVALID_TARGET"


class DuplicateNameError(GameError):
    """Raised when the requested name is already taken in the room."""

    code = "DUPLICATE_NAME"


class PlayerCountError(GameError):
    """Raised when there are not enough players to start a round."""

    code = "NOT_ENOUGH_PLAYERS"


class RoomNotFoundError(LookupError):
    """Raised when a room code is unknown to the store."""


__all__ = [
    "AuthorityError",
    "CapacityError",
    "DuplicateNameError",
    "GameError",
    "PhaseError",
    "PlayerCountError",
    "RoleError",
    "RoomNotFoundError",
    "TargetError",
    "ValidationError",
]
