"""Room store admission, departure and host succession tests."""

from __future__ import annotations

import itertools

import pytest

from hotpotato.rooms.errors import CapacityError
from hotpotato.rooms.errors import DuplicateNameError
from hotpotato.rooms.errors import PhaseError
from hotpotato.rooms.errors import RoleError
from hotpotato.rooms.errors import RoomNotFoundError
from hotpotato.rooms.errors import ValidationError
from hotpotato.rooms.registry import PHASE_COUNTDOWN
from hotpotato.rooms.registry import PHASE_ENDED
from hotpotato.rooms.registry import PHASE_LOBBY
from hotpotato.rooms.registry import PHASE_PLAYING
from hotpotato.rooms.registry import RoomRegistry


def _new_registry() -> RoomRegistry:
    counter = itertools.count(1)
    return RoomRegistry(id_factory=lambda: f"p{next(counter)}")


def _assert_room_invariants(registry: RoomRegistry, room_code: str) -> None:
    room = registry.get_room(room_code)
    ids = [player.player_id for player in room.players]
    slots = [player.potato_slot for player in room.players]
    assert 0 < len(room.players) <= room.max_players
    assert len(set(slots)) == len(slots)
    assert all(0 <= slot < room.max_players for slot in slots)
    assert room.host_id in ids
    assert [player.player_id for player in room.players if player.is_host] == [room.host_id]


def test_first_join_creates_room_with_creator_as_host() -> None:
    registry = _new_registry()

    room, ann = registry.join(room_code="ABC123", player_name="Ann")

    assert "ABC123" in registry
    assert room.code == "ABC123"
    assert room.phase == PHASE_LOBBY
    assert room.host_id == ann.player_id
    assert ann.is_host and not ann.is_ready and ann.connected
    assert ann.potato_slot == 0
    assert room.potato_holder_id is None and room.end_time is None


def test_second_join_is_not_host_and_gets_next_slot() -> None:
    registry = _new_registry()
    registry.join(room_code="ABC123", player_name="Ann")

    room, ben = registry.join(room_code="ABC123", player_name="Ben")

    assert [player.name for player in room.players] == ["Ann", "Ben"]
    assert not ben.is_host
    assert {player.potato_slot for player in room.players} == {0, 1}
    _assert_room_invariants(registry, "ABC123")


def test_freed_slot_is_reused_lowest_first() -> None:
    """Input: join x3, slot 1 leaves, join -> Output: newcomer takes slot 1."""
    registry = _new_registry()
    registry.join(room_code="R", player_name="Ann")
    _, ben = registry.join(room_code="R", player_name="Ben")
    registry.join(room_code="R", player_name="Cat")

    registry.leave(room_code="R", player_id=ben.player_id)
    room, dan = registry.join(room_code="R", player_name="Dan")

    assert dan.potato_slot == 1
    assert sorted(player.potato_slot for player in room.players) == [0, 1, 2]
    _assert_room_invariants(registry, "R")


@pytest.mark.parametrize(
    ("room_code", "player_name"),
    [
        (None, "Ann"),
        ("R", None),
        ("", "Ann"),
        ("R", ""),
        ("R", "A"),
        ("R", "A" * 18),
    ],
)
def test_join_rejects_missing_fields_and_bad_name_length(room_code: str | None, player_name: str | None) -> None:
    registry = _new_registry()

    with pytest.raises(ValidationError):
        registry.join(room_code=room_code, player_name=player_name)

    assert len(registry) == 0


@pytest.mark.parametrize("player_name", ["Al", "A" * 17])
def test_name_length_bounds_are_inclusive(player_name: str) -> None:
    registry = _new_registry()

    _, player = registry.join(room_code="R", player_name=player_name)

    assert player.name == player_name


def test_full_room_refuses_admission() -> None:
    registry = _new_registry()
    for name in ("Ann", "Ben", "Cat", "Dan"):
        registry.join(room_code="R", player_name=name)

    with pytest.raises(CapacityError):
        registry.join(room_code="R", player_name="Eve")

    assert len(registry.get_room("R").players) == 4
    _assert_room_invariants(registry, "R")


@pytest.mark.parametrize("phase", [PHASE_PLAYING, PHASE_COUNTDOWN])
def test_join_mid_round_is_refused(phase: str) -> None:
    registry = _new_registry()
    room, _ = registry.join(room_code="R", player_name="Ann")
    room.phase = phase

    with pytest.raises(PhaseError):
        registry.join(room_code="R", player_name="Ben")


def test_join_after_round_ended_is_allowed() -> None:
    registry = _new_registry()
    room, _ = registry.join(room_code="R", player_name="Ann")
    room.phase = PHASE_ENDED

    _, ben = registry.join(room_code="R", player_name="Ben")

    assert room.find_player(ben.player_id) is ben


def test_duplicate_name_is_exact_match_only() -> None:
    registry = _new_registry()
    registry.join(room_code="R", player_name="Ann")

    with pytest.raises(DuplicateNameError):
        registry.join(room_code="R", player_name="Ann")

    _, other = registry.join(room_code="R", player_name="ann")
    assert other.name == "ann"


def test_same_name_in_different_rooms_is_fine() -> None:
    registry = _new_registry()
    registry.join(room_code="R1", player_name="Ann")

    room, _ = registry.join(room_code="R2", player_name="Ann")

    assert room.code == "R2"
    assert len(registry) == 2


def test_host_leave_transfers_to_next_in_list_order_and_resets_lobby() -> None:
    registry = _new_registry()
    room, ann = registry.join(room_code="R", player_name="Ann")
    _, ben = registry.join(room_code="R", player_name="Ben")
    _, cat = registry.join(room_code="R", player_name="Cat")
    cat.is_ready = True
    room.phase = PHASE_PLAYING
    room.potato_holder_id = ben.player_id
    room.end_time = 123

    departure = registry.leave(room_code="R", player_id=ann.player_id)

    assert departure.host_transferred
    assert departure.previous_host_id == ann.player_id
    assert departure.new_host_id == ben.player_id
    assert room.host_id == ben.player_id and ben.is_host
    assert room.phase == PHASE_LOBBY
    assert room.potato_holder_id is None and room.end_time is None
    assert not any(player.is_ready for player in room.players)
    _assert_room_invariants(registry, "R")


def test_non_host_leave_keeps_host() -> None:
    registry = _new_registry()
    room, ann = registry.join(room_code="R", player_name="Ann")
    _, ben = registry.join(room_code="R", player_name="Ben")

    departure = registry.leave(room_code="R", player_id=ben.player_id)

    assert not departure.host_transferred
    assert room.host_id == ann.player_id


def test_last_player_leaving_deletes_room() -> None:
    registry = _new_registry()
    _, ann = registry.join(room_code="R", player_name="Ann")

    departure = registry.leave(room_code="R", player_id=ann.player_id)

    assert departure.room_deleted
    assert "R" not in registry
    with pytest.raises(RoomNotFoundError):
        registry.get_room("R")


def test_recreated_room_starts_fresh() -> None:
    registry = _new_registry()
    _, ann = registry.join(room_code="R", player_name="Ann")
    registry.leave(room_code="R", player_id=ann.player_id)

    room, ben = registry.join(room_code="R", player_name="Ben")

    assert room.host_id == ben.player_id
    assert [player.name for player in room.players] == ["Ben"]


def test_toggle_ready_flips_for_non_host() -> None:
    registry = _new_registry()
    registry.join(room_code="R", player_name="Ann")
    _, ben = registry.join(room_code="R", player_name="Ben")

    _, player = registry.toggle_ready(room_code="R", player_id=ben.player_id)
    assert player.is_ready

    _, player = registry.toggle_ready(room_code="R", player_id=ben.player_id)
    assert not player.is_ready


def test_toggle_ready_by_host_is_role_error() -> None:
    registry = _new_registry()
    _, ann = registry.join(room_code="R", player_name="Ann")

    with pytest.raises(RoleError):
        registry.toggle_ready(room_code="R", player_id=ann.player_id)

    assert not ann.is_ready


def test_toggle_ready_outside_lobby_is_phase_error() -> None:
    registry = _new_registry()
    room, _ = registry.join(room_code="R", player_name="Ann")
    _, ben = registry.join(room_code="R", player_name="Ben")
    room.phase = PHASE_PLAYING

    with pytest.raises(PhaseError):
        registry.toggle_ready(room_code="R", player_id=ben.player_id)


def test_disconnect_removal_is_noop_when_player_already_gone() -> None:
    registry = _new_registry()
    registry.join(room_code="R", player_name="Ann")
    _, ben = registry.join(room_code="R", player_name="Ben")
    registry.leave(room_code="R", player_id=ben.player_id)

    assert registry.remove_disconnected(room_code="R", player_id=ben.player_id) is None
    assert registry.remove_disconnected(room_code="missing", player_id=ben.player_id) is None
    assert len(registry.get_room("R").players) == 1


def test_disconnect_removal_transfers_host_without_lobby_reset() -> None:
    registry = _new_registry()
    room, ann = registry.join(room_code="R", player_name="Ann")
    _, ben = registry.join(room_code="R", player_name="Ben")
    _, cat = registry.join(room_code="R", player_name="Cat")
    cat.is_ready = True

    registry.mark_disconnected(room_code="R", player_id=ann.player_id)
    assert not ann.connected
    departure = registry.remove_disconnected(room_code="R", player_id=ann.player_id)

    assert departure is not None
    assert departure.new_host_id == ben.player_id
    assert room.host_id == ben.player_id
    assert cat.is_ready
    _assert_room_invariants(registry, "R")
