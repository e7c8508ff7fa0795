import threading

import pytest

from mastermind.services.games.registry import RoomRegistry
from mastermind.services.games.room import GameRoom


@pytest.fixture()
def room(alice, bob, recorder, codes):
    return GameRoom('room-1', [alice, bob], recorder, codes('1234'), multiplayer=True)


def test_register_maps_room_and_participants(room, alice, bob):
    registry = RoomRegistry()
    registry.register(room)
    assert registry.lookup_by_room('room-1') is room
    assert registry.lookup_by_participant(alice.sid) == 'room-1'
    assert registry.lookup_by_participant(bob.sid) == 'room-1'
    assert registry.room_for(bob) is room
    assert len(registry) == 1
    assert 'room-1' in registry


def test_register_twice_is_refused(room):
    registry = RoomRegistry()
    registry.register(room)
    with pytest.raises(KeyError):
        registry.register(room)


def test_remove_clears_both_mappings(room, alice, bob):
    registry = RoomRegistry()
    registry.register(room)
    assert registry.remove('room-1') is room
    assert registry.lookup_by_room('room-1') is None
    assert registry.lookup_by_participant(alice.sid) is None
    assert registry.lookup_by_participant(bob.sid) is None
    assert registry.remove('room-1') is None
    assert registry.room_count() == 0


def test_unmap_participant_leaves_room(room, alice, bob):
    registry = RoomRegistry()
    registry.register(room)
    assert registry.unmap_participant(alice.sid) == 'room-1'
    assert registry.lookup_by_participant(alice.sid) is None
    assert registry.lookup_by_participant(bob.sid) == 'room-1'
    assert registry.remove('room-1') is room
    assert registry.lookup_by_participant(bob.sid) is None


def test_lookup_racing_remove_never_sees_half_removed_room(room, alice, bob):
    registry = RoomRegistry()
    registry.register(room)
    observed = []
    start = threading.Event()

    def reader():
        start.wait()
        for _ in range(2000):
            found = registry.lookup_by_room('room-1')
            alice_room = registry.lookup_by_participant(alice.sid)
            # once the room is gone no participant may still point at it
            if found is None:
                observed.append(alice_room)

    readers = [threading.Thread(target=reader) for _ in range(4)]
    for t in readers:
        t.start()
    start.set()
    registry.remove('room-1')
    for t in readers:
        t.join()

    assert all(room_id is None for room_id in observed)
