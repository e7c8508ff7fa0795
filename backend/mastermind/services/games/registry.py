import threading
from typing import Dict, Optional

from mastermind.models import Participant
from .room import GameRoom


class RoomRegistry:
    """Directory of live rooms.

    Both mappings (room id -> room, participant sid -> room id) share one
    lock, so a lookup never sees a participant mapped to a room that is
    already gone.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._rooms: Dict[str, GameRoom] = {}
        self._participant_rooms: Dict[str, str] = {}

    def register(self, room: GameRoom) -> None:
        with self._lock:
            if room.room_id in self._rooms:
                raise KeyError(f"room {room.room_id} already registered")
            self._rooms[room.room_id] = room
            for participant in room.participants:
                self._participant_rooms[participant.sid] = room.room_id

    def lookup_by_room(self, room_id: str) -> Optional[GameRoom]:
        with self._lock:
            return self._rooms.get(room_id)

    def lookup_by_participant(self, sid: str) -> Optional[str]:
        with self._lock:
            return self._participant_rooms.get(sid)

    def room_for(self, participant: Participant) -> Optional[GameRoom]:
        with self._lock:
            room_id = self._participant_rooms.get(participant.sid)
            return self._rooms.get(room_id) if room_id else None

    def unmap_participant(self, sid: str) -> Optional[str]:
        with self._lock:
            return self._participant_rooms.pop(sid, None)

    def remove(self, room_id: str) -> Optional[GameRoom]:
        """Drop the room and every participant mapping pointing at it.

        Returns the removed room, or None when it was already gone.
        """
        with self._lock:
            room = self._rooms.pop(room_id, None)
            if room is None:
                return None
            for participant in room.participants:
                if self._participant_rooms.get(participant.sid) == room_id:
                    del self._participant_rooms[participant.sid]
            return room

    def room_count(self) -> int:
        with self._lock:
            return len(self._rooms)

    def __len__(self):
        return self.room_count()

    def __contains__(self, room_id):
        return self.lookup_by_room(room_id) is not None
