import logging
import threading
import uuid
from typing import Dict, Mapping, Optional

from mastermind.models import GAME_MODES, MULTI, SINGLE, Participant
from .matchmaker import Matchmaker, WaitingQueue
from .registry import RoomRegistry
from .room import DEFAULT_CODE_LENGTH, DEFAULT_INITIAL_TURNS, GameRoom
from .scoring import DIGITS


class JoinRejected(Exception):
    """Raised by ``on_join``; the message is shown to the user."""


class MatchCoordinator:
    """Routes connection events to rooms and owns the shared match state."""

    def __init__(self, broadcaster, code_generator, code_length: int = DEFAULT_CODE_LENGTH,
                 initial_turns: int = DEFAULT_INITIAL_TURNS, alphabet: str = DIGITS,
                 debug_reveal_code: bool = False, matchmaker_interval: float = 1.0, logger=None):
        self.broadcaster = broadcaster
        self.code_generator = code_generator
        self.code_length = code_length
        self.initial_turns = initial_turns
        self.alphabet = alphabet
        self.debug_reveal_code = debug_reveal_code
        self.logger = logger or logging.getLogger(__name__)
        self.registry = RoomRegistry()
        self.waiting = WaitingQueue()
        self.matchmaker = Matchmaker(
            self.waiting,
            self._open_multiplayer_room,
            interval=matchmaker_interval,
            is_live=self.is_connected,
            logger=self.logger,
        )
        self._users_lock = threading.Lock()
        self._sessions: Dict[str, Participant] = {}
        self._usernames: Dict[str, str] = {}

    @classmethod
    def from_config(cls, config: Mapping, broadcaster, code_generator, logger=None):
        return cls(
            broadcaster,
            code_generator,
            code_length=int(config.get('CODE_LENGTH', DEFAULT_CODE_LENGTH)),
            initial_turns=int(config.get('INITIAL_TURNS', DEFAULT_INITIAL_TURNS)),
            alphabet=config.get('CODE_ALPHABET', DIGITS),
            debug_reveal_code=bool(config.get('DEBUG_REVEAL_CODE', False)),
            matchmaker_interval=float(config.get('MATCHMAKER_INTERVAL_SEC', 1.0)),
            logger=logger,
        )

    # ---- connection events ----

    def on_join(self, sid: str, mode: Optional[str], params: Mapping) -> Participant:
        username = (params.get('username') or '').strip()
        if not username:
            raise JoinRejected("Error: A valid username is required to register.")
        mode = (mode or MULTI).strip().lower()
        if mode not in GAME_MODES:
            raise JoinRejected(f"Error: Unknown game mode '{mode}', expected one of {', '.join(GAME_MODES)}.")

        participant = Participant(sid=sid, username=username)
        with self._users_lock:
            if username in self._usernames:
                raise JoinRejected("Error: User is already connected to the server.")
            self._usernames[username] = sid
            self._sessions[sid] = participant

        if mode == SINGLE:
            try:
                room = self._new_room([participant], multiplayer=False)
            except Exception as exc:
                self._release(sid)
                self.logger.error(f"[room-open-fail] user={username} error={exc}")
                raise JoinRejected("Error: Could not start a game, please try again.") from exc
            room.start_game()
            self.registry.register(room)
            self.logger.info(f"[room-open] room={room.room_id} mode=single user={username}")
            return participant

        size = self.waiting.put(participant)
        self.logger.info(f"[queue] user={username} waiting={size}")
        self.broadcaster.notify(participant, "Waiting for an opponent...")
        return participant

    def on_message(self, sid: str, text: str) -> None:
        participant = self.participant(sid)
        if participant is None:
            self.logger.debug(f"[message-drop] sid={sid} not joined")
            return
        room_id = self.registry.lookup_by_participant(sid)
        if room_id is None:
            self.broadcaster.notify(participant, "Waiting to be assigned to a room...")
            return
        room = self.registry.lookup_by_room(room_id)
        if room is None:
            self.broadcaster.notify(participant, "Current room does not exist anymore")
            return
        room.handle_guess(participant, text)

    def on_disconnect(self, sid: str) -> None:
        participant = self._release(sid)
        room_id = self.registry.unmap_participant(sid)
        if participant is None or room_id is None:
            return
        self.close_room(room_id, participant)

    # ---- rooms ----

    def close_room(self, room_id: str, leaving: Participant) -> Optional[GameRoom]:
        room = self.registry.remove(room_id)
        if room is None:
            return None
        others = [p for p in room.participants if p != leaving]
        self.broadcaster.broadcast(others, f"Player {leaving.username} disconnected! Closing room")
        self.logger.info(f"[room-close] room={room_id} left={leaving.username}")
        return room

    def _new_room(self, participants, multiplayer: bool) -> GameRoom:
        return GameRoom(
            str(uuid.uuid4()),
            participants,
            self.broadcaster,
            self.code_generator,
            multiplayer=multiplayer,
            code_length=self.code_length,
            initial_turns=self.initial_turns,
            alphabet=self.alphabet,
            debug_reveal_code=self.debug_reveal_code,
            logger=self.logger,
        )

    def _open_multiplayer_room(self, first: Participant, second: Participant) -> GameRoom:
        room = self._new_room([first, second], multiplayer=True)
        room.start_game()
        self.registry.register(room)
        self.logger.info(f"[room-open] room={room.room_id} mode=multi users={first.username},{second.username}")
        # A player may have dropped while the room was being built
        for participant in (first, second):
            if not self.is_connected(participant):
                self.close_room(room.room_id, participant)
                break
        return room

    # ---- users ----

    def participant(self, sid: str) -> Optional[Participant]:
        with self._users_lock:
            return self._sessions.get(sid)

    def is_connected(self, participant: Participant) -> bool:
        with self._users_lock:
            return participant.sid in self._sessions

    def _release(self, sid: str) -> Optional[Participant]:
        with self._users_lock:
            participant = self._sessions.pop(sid, None)
            if participant is not None and self._usernames.get(participant.username) == sid:
                del self._usernames[participant.username]
            return participant

    # ---- lifecycle ----

    def start(self, spawn) -> None:
        """Run the matchmaker loop through ``spawn`` (e.g. socketio.start_background_task)."""
        spawn(self.matchmaker.run)

    def shutdown(self, timeout: Optional[float] = 5.0) -> bool:
        return self.matchmaker.stop(timeout)

    def stats(self):
        with self._users_lock:
            connected = len(self._sessions)
        return {
            'rooms': self.registry.room_count(),
            'waiting': len(self.waiting),
            'connected': connected,
        }
