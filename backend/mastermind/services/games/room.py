import logging
import threading
from typing import List, Optional, Sequence

from mastermind.models import Participant
from .scoring import DIGITS, score

DEFAULT_CODE_LENGTH = 4
DEFAULT_INITIAL_TURNS = 9


class GameRoom:
    """One match: a secret code, a turn order and a remaining-turns counter.

    All state changes go through ``handle_guess``, which holds the room lock,
    so at most one guess is processed at a time per room. A win or running
    out of turns starts a fresh code; the room lives until a participant
    disconnects.
    """

    def __init__(self, room_id: str, participants: Sequence[Participant], broadcaster, code_generator,
                 multiplayer: bool = False, code_length: int = DEFAULT_CODE_LENGTH,
                 initial_turns: int = DEFAULT_INITIAL_TURNS, alphabet: str = DIGITS,
                 debug_reveal_code: bool = False, logger=None):
        expected = 2 if multiplayer else 1
        if len(participants) != expected:
            raise ValueError(f"{'multiplayer' if multiplayer else 'single-player'} room needs {expected} participant(s)")
        if initial_turns < 1:
            raise ValueError('initial_turns must be at least 1')
        self.room_id = room_id
        self.multiplayer = multiplayer
        self.code_length = code_length
        self.initial_turns = initial_turns
        self.alphabet = alphabet
        self.debug_reveal_code = debug_reveal_code
        self.logger = logger or logging.getLogger(__name__)
        self._participants: List[Participant] = list(participants)
        self._broadcaster = broadcaster
        self._code_generator = code_generator
        self._lock = threading.Lock()
        self._secret_code = self._new_code()
        self._current_turn_index = 0
        self._remaining_turns = initial_turns

    # ---- read-only views ----

    @property
    def participants(self) -> List[Participant]:
        return list(self._participants)

    @property
    def secret_code(self) -> str:
        return self._secret_code

    @property
    def current_turn_index(self) -> int:
        return self._current_turn_index

    @property
    def remaining_turns(self) -> int:
        return self._remaining_turns

    @property
    def current_participant(self) -> Participant:
        return self._participants[self._current_turn_index]

    def to_dict(self):
        with self._lock:
            return {
                'room_id': self.room_id,
                'mode': 'multi' if self.multiplayer else 'single',
                'participants': [p.to_dict() for p in self._participants],
                'current_turn': self._participants[self._current_turn_index].username,
                'remaining_turns': self._remaining_turns,
            }

    # ---- operations ----

    def start_game(self) -> None:
        self.broadcast(f"Room ID: {self.room_id}")
        if self.debug_reveal_code:
            self.broadcast(self._secret_code)
        self.broadcast("Game started!")
        self.broadcast(f"Guess the secret code in {self.initial_turns + 1} turns or less!")

    def handle_guess(self, participant: Participant, guess: str) -> None:
        with self._lock:
            if not self._is_guessing_turn(participant):
                return
            if not self._has_code_length(participant, guess):
                return
            if not self._has_only_digits(participant, guess):
                return

            if guess == self._secret_code:
                # The next code must exist before the win is announced
                try:
                    next_code = self._new_code()
                except Exception as exc:
                    self.logger.error(f"[code-fail] room={self.room_id} win not applied error={exc}")
                    self._broadcaster.notify(participant, "Could not generate a new secret code, please send your guess again.")
                    return
                self.logger.info(f"[round-win] room={self.room_id} user={participant.username}")
                self.broadcast(f"Player {participant.username} wins!")
                self.broadcast(f"The secret code was: {self._secret_code}")
                self._next_turn()
                self._new_round(next_code)
                return

            self._broadcaster.notify(participant, f"Turns remaining: {self._remaining_turns + 1}")
            feedback = score(self._secret_code, guess, self.alphabet)
            self.broadcast(f"Player {participant.username} guessed: {guess}")
            self.broadcast(f"Feedback: {feedback.to_text()}")
            self._next_turn()

            if self._remaining_turns == 0:
                self.logger.info(f"[round-reset] room={self.room_id} out of turns")
                self.broadcast("Everyone ran out of turns! Resetting the game")
                self._new_round()

    def broadcast(self, message: str) -> None:
        self._broadcaster.broadcast(self._participants, message)

    # ---- validation ----

    def _is_guessing_turn(self, participant: Participant) -> bool:
        if self.multiplayer and participant != self.current_participant:
            self._reject(participant, "Wait for your turn!")
            return False
        return True

    def _has_code_length(self, participant: Participant, guess: str) -> bool:
        if len(guess) != len(self._secret_code):
            self._reject(participant, "Your guess code is not the same digits length as the secret code!")
            return False
        return True

    def _has_only_digits(self, participant: Participant, guess: str) -> bool:
        if any(symbol not in self.alphabet for symbol in guess):
            self._reject(participant, "The code contains only numbers!")
            return False
        return True

    def _reject(self, participant: Participant, message: str) -> None:
        self.logger.debug(f"[guess-reject] room={self.room_id} user={participant.username} reason={message!r}")
        self._broadcaster.notify(participant, message)

    # ---- turn bookkeeping ----

    def _next_turn(self) -> None:
        self._current_turn_index = (self._current_turn_index + 1) % len(self._participants)
        # A round ends after every guess alone, or once both players have guessed
        if not self.multiplayer or self._current_turn_index == 0:
            self._remaining_turns -= 1

    def _new_round(self, code: Optional[str] = None) -> None:
        if code is None:
            try:
                code = self._new_code()
            except Exception as exc:
                self.logger.error(f"[code-fail] room={self.room_id} keeping current code error={exc}")
                self._remaining_turns = self.initial_turns
                self.broadcast("Game reset! Keeping the current secret code.")
                return
        self._secret_code = code
        self._remaining_turns = self.initial_turns
        self.broadcast("Game reset! New secret code generated.")
        if self.debug_reveal_code:
            self.broadcast(self._secret_code)

    def _new_code(self) -> str:
        code = self._code_generator.generate(self.code_length)
        if len(code) != self.code_length:
            raise ValueError(f"code generator returned {len(code)} symbols, expected {self.code_length}")
        return code
