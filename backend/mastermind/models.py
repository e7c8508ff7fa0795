from dataclasses import dataclass, field
from typing import NamedTuple


@dataclass(frozen=True)
class Participant:
    """A connected player. Identity is the Socket.IO session id."""
    sid: str
    username: str = field(compare=False)

    def to_dict(self):
        # sid stays server-side; it addresses the player's socket
        return {
            'username': self.username,
        }


class Feedback(NamedTuple):
    exact: int
    color: int

    def to_text(self) -> str:
        return f"Correct digits: {self.color} || Correct positions: {self.exact}"


SINGLE = 'single'
MULTI = 'multi'
GAME_MODES = (SINGLE, MULTI)
