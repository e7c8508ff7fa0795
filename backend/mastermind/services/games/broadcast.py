import logging
from typing import Callable, Iterable

from mastermind.models import Participant


class Broadcaster:
    """Best-effort delivery of text messages to participants.

    ``send`` is the transport capability, called as ``send(sid, text)``.
    A failed delivery is logged and never raised to the caller.
    """

    def __init__(self, send: Callable[[str, str], None], logger=None):
        self._send = send
        self.logger = logger or logging.getLogger(__name__)

    def notify(self, participant: Participant, message: str) -> bool:
        try:
            self._send(participant.sid, message)
            return True
        except Exception as exc:
            self.logger.warning(f"[send-fail] user={participant.username} sid={participant.sid} error={exc}")
            return False

    def broadcast(self, participants: Iterable[Participant], message: str) -> int:
        delivered = 0
        for participant in list(participants):
            if self.notify(participant, message):
                delivered += 1
        return delivered


def socketio_sender(socketio, namespace: str = '/ws') -> Callable[[str, str], None]:
    """Build a ``send`` capability that pushes plain text over Socket.IO."""

    def _send(sid: str, text: str) -> None:
        # socketio.send works from background tasks as well as handlers
        socketio.send(text, to=sid, namespace=namespace)

    return _send
