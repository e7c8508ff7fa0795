import logging
import threading
from collections import deque
from typing import Callable, List, Optional, Tuple

from mastermind.models import Participant


class WaitingQueue:
    """FIFO of participants waiting for a multiplayer opponent."""

    def __init__(self):
        self._items = deque()
        self._cond = threading.Condition()

    def put(self, participant: Participant) -> int:
        with self._cond:
            self._items.append(participant)
            size = len(self._items)
            self._cond.notify_all()
            return size

    def pop_pair(self, is_live: Optional[Callable[[Participant], bool]] = None) -> Optional[Tuple[Participant, Participant]]:
        """Take the two oldest live participants, or None if fewer are waiting.

        Participants rejected by ``is_live`` are dropped from the queue.
        """
        with self._cond:
            if is_live is not None:
                live = [p for p in self._items if is_live(p)]
                if len(live) != len(self._items):
                    self._items = deque(live)
            if len(self._items) < 2:
                return None
            return self._items.popleft(), self._items.popleft()

    def wait(self, timeout: float, cancelled: Optional[threading.Event] = None) -> bool:
        """Block until a pair is waiting, ``cancelled`` is set or timeout.

        Returns True when at least two participants are queued.
        """
        with self._cond:
            self._cond.wait_for(
                lambda: len(self._items) >= 2 or (cancelled is not None and cancelled.is_set()),
                timeout,
            )
            return len(self._items) >= 2

    def wake(self) -> None:
        with self._cond:
            self._cond.notify_all()

    def snapshot(self) -> List[Participant]:
        with self._cond:
            return list(self._items)

    def __len__(self):
        with self._cond:
            return len(self._items)


class Matchmaker:
    """Background loop pairing waiting participants two at a time.

    ``on_pair(first, second)`` builds, starts and registers the room.
    """

    def __init__(self, queue: WaitingQueue, on_pair: Callable[[Participant, Participant], object],
                 interval: float = 1.0, is_live: Optional[Callable[[Participant], bool]] = None, logger=None):
        self.queue = queue
        self.on_pair = on_pair
        self.interval = interval
        self.is_live = is_live
        self.logger = logger or logging.getLogger(__name__)
        self._stop = threading.Event()
        self._stopped = threading.Event()
        self._stopped.set()

    def match_pending(self) -> int:
        """Pair everybody who can be paired right now; returns rooms opened."""
        opened = 0
        while True:
            pair = self.queue.pop_pair(self.is_live)
            if pair is None:
                return opened
            first, second = pair
            self.logger.info(f"[match] {first.username} vs {second.username}")
            try:
                self.on_pair(first, second)
                opened += 1
            except Exception:
                self.logger.exception(f"[match-fail] {first.username} vs {second.username}")

    def run(self) -> None:
        self._stopped.clear()
        self.logger.info(f"[matchmaker-start] interval={self.interval}s")
        try:
            while not self._stop.is_set():
                self.match_pending()
                self.queue.wait(self.interval, self._stop)
        finally:
            self._stopped.set()
            self.logger.info("[matchmaker-stop]")

    def stop(self, timeout: Optional[float] = None) -> bool:
        """Ask the loop to exit and wait for it; True once it has exited."""
        self._stop.set()
        self.queue.wake()
        return self._stopped.wait(timeout)

    @property
    def stopping(self) -> bool:
        return self._stop.is_set()
