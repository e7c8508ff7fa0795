"""Match services: scoring, rooms, registry and matchmaking.

This package holds the game mechanics and match coordination. Socket.IO
handlers and HTTP routes call into it; it knows nothing about Flask except
through the send capability and logger it is given.
"""

from .coordinator import JoinRejected, MatchCoordinator  # noqa: F401
