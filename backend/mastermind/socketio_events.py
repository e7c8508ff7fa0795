from flask import current_app, request
from flask_socketio import ConnectionRefusedError
from mastermind import socketio
from mastermind.services.games import JoinRejected, MatchCoordinator


def _coordinator() -> MatchCoordinator:
    return current_app.extensions['mastermind']


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def handle_connect(auth=None):
    """Join: single-player starts a room now, multiplayer waits in the queue.

    ``username`` and ``mode`` come from the query string; an ``auth``
    payload may supply them too.
    """
    params = dict(request.args)
    if isinstance(auth, dict):
        params.update({k: v for k, v in auth.items() if isinstance(v, str)})
    try:
        _coordinator().on_join(_get_sid(), params.get('mode'), params)
    except JoinRejected as exc:
        current_app.logger.info(f"[join-reject] sid={_get_sid()} reason={exc}")
        raise ConnectionRefusedError(str(exc))


def handle_disconnect(*args):
    _coordinator().on_disconnect(_get_sid())


def handle_message(data):
    if isinstance(data, dict):
        data = data.get('guess', '')
    _coordinator().on_message(_get_sid(), str(data))


def register_socketio_handlers() -> None:
    """Register Socket.IO event handlers on namespace '/ws'.

    Only '/ws' is served, since outbound messages are sent there.
    """
    socketio.on_event('connect', handle_connect, namespace='/ws')
    socketio.on_event('disconnect', handle_disconnect, namespace='/ws')
    socketio.on_event('message', handle_message, namespace='/ws')
