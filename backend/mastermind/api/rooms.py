from flask import Blueprint, current_app, jsonify

rooms = Blueprint('rooms', __name__)


def _coordinator():
    return current_app.extensions['mastermind']


@rooms.route('/stats', methods=['GET'])
def get_stats():
    """Active rooms, queued players and connected users."""
    return jsonify(_coordinator().stats())


@rooms.route('/<string:room_id>', methods=['GET'])
def get_room(room_id):
    room = _coordinator().registry.lookup_by_room(room_id)
    if room is None:
        return jsonify({'error': 'Room not found'}), 404
    return jsonify(room.to_dict())
