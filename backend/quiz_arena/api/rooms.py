from flask import Blueprint, current_app, jsonify

from quiz_arena import get_arena
from quiz_arena.models import IN_ROUND, REVEAL

rooms = Blueprint('rooms', __name__)


@rooms.route('/<string:room_id>', methods=['GET'])
def get_room_state(room_id):
    """Public snapshot of a room. Never includes the correct answer."""
    arena = get_arena(current_app)
    room = arena.store.get(room_id)
    if room is None:
        return jsonify({'error': 'Room not found'}), 404
    with room.lock:
        payload = room.to_dict()
        question = room.current_question if room.phase in (IN_ROUND, REVEAL) else None
        payload['current_question'] = question.to_dict() if question else None
    payload['reveal_delay'] = float(current_app.config.get('REVEAL_DELAY_SEC', 3))
    return jsonify(payload)
