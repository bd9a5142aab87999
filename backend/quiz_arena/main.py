from flask import Blueprint, current_app, jsonify

from quiz_arena import get_arena

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the Quiz Arena server!'})


@main.route('/api/health')
def health():
    arena = get_arena(current_app)
    return jsonify({'status': 'ok', 'rooms': len(arena.store)})
