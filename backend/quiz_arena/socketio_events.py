import logging
import threading
from typing import Any, Dict, Optional

from flask import current_app, request
from flask_socketio import emit

from quiz_arena import get_arena, socketio
from quiz_arena.services.rooms.errors import RoomError

logger = logging.getLogger(__name__)

BAD_REQUEST_MESSAGE = 'Некорректный запрос.'


class SocketIOEvents:
    """Outbound side of the gateway.

    Owns the session registry (sid -> room id) and the Socket.IO room
    subscriptions behind it, so a session is subscribed to at most one
    room.
    """

    def __init__(self, socketio, namespace='/'):
        self.socketio = socketio
        self.namespace = namespace
        self._sessions: Dict[str, str] = {}
        self._lock = threading.Lock()

    def emit(self, event: str, data=None, to=None) -> None:
        if data is None:
            self.socketio.emit(event, to=to, namespace=self.namespace)
        else:
            self.socketio.emit(event, data, to=to, namespace=self.namespace)

    def subscribe(self, sid: str, room_id: str) -> None:
        """Subscribe ``sid`` to ``room_id``, dropping any other room first.

        The roster of the previous room is left to the caller; only the
        broadcast subscription moves here.
        """
        with self._lock:
            previous = self._sessions.get(sid)
            if previous and previous != room_id:
                self.socketio.server.leave_room(sid, previous, namespace=self.namespace)
            self.socketio.server.enter_room(sid, room_id, namespace=self.namespace)
            self._sessions[sid] = room_id

    def unsubscribe(self, sid: str, room_id: str) -> None:
        self.socketio.server.leave_room(sid, room_id, namespace=self.namespace)
        with self._lock:
            if self._sessions.get(sid) == room_id:
                del self._sessions[sid]

    def close_room(self, room_id: str) -> None:
        self.socketio.close_room(room_id, namespace=self.namespace)
        with self._lock:
            for sid in [s for s, r in self._sessions.items() if r == room_id]:
                del self._sessions[sid]

    def room_of(self, sid: str) -> Optional[str]:
        with self._lock:
            return self._sessions.get(sid)

    def forget(self, sid: str) -> Optional[str]:
        with self._lock:
            return self._sessions.pop(sid, None)


def _get_sid() -> str:
    return request.sid  # type: ignore


def _payload(data) -> Optional[Dict[str, Any]]:
    if data is None:
        return {}
    if not isinstance(data, dict):
        emit('error', BAD_REQUEST_MESSAGE)
        return None
    return data


def _leave_previous(arena, sid: str, previous: Optional[str], current: str) -> None:
    """Drop the session from the room it was in before switching rooms."""
    if not previous or previous == current:
        return
    try:
        arena.machine.leave(previous, sid, reason='switch')
    except RoomError:
        logger.debug(f"[session] sid={sid} stale membership in room={previous}")


def handle_connect(auth=None):
    logger.info(f"[connect] sid={_get_sid()}")


def handle_disconnect(*args):
    sid = _get_sid()
    arena = get_arena(current_app)
    room_id = arena.events.room_of(sid)
    logger.info(f"[disconnect] sid={sid} room={room_id}")
    if room_id:
        try:
            arena.machine.leave(room_id, sid, reason='disconnect')
        except RoomError:
            logger.debug(f"[disconnect] sid={sid} room={room_id} already closed")
    arena.events.forget(sid)


def handle_create_room(data):
    data = _payload(data)
    if data is None:
        return
    sid = _get_sid()
    arena = get_arena(current_app)
    previous = arena.events.room_of(sid)
    try:
        room = arena.machine.create_room(sid, data.get('playerName'))
    except RoomError as exc:
        emit('error', exc.message)
        return
    _leave_previous(arena, sid, previous, room.room_id)


def handle_join_room(data):
    data = _payload(data)
    if data is None:
        return
    sid = _get_sid()
    arena = get_arena(current_app)
    previous = arena.events.room_of(sid)
    try:
        room = arena.machine.join_room(data.get('roomId'), sid, data.get('playerName'))
    except RoomError as exc:
        emit('joinError', exc.message)
        return
    _leave_previous(arena, sid, previous, room.room_id)


def handle_start_game(data):
    data = _payload(data)
    if data is None:
        return
    try:
        get_arena(current_app).machine.start_game(data.get('roomId'), _get_sid())
    except RoomError as exc:
        emit('error', exc.message)


def handle_submit_answer(data):
    data = _payload(data)
    if data is None:
        return
    try:
        get_arena(current_app).machine.submit_answer(data.get('roomId'), _get_sid(), data.get('selectedOption'))
    except RoomError as exc:
        emit('error', exc.message)


def handle_leave_room(data):
    data = _payload(data)
    if data is None:
        return
    try:
        room_id = get_arena(current_app).machine.leave(data.get('roomId'), _get_sid())
    except RoomError as exc:
        emit('error', exc.message)
        return
    emit('leftRoom', {'roomId': room_id})


def handle_unexpected_error(exc):
    logger.exception(f"[socket-error] sid={_get_sid()} event failed: {exc}")
    emit('error', BAD_REQUEST_MESSAGE)


def register_socketio_handlers(namespace: str = '/') -> None:
    """Register Socket.IO event handlers on ``namespace``."""
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event('createRoom', handle_create_room, namespace=namespace)
    socketio.on_event('joinRoom', handle_join_room, namespace=namespace)
    socketio.on_event('startGame', handle_start_game, namespace=namespace)
    socketio.on_event('submitAnswer', handle_submit_answer, namespace=namespace)
    socketio.on_event('leaveRoom', handle_leave_room, namespace=namespace)
    socketio.on_error(namespace)(handle_unexpected_error)
