import logging
import threading
from typing import Dict, List, Optional

from quiz_arena.models import Room, generate_room_code, normalize_room_code
from .errors import RoomNotFound

logger = logging.getLogger(__name__)


class RoomStore:
    """In-memory registry of open rooms.

    One instance per application. Room state itself is guarded by each
    room's own lock; this lock only protects the mapping.
    """

    def __init__(self):
        self._rooms: Dict[str, Room] = {}
        self._lock = threading.Lock()

    def create(self, host_sid: str, player_name: str) -> Room:
        with self._lock:
            room_id = generate_room_code(lambda code: code in self._rooms)
            room = Room(room_id=room_id, host_sid=host_sid)
            room.add_player(host_sid, player_name)
            self._rooms[room_id] = room
        logger.debug(f"[room-alloc] room={room_id} host={host_sid}")
        return room

    def get(self, room_id) -> Optional[Room]:
        code = normalize_room_code(room_id)
        if not code:
            return None
        with self._lock:
            return self._rooms.get(code)

    def require(self, room_id) -> Room:
        room = self.get(room_id)
        if room is None:
            raise RoomNotFound()
        return room

    def delete(self, room_id) -> Optional[Room]:
        code = normalize_room_code(room_id)
        with self._lock:
            room = self._rooms.pop(code, None) if code else None
        if room is None:
            return None
        if room.timer is not None:
            room.timer.cancel()
            room.timer = None
        logger.info(f"[room-delete] room={room.room_id}")
        return room

    def list(self) -> List[Room]:
        with self._lock:
            return list(self._rooms.values())

    def __contains__(self, room_id) -> bool:
        return self.get(room_id) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._rooms)
