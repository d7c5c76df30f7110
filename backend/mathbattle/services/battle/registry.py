import logging
import re
import threading
from typing import Callable, Dict, List, Optional

from .errors import Conflict, InvalidRoomId, RoomNotFound
from .models import ROOM_WAITING, Room, generate_room_id

logger = logging.getLogger(__name__)

ROOM_ID_PATTERN = re.compile(r'^[A-Z0-9-]{4,12}$')


def normalize_room_id(raw) -> str:
    if raw is None:
        return ''
    if not isinstance(raw, str):
        raise InvalidRoomId()
    return raw.strip().upper()


class RoomRegistry:
    """Owns every live room. Rooms are never persisted."""

    def __init__(self, clock: Callable[[], int], max_players: int = 24,
                 empty_room_ttl_ms: int = 10 * 60 * 1000, room_ttl_ms: int = 6 * 60 * 60 * 1000,
                 on_evict: Optional[Callable[[Room], None]] = None):
        self.clock = clock
        self.max_players = max_players
        self.empty_room_ttl_ms = empty_room_ttl_ms
        self.room_ttl_ms = room_ttl_ms
        self.on_evict = on_evict
        self._rooms: Dict[str, Room] = {}
        self._lock = threading.RLock()

    def __len__(self) -> int:
        return len(self._rooms)

    def rooms(self) -> List[Room]:
        with self._lock:
            return list(self._rooms.values())

    def create_room(self, desired_id=None) -> Room:
        room_id = normalize_room_id(desired_id)
        if room_id and not ROOM_ID_PATTERN.match(room_id):
            raise InvalidRoomId()
        now = self.clock()
        with self._lock:
            if room_id:
                if room_id in self._rooms:
                    raise Conflict(f'Room {room_id} already exists.')
            else:
                room_id = generate_room_id()
                while room_id in self._rooms:
                    logger.warning(f"Room id collision detected, regenerating: {room_id}")
                    room_id = generate_room_id()
            room = Room(id=room_id, created_at=now, updated_at=now)
            self._rooms[room_id] = room
        logger.info(f"[room-create] room={room_id} total={len(self._rooms)}")
        return room

    def get_room(self, room_id) -> Optional[Room]:
        key = normalize_room_id(room_id)
        with self._lock:
            return self._rooms.get(key)

    def require_room(self, room_id) -> Room:
        room = self.get_room(room_id)
        if room is None:
            raise RoomNotFound(normalize_room_id(room_id) or '(blank)')
        return room

    def resolve_or_create(self, room_id=None) -> Room:
        """Existing room for ``room_id``; otherwise a new room (with that id if given)."""
        key = normalize_room_id(room_id)
        with self._lock:
            if key and key in self._rooms:
                return self._rooms[key]
            return self.create_room(key or None)

    def find_joinable_room(self) -> Optional[Room]:
        """Oldest waiting room with players and a free seat.

        Each room is read under its own lock, taken after the registry lock
        is released.
        """
        candidates = []
        for room in self.rooms():
            with room.lock:
                if room.state == ROOM_WAITING and 0 < len(room.players) < self.max_players:
                    candidates.append(room)
        if not candidates:
            return None
        return min(candidates, key=lambda room: room.created_at)

    def evict_stale(self) -> List[str]:
        now = self.clock()
        evicted = []
        with self._lock:
            for room_id, room in list(self._rooms.items()):
                idle = now - room.updated_at
                if (not room.players and idle > self.empty_room_ttl_ms) or idle > self.room_ttl_ms:
                    del self._rooms[room_id]
                    evicted.append(room)
        for room in evicted:
            logger.info(
                f"[room-evict] room={room.id} players={len(room.players)} idle={now - room.updated_at}ms"
            )
            if self.on_evict:
                self.on_evict(room)
        return [room.id for room in evicted]
