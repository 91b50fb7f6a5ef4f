import random
import re
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from constants import ROOM_CODE_LENGTH, ROOM_TTL_SECONDS
from logging_config import get_logger

logger = get_logger(__name__)

_NON_DIGITS = re.compile(r"[^0-9]")
_ROOM_CODE = re.compile(r"[0-9]{%d}" % ROOM_CODE_LENGTH)


def normalize_room_code(value) -> str:
    """Strip everything but digits and cut to the room code length."""
    if value is None:
        return ""
    return _NON_DIGITS.sub("", str(value))[:ROOM_CODE_LENGTH]


def is_valid_room_code(code: str) -> bool:
    return _ROOM_CODE.fullmatch(code) is not None


def generate_room_code() -> str:
    return str(random.randint(0, 10 ** ROOM_CODE_LENGTH - 1)).zfill(ROOM_CODE_LENGTH)


@dataclass
class Session:
    id: str
    color: str
    connection: Any = field(repr=False, compare=False)

    def presence(self) -> dict:
        return {"id": self.id, "color": self.color}


@dataclass
class Room:
    code: str
    updated_at: float
    offer: Any = None
    answer: Any = None
    document: str = ""
    sessions: Dict[str, Session] = field(default_factory=dict)

    def presence(self) -> list:
        return [session.presence() for session in list(self.sessions.values())]


class RoomStore:
    """In-memory rooms keyed by 5-digit code, evicted after ttl seconds idle.

    Every accessor goes through get_or_create: expired rooms are dropped on
    read and replaced by a blank one. Callers that mutate a room must call
    touch() afterwards so the idle window restarts.
    """

    def __init__(self, ttl: float = ROOM_TTL_SECONDS, clock: Callable[[], float] = time.time):
        self.ttl = ttl
        self.clock = clock
        self._rooms: Dict[str, Room] = {}
        self._lock = threading.RLock()
        logger.info(f"Initializing RoomStore with TTL {ttl} seconds")

    def __len__(self):
        with self._lock:
            return len(self._rooms)

    def __contains__(self, code):
        with self._lock:
            return code in self._rooms

    def is_expired(self, room: Room, now: Optional[float] = None) -> bool:
        now = self.clock() if now is None else now
        return now - room.updated_at >= self.ttl

    def create_room(self) -> str:
        # No collision check: a live room with the same code gets a blank state
        code = generate_room_code()
        with self._lock:
            self._rooms[code] = Room(code=code, updated_at=self.clock())
        logger.info(f"Room {code} created")
        return code

    def get(self, code: str) -> Optional[Room]:
        """Return the live room for code, or None. Never creates one."""
        with self._lock:
            room = self._rooms.get(code)
            if room is not None and self.is_expired(room):
                logger.info(f"Room {code} expired, discarding stale state")
                self.delete(code)
                return None
            return room

    def get_or_create(self, code: str) -> Room:
        with self._lock:
            room = self.get(code)
            if room is not None:
                return room
            room = Room(code=code, updated_at=self.clock())
            self._rooms[code] = room
            logger.debug(f"Room {code} materialized")
            return room

    def touch(self, room: Room):
        with self._lock:
            room.updated_at = self.clock()

    def delete(self, code: str) -> bool:
        with self._lock:
            return self._rooms.pop(code, None) is not None

    def sweep(self) -> int:
        """Remove every room idle past the TTL and return how many went."""
        with self._lock:
            now = self.clock()
            expired = [code for code, room in self._rooms.items() if self.is_expired(room, now)]
            for code in expired:
                self.delete(code)
        if expired:
            logger.debug(f"Swept rooms: {expired}")
        return len(expired)


room_store = RoomStore()
