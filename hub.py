"""Live participants per room: presence, document sync and cursor fan-out.

Connections only need an async ``send_text(str)``; FastAPI's WebSocket fits,
and so does any test double. Sessions are identified by id everywhere, so
"everyone but the sender" is an id comparison, never a handle comparison.
"""
import asyncio
import json
import random
import uuid
from typing import Optional

from backend import Room, RoomStore, Session, room_store
from constants import SESSION_COLORS
from logging_config import get_logger

logger = get_logger(__name__)


class RoomHub:
    def __init__(self, store: RoomStore, colors=SESSION_COLORS):
        self.store = store
        self.colors = tuple(colors)
        self._handlers = {
            "code": self._on_code,
            "cursor": self._on_cursor,
            "ping": self._on_ping,
            "hello": self._on_hello,
        }

    def pick_color(self, room: Room) -> str:
        in_use = {session.color for session in room.sessions.values()}
        for color in self.colors:
            if color not in in_use:
                return color
        return random.choice(self.colors)

    async def join(self, code: str, connection) -> Session:
        room = self.store.get_or_create(code)
        session = Session(id=str(uuid.uuid4()), color=self.pick_color(room), connection=connection)
        room.sessions[session.id] = session
        self.store.touch(room)
        logger.info(f"Session {session.id} joined room {code} ({len(room.sessions)} connected)")

        await self.send(session, {"type": "welcome", "id": session.id, "color": session.color})
        await self.send(session, {"type": "init", "code": room.document})
        presence = self.presence_message(room)
        await self.send(session, presence)
        await self.broadcast(room, presence, exclude=session.id)
        return session

    async def leave(self, code: str, session: Session):
        room = self.store.get(code)
        if room is None or room.sessions.pop(session.id, None) is None:
            logger.debug(f"Session {session.id} was not registered in room {code}")
            return
        self.store.touch(room)
        logger.info(f"Session {session.id} left room {code} ({len(room.sessions)} remaining)")
        await self.broadcast(room, self.presence_message(room))

    async def handle_message(self, code: str, session: Session, raw) -> bool:
        """Dispatch one client message. Returns False when it was dropped as malformed."""
        try:
            message = json.loads(raw)
        except (TypeError, ValueError):
            logger.debug(f"Dropping unparseable message from {session.id} in room {code}")
            return False
        if not isinstance(message, dict):
            logger.debug(f"Dropping non-object message from {session.id} in room {code}")
            return False

        kind = message.get("type")
        handler = self._handlers.get(kind) if isinstance(kind, str) else None
        if handler is None:
            logger.debug(f"Dropping message with unknown type {kind!r} from {session.id}")
            return False
        return await handler(self._room_for(code, session), session, message)

    def _room_for(self, code: str, session: Session) -> Room:
        room = self.store.get_or_create(code)
        if session.id not in room.sessions:
            # Room was evicted while this session stayed connected
            logger.info(f"Re-attaching session {session.id} to fresh room {code}")
            room.sessions[session.id] = session
            self.store.touch(room)
        return room

    async def _on_code(self, room: Room, session: Session, message: dict) -> bool:
        document = message.get("code")
        if not isinstance(document, str):
            logger.debug(f"Dropping code message with non-string payload from {session.id}")
            return False
        room.document = document
        self.store.touch(room)
        await self.broadcast(room, {"type": "code", "code": document}, exclude=session.id)
        return True

    async def _on_cursor(self, room: Room, session: Session, message: dict) -> bool:
        await self.broadcast(
            room,
            {"type": "cursor", "id": session.id, "selection": message.get("selection")},
            exclude=session.id,
        )
        return True

    async def _on_ping(self, room: Room, session: Session, message: dict) -> bool:
        await self.send(session, self.presence_message(room))
        return True

    async def _on_hello(self, room: Room, session: Session, message: dict) -> bool:
        logger.info(f"Session {session.id} in room {room.code} says hello as {message.get('role')!r}")
        return True

    @staticmethod
    def presence_message(room: Room) -> dict:
        return {"type": "presence", "clients": room.presence()}

    async def send(self, session: Session, message: dict) -> bool:
        try:
            await session.connection.send_text(json.dumps(message))
            return True
        except Exception as e:
            # The recipient's own disconnect handler cleans it up
            logger.debug(f"Failed to send to session {session.id}: {e}")
            return False

    async def broadcast(self, room: Room, message: dict, exclude: Optional[str] = None) -> int:
        recipients = [s for s in list(room.sessions.values()) if s.id != exclude]
        if not recipients:
            return 0
        results = await asyncio.gather(*[self.send(s, message) for s in recipients])
        delivered = sum(1 for ok in results if ok)
        logger.debug(
            f"Broadcast {message.get('type')} to {delivered}/{len(recipients)} sessions in room {room.code}"
        )
        return delivered


room_hub = RoomHub(room_store)
