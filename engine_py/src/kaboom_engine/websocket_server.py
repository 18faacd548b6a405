"""WebSocket server for real-time multiplayer communication"""

import asyncio
import logging
import uuid
from typing import Callable, Dict, Optional, Set

import orjson
from fastapi import WebSocket, WebSocketDisconnect

from .engine import KaboomEngine, Match
from .errors import ALREADY_JOINED, INTERNAL_ERROR, ROOM_FULL, ROOM_NOT_FOUND
from .events import EventSink, GameEvent
from .models import ActionResult
from .rules import RuleConfig, rules_from_env
from .scheduling import AsyncioScheduler
from .serialization import sanitize_state
from .ws.events import (
    DrawCardEvent, InsertBombEvent, JoinEvent, PlayCardEvent, PlayNopeEvent, PlayPairEvent,
    RequestStateEvent, RestartGameEvent, create_error_event, create_invalid_event_error,
    create_join_success_event, create_state_event, parse_inbound_event
)

logger = logging.getLogger(__name__)


def encode_event(event: GameEvent) -> str:
    return orjson.dumps(event.model_dump(mode="json")).decode()


class Connection:
    """One websocket and the queue its writer task drains."""

    def __init__(self, conn_id: str, websocket: WebSocket, loop: asyncio.AbstractEventLoop):
        self.id = conn_id
        self.websocket = websocket
        self.loop = loop
        self.outbox: asyncio.Queue = asyncio.Queue()
        self.room_id: Optional[str] = None
        self.writer: Optional[asyncio.Task] = None

    def enqueue(self, payload: Optional[str]):
        # Safe from any thread; None stops the writer
        self.loop.call_soon_threadsafe(self.outbox.put_nowait, payload)


class ConnectionManager:
    def __init__(self):
        self.active_connections: Dict[str, Connection] = {}
        self.room_connections: Dict[str, Set[str]] = {}

    async def connect(self, websocket: WebSocket) -> Connection:
        await websocket.accept()
        conn = Connection(uuid.uuid4().hex[:8], websocket, asyncio.get_running_loop())
        conn.writer = asyncio.create_task(self._writer(conn))
        self.active_connections[conn.id] = conn
        logger.info(f"Connection {conn.id} opened")
        return conn

    async def disconnect(self, conn: Connection):
        self.remove_from_room(conn)
        self.active_connections.pop(conn.id, None)
        conn.enqueue(None)
        if conn.writer is not None:
            try:
                await asyncio.wait_for(conn.writer, timeout=1.0)
            except asyncio.TimeoutError:
                conn.writer.cancel()
        logger.info(f"Connection {conn.id} closed")

    def add_to_room(self, conn: Connection, room_id: str):
        conn.room_id = room_id
        self.room_connections.setdefault(room_id, set()).add(conn.id)

    def remove_from_room(self, conn: Connection):
        if conn.room_id is None:
            return
        members = self.room_connections.get(conn.room_id)
        if members is not None:
            members.discard(conn.id)
            if not members:
                del self.room_connections[conn.room_id]
        conn.room_id = None

    def room_members(self, room_id: str):
        ids = self.room_connections.get(room_id, ())
        return [self.active_connections[i] for i in list(ids) if i in self.active_connections]

    def send_personal_message(self, event: GameEvent, conn_id: str):
        conn = self.active_connections.get(conn_id)
        if conn is not None:
            conn.enqueue(encode_event(event))

    def broadcast_to_room(self, event: GameEvent, room_id: str):
        payload = encode_event(event)
        for conn in self.room_members(room_id):
            conn.enqueue(payload)

    async def _writer(self, conn: Connection):
        while True:
            payload = await conn.outbox.get()
            if payload is None:
                return
            try:
                await conn.websocket.send_text(payload)
            except Exception as e:
                logger.warning(f"Error sending message to {conn.id}: {e}")
                return


class ConnectionEventSink(EventSink):
    """
    Delivers engine events to the connections of a room.

    Player ids are connection ids, so unicast needs no lookup table.
    """

    def __init__(self, connections: ConnectionManager, get_room: Callable[[str], Optional[Match]]):
        self.connections = connections
        self.get_room = get_room

    def broadcast(self, room_id: str, event: GameEvent) -> None:
        self.connections.broadcast_to_room(event, room_id)

    def send_to(self, room_id: str, player_id: str, event: GameEvent) -> None:
        self.connections.send_personal_message(event, player_id)

    def state_changed(self, room_id: str) -> None:
        # Runs under the room lock, so every snapshot sees the same state
        match = self.get_room(room_id)
        if match is None:
            return
        for conn in self.connections.room_members(room_id):
            conn.enqueue(encode_event(create_state_event(sanitize_state(match, conn.id))))


class GameWebSocketManager:
    def __init__(self, rules: Optional[RuleConfig] = None):
        self.connection_manager = ConnectionManager()
        self.engine = KaboomEngine(
            rules=rules,
            sink=ConnectionEventSink(self.connection_manager, self._get_room),
            scheduler=AsyncioScheduler(),
        )

    def _get_room(self, room_id: str) -> Optional[Match]:
        return self.engine.get_room(room_id)

    async def handle_websocket(self, websocket: WebSocket):
        conn = await self.connection_manager.connect(websocket)
        try:
            while True:
                data = await websocket.receive_text()
                self.handle_message(conn, data)
        except WebSocketDisconnect:
            logger.info(f"WebSocket disconnected for {conn.id}")
        finally:
            self.leave_room(conn)
            await self.connection_manager.disconnect(conn)

    def handle_message(self, conn: Connection, raw: str):
        try:
            message = orjson.loads(raw)
            event = parse_inbound_event(message)
        except (orjson.JSONDecodeError, ValueError) as e:
            self.send_error(conn, create_invalid_event_error(str(e)))
            return

        try:
            self.dispatch(conn, event)
        except Exception as e:
            logger.exception(f"Error handling {event.type.value} from {conn.id}")
            self.send_error(conn, create_error_event(INTERNAL_ERROR, str(e)))

    def dispatch(self, conn: Connection, event):
        if isinstance(event, JoinEvent):
            self.join_room(conn, event)
            return

        match = self.engine.get_room(conn.room_id) if conn.room_id else None
        if match is None:
            self.send_error(conn, create_error_event(ROOM_NOT_FOUND, "Join a room first"))
            return

        if isinstance(event, RequestStateEvent):
            with match.lock:
                state = sanitize_state(match, conn.id)
            self.connection_manager.send_personal_message(create_state_event(state), conn.id)
            return

        if isinstance(event, PlayCardEvent):
            result = match.play_card(conn.id, event.card)
        elif isinstance(event, PlayPairEvent):
            result = match.play_pair(conn.id, event.card, event.target_id)
        elif isinstance(event, PlayNopeEvent):
            result = match.play_nope(conn.id)
        elif isinstance(event, DrawCardEvent):
            result = match.draw_card(conn.id)
        elif isinstance(event, InsertBombEvent):
            result = match.insert_bomb(conn.id, event.index, event.make_public)
        elif isinstance(event, RestartGameEvent):
            result = match.restart(conn.id)
        else:
            raise TypeError(f"Unhandled event {event!r}")
        self.report(conn, result)

    def join_room(self, conn: Connection, event: JoinEvent):
        if conn.room_id is not None:
            self.send_error(conn, create_error_event(ALREADY_JOINED, f"Already in room {conn.room_id}"))
            return
        existing = self.engine.get_room(event.room_id)
        if existing is not None and len(existing.participants) >= existing.rules.max_players:
            self.send_error(conn, create_error_event(ROOM_FULL, "Room is full"))
            return
        # Register first so the joiner receives the events its own join triggers
        self.connection_manager.add_to_room(conn, event.room_id)
        self.connection_manager.send_personal_message(
            create_join_success_event(conn.id, event.room_id), conn.id
        )
        result = self.engine.join(event.room_id, conn.id, event.name)
        if not result.success:
            self.connection_manager.remove_from_room(conn)
            match = self.engine.get_room(event.room_id)
            if match is not None and not match.participants:
                self.engine.remove_room(event.room_id)
            self.report(conn, result)

    def leave_room(self, conn: Connection):
        if conn.room_id is None:
            return
        room_id = conn.room_id
        self.connection_manager.remove_from_room(conn)
        result = self.engine.leave(room_id, conn.id)
        if not result.success:
            logger.debug(f"Leave for {conn.id} in {room_id}: {result}")

    def report(self, conn: Connection, result: ActionResult):
        if not result.success:
            self.send_error(conn, create_error_event(result.error_code, result.error_message))

    def send_error(self, conn: Connection, event: GameEvent):
        self.connection_manager.send_personal_message(event, conn.id)


# Global instance
game_manager = GameWebSocketManager(rules_from_env())
