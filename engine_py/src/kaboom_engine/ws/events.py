"""
WebSocket event models and validation.
"""

import time
from enum import Enum
from typing import Any, Dict, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

from ..constants import Card
from ..errors import INVALID_EVENT
from ..events import GameEvent, OutboundEventType


class EventType(str, Enum):
    """Inbound event types."""
    JOIN = "join"
    PLAY_CARD = "play_card"
    PLAY_PAIR = "play_pair"
    PLAY_NOPE = "play_nope"
    DRAW_CARD = "draw_card"
    INSERT_BOMB = "insert_bomb"
    RESTART_GAME = "restart_game"
    REQUEST_STATE = "request_state"


# Inbound event models
class BaseEvent(BaseModel):
    """Base event model."""
    type: EventType


class JoinEvent(BaseEvent):
    """Join room event."""
    type: EventType = EventType.JOIN
    room_id: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=30)

    @field_validator('room_id', 'name')
    @classmethod
    def strip_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError('must not be blank')
        return v


class PlayCardEvent(BaseEvent):
    type: EventType = EventType.PLAY_CARD
    card: Card


class PlayPairEvent(BaseEvent):
    """Two copies of a pair card against a target."""
    type: EventType = EventType.PLAY_PAIR
    card: Card
    target_id: str = Field(..., min_length=1)


class PlayNopeEvent(BaseEvent):
    type: EventType = EventType.PLAY_NOPE


class DrawCardEvent(BaseEvent):
    type: EventType = EventType.DRAW_CARD


class InsertBombEvent(BaseEvent):
    """Put the defused bomb back; index counts from the bottom and is clamped by the engine."""
    type: EventType = EventType.INSERT_BOMB
    index: int
    make_public: bool = False


class RestartGameEvent(BaseEvent):
    type: EventType = EventType.RESTART_GAME


class RequestStateEvent(BaseEvent):
    """Request full state event."""
    type: EventType = EventType.REQUEST_STATE


# Union type for all inbound events
InboundEvent = Union[
    JoinEvent,
    PlayCardEvent,
    PlayPairEvent,
    PlayNopeEvent,
    DrawCardEvent,
    InsertBombEvent,
    RestartGameEvent,
    RequestStateEvent,
]


def parse_inbound_event(data: Dict[str, Any]) -> InboundEvent:
    """
    Parse raw event data into appropriate event model.

    Args:
        data: Raw event data from WebSocket

    Returns:
        Parsed event model

    Raises:
        ValueError: If event type is invalid or data is malformed
    """
    if not isinstance(data, dict):
        raise ValueError("Event must be a JSON object")

    event_type = data.get("type")
    if not event_type:
        raise ValueError("Missing event type")

    try:
        event_type = EventType(event_type)
    except ValueError:
        raise ValueError(f"Invalid event type: {event_type}")

    event_map = {
        EventType.JOIN: JoinEvent,
        EventType.PLAY_CARD: PlayCardEvent,
        EventType.PLAY_PAIR: PlayPairEvent,
        EventType.PLAY_NOPE: PlayNopeEvent,
        EventType.DRAW_CARD: DrawCardEvent,
        EventType.INSERT_BOMB: InsertBombEvent,
        EventType.RESTART_GAME: RestartGameEvent,
        EventType.REQUEST_STATE: RequestStateEvent,
    }

    event_class = event_map[event_type]
    try:
        return event_class(**data)
    except ValidationError as e:
        raise ValueError(f"Invalid event data: {e.errors()[0].get('msg', str(e))}")


def create_error_event(code: str, message: str) -> GameEvent:
    """Create an error event."""
    return GameEvent(
        type=OutboundEventType.ERROR,
        data={"code": code, "message": message},
        timestamp=time.time()
    )


def create_invalid_event_error(message: str) -> GameEvent:
    return create_error_event(INVALID_EVENT, message)


def create_join_success_event(player_id: str, room_id: str) -> GameEvent:
    """Create a join success event."""
    return GameEvent(
        type=OutboundEventType.JOIN_SUCCESS,
        data={"player_id": player_id, "room_id": room_id},
        timestamp=time.time()
    )


def create_state_event(state: Dict[str, Any]) -> GameEvent:
    """Create a full state event."""
    return GameEvent(
        type=OutboundEventType.STATE,
        data={"state": state},
        timestamp=time.time()
    )
