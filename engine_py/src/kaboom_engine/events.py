"""
Outbound game events and the sink the engine delivers them to.
"""

import time
from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel


class OutboundEventType(str, Enum):
    """Outbound event types."""
    JOIN_SUCCESS = "join_success"
    STATE = "state"
    ERROR = "error"
    PLAYER_JOINED = "player_joined"
    PLAYER_LEFT = "player_left"
    ROUND_STARTED = "round_started"
    ROUND_ENDED = "round_ended"
    CARD_PLAYED = "card_played"
    ACTION_PENDING = "action_pending"
    ACTION_UPDATED = "action_updated"
    ACTION_RESOLVED = "action_resolved"
    ACTION_CANCELLED = "action_cancelled"
    BOMB_DRAWN = "bomb_drawn"
    BOMB_DEFUSED = "bomb_defused"
    BOMB_INSERTED = "bomb_inserted"
    ASK_INSERT_BOMB = "ask_insert_bomb"
    PLAYER_ELIMINATED = "player_eliminated"
    CARDS_REVEALED = "cards_revealed"
    STEAL_RESULT = "steal_result"
    CARD_STOLEN = "card_stolen"
    STOLEN_FROM = "stolen_from"


class GameEvent(BaseModel):
    """Event notification; `data` never carries information hidden from its recipients."""
    type: OutboundEventType
    data: Dict[str, Any]
    timestamp: float


def create_game_event(event_type: OutboundEventType, **data: Any) -> GameEvent:
    """Create a game event."""
    return GameEvent(
        type=event_type,
        data=data,
        timestamp=time.time()
    )


class EventSink:
    """
    Where a match sends its events.

    The engine calls these synchronously while holding the room lock, so
    implementations must not block.
    """

    def broadcast(self, room_id: str, event: GameEvent) -> None:
        pass

    def send_to(self, room_id: str, player_id: str, event: GameEvent) -> None:
        pass

    def state_changed(self, room_id: str) -> None:
        """Every viewer's snapshot is stale."""
        pass
