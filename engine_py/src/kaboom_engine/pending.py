"""
The counter-play window: one pending action per room, settled when the
window closes without another Nope.
"""

import logging
from typing import Any, Callable, Dict, Optional

from .constants import CANCEL_NOPED, Card, Effect
from .deck import DeckManager
from .errors import ACTION_PENDING, raise_error
from .events import EventSink, OutboundEventType, create_game_event
from .models import Participant, PendingAction
from .scheduling import ScheduledTask, Scheduler

logger = logging.getLogger(__name__)


def pending_summary(action: Optional[PendingAction]) -> Optional[Dict[str, Any]]:
    """Public view of a pending action."""
    if action is None:
        return None
    return {
        "actor_id": action.actor_id,
        "display_card": action.display_card.value,
        "effect": action.effect.value,
        "effect_card": action.effect_card.value if action.effect_card else None,
        "cloned_from": action.cloned_from.value if action.cloned_from else None,
        "target_id": action.pair_target_id,
        "nope_count": action.nope_count,
        "resolve_at": action.resolve_at,
    }


class PendingActionCoordinator:
    """
    Idle -> Pending -> Resolved | Cancelled -> Idle.

    Every Nope restarts the full window. The deferred callback takes the
    room lock and carries a ticket; only the callback holding the latest
    ticket for the current action may settle it.
    """

    def __init__(
        self,
        room_id: str,
        scheduler: Scheduler,
        window_seconds: float,
        lock,
        sink: EventSink,
        deck: DeckManager,
        on_settle: Callable[[PendingAction, bool], None],
    ):
        self.room_id = room_id
        self.scheduler = scheduler
        self.window_seconds = window_seconds
        self.lock = lock
        self.sink = sink
        self.deck = deck
        self.on_settle = on_settle
        self.pending: Optional[PendingAction] = None
        self._task: Optional[ScheduledTask] = None
        self._ticket = 0
        self._generation = 0

    @property
    def active(self) -> bool:
        return self.pending is not None

    def open(
        self,
        actor_id: str,
        display_card: Card,
        effect: Effect,
        effect_card: Optional[Card] = None,
        cloned_from: Optional[Card] = None,
        pair_target_id: Optional[str] = None,
    ) -> PendingAction:
        if self.pending is not None:
            raise_error(ACTION_PENDING, "An action is already pending")
        self._generation += 1
        action = PendingAction(
            actor_id=actor_id,
            display_card=display_card,
            effect=effect,
            effect_card=effect_card,
            cloned_from=cloned_from,
            pair_target_id=pair_target_id,
            resolve_at=self.scheduler.now() + self.window_seconds,
            generation=self._generation,
        )
        self.pending = action
        logger.info(f"[{self.room_id}] {actor_id} opened {effect.value} (window {self.window_seconds}s)")
        self.sink.broadcast(self.room_id, create_game_event(
            OutboundEventType.ACTION_PENDING, **pending_summary(action)
        ))
        self._schedule(action)
        return action

    def accept_counterplay(self, player: Participant):
        """Spend one Nope from player's hand against the pending action."""
        action = self.pending
        player.take(Card.NOPE)
        self.deck.discard(Card.NOPE)
        action.nope_count += 1
        action.resolve_at = self.scheduler.now() + self.window_seconds
        logger.info(f"[{self.room_id}] {player.id} played Nope (count={action.nope_count})")
        self.sink.broadcast(self.room_id, create_game_event(
            OutboundEventType.CARD_PLAYED, player_id=player.id, card=Card.NOPE.value
        ))
        self.sink.broadcast(self.room_id, create_game_event(
            OutboundEventType.ACTION_UPDATED, **pending_summary(action)
        ))
        self._schedule(action)

    def cancel(self, reason: str):
        """Cancel regardless of the nope count."""
        action = self.pending
        if action is None:
            return
        self._drop_timer()
        self.pending = None
        logger.info(f"[{self.room_id}] pending {action.effect.value} cancelled: {reason}")
        self.sink.broadcast(self.room_id, create_game_event(
            OutboundEventType.ACTION_CANCELLED, actor_id=action.actor_id, reason=reason
        ))

    def clear(self):
        self._drop_timer()
        self.pending = None

    def _drop_timer(self):
        if self._task is not None:
            self._task.cancel()
            self._task = None
        self._ticket += 1

    def _schedule(self, action: PendingAction):
        self._drop_timer()
        ticket = self._ticket
        self._task = self.scheduler.call_later(
            self.window_seconds, lambda: self._on_deadline(action, ticket)
        )

    def _on_deadline(self, action: PendingAction, ticket: int):
        with self.lock:
            if self.pending is not action or ticket != self._ticket:
                logger.debug(f"[{self.room_id}] stale deadline for generation {action.generation} ignored")
                return
            self._task = None
            self.pending = None
            if action.cancelled:
                logger.info(f"[{self.room_id}] {action.effect.value} noped ({action.nope_count})")
                self.sink.broadcast(self.room_id, create_game_event(
                    OutboundEventType.ACTION_CANCELLED,
                    actor_id=action.actor_id, reason=CANCEL_NOPED, nope_count=action.nope_count
                ))
                self.on_settle(action, False)
                return
            logger.info(f"[{self.room_id}] {action.effect.value} resolves ({action.nope_count} nope(s))")
            self.sink.broadcast(self.room_id, create_game_event(
                OutboundEventType.ACTION_RESOLVED, **pending_summary(action)
            ))
            self.on_settle(action, True)
