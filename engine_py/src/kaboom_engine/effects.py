"""
Card effects and draw resolution.
"""

import logging
from typing import TYPE_CHECKING, Callable, Dict

from .constants import (
    STEAL_ACTOR_GONE, STEAL_OK, STEAL_TARGET_ELIMINATED, STEAL_TARGET_EMPTY,
    STEAL_TARGET_GONE, Card, Effect
)
from .errors import DeckEmpty
from .events import OutboundEventType, create_game_event
from .models import Participant, PendingAction

if TYPE_CHECKING:
    from .engine import Match

logger = logging.getLogger(__name__)


class CardEffectResolver:
    """Applies settled effects and draws to one match."""

    def __init__(self, match: 'Match'):
        self.match = match
        self.handlers: Dict[Effect, Callable[[PendingAction], None]] = {
            Effect.SKIP: self.apply_skip,
            Effect.ATTACK: self.apply_attack,
            Effect.SEE_FUTURE: self.apply_see_future,
            Effect.DRAW_BOTTOM: self.apply_draw_bottom,
            Effect.SHUFFLE: self.apply_shuffle,
            Effect.STEAL: self.apply_steal,
        }

    def resolve(self, action: PendingAction):
        handler = self.handlers.get(action.effect)
        if handler is None:
            raise NotImplementedError(f"No handler for effect {action.effect}")
        handler(action)

    def _broadcast(self, event_type: OutboundEventType, **data):
        self.match.sink.broadcast(self.match.room_id, create_game_event(event_type, **data))

    def _send(self, player_id: str, event_type: OutboundEventType, **data):
        self.match.sink.send_to(self.match.room_id, player_id, create_game_event(event_type, **data))

    def apply_skip(self, action: PendingAction):
        self.match.end_turn_slot()

    def apply_attack(self, action: PendingAction):
        """The next alive player owes one extra slot; the attacker ends one slot without drawing."""
        target = self.match.turns.next_alive_participant()
        if target is None:
            self.match.end_round(action.actor_id)
            return
        self.match.turns.add_debt(target)
        logger.info(f"[{self.match.room_id}] {action.actor_id} attacked {target}")
        self.match.end_turn_slot()

    def apply_see_future(self, action: PendingAction):
        cards = self.match.deck.peek_top(self.match.rules.see_future_count)
        self._send(action.actor_id, OutboundEventType.CARDS_REVEALED, cards=[c.value for c in cards])

    def apply_draw_bottom(self, action: PendingAction):
        self.resolve_draw(action.actor_id, from_bottom=True)

    def apply_shuffle(self, action: PendingAction):
        self.match.deck.shuffle_in_place()
        self.match.top_card_public = None

    def apply_steal(self, action: PendingAction):
        """
        Move one random card from the target's hand to the actor's.

        Only the thief learns which card moved; the victim only learns who
        took it. A steal that cannot happen still settles, as a failure.
        """
        participants = self.match.participants
        actor = participants.get(action.actor_id)
        target = participants.get(action.pair_target_id)
        stolen = None
        if actor is None or not actor.alive:
            reason = STEAL_ACTOR_GONE
        elif target is None:
            reason = STEAL_TARGET_GONE
        elif not target.alive:
            reason = STEAL_TARGET_ELIMINATED
        elif not target.hand:
            reason = STEAL_TARGET_EMPTY
        else:
            reason = STEAL_OK
            stolen = target.hand.pop(self.match.rng.randrange(len(target.hand)))
            actor.hand.append(stolen)

        self._broadcast(
            OutboundEventType.STEAL_RESULT,
            actor_id=action.actor_id,
            target_id=action.pair_target_id,
            success=stolen is not None,
            reason=reason,
        )
        if stolen is not None:
            self._send(actor.id, OutboundEventType.CARD_STOLEN, from_id=target.id, card=stolen.value)
            self._send(target.id, OutboundEventType.STOLEN_FROM, by_id=actor.id)
        if actor is not None and actor.alive:
            self.match.end_turn_slot()

    def resolve_draw(self, player_id: str, from_bottom: bool = False):
        """
        Draw one card for player_id and apply it.

        Raises:
            DeckEmpty: nothing to draw; nothing changed.
        """
        match = self.match
        player = match.participants[player_id]
        if len(match.deck) == 0:
            raise DeckEmpty()
        match.top_card_public = None
        card = match.deck.draw_bottom() if from_bottom else match.deck.draw_top()

        if card != Card.BOMB:
            player.hand.append(card)
            match.end_turn_slot()
            return

        logger.info(f"[{match.room_id}] {player_id} drew a bomb")
        self._broadcast(OutboundEventType.BOMB_DRAWN, player_id=player_id)

        # A Clone copying a real Defuse on top of the pile is spent before a real Defuse
        if player.holds(Card.CLONE) and match.deck.discard_top() == Card.DEFUSE:
            player.take(Card.CLONE)
            match.deck.discard(Card.CLONE, acting_as=Card.DEFUSE)
            self._broadcast(
                OutboundEventType.CARD_PLAYED,
                player_id=player_id, card=Card.CLONE.value, cloned_from=Card.DEFUSE.value
            )
            self._begin_defuse(player, Card.CLONE)
        elif player.holds(Card.DEFUSE):
            player.take(Card.DEFUSE)
            match.deck.discard(Card.DEFUSE)
            self._broadcast(OutboundEventType.CARD_PLAYED, player_id=player_id, card=Card.DEFUSE.value)
            self._begin_defuse(player, Card.DEFUSE)
        else:
            match.eliminate(player)

    def _begin_defuse(self, player: Participant, used: Card):
        # The bomb waits in the defuser's hand until it goes back into the deck
        player.hand.append(Card.BOMB)
        self.match.defusing_player_id = player.id
        self._broadcast(OutboundEventType.BOMB_DEFUSED, player_id=player.id, used=used.value)
        self._send(
            player.id, OutboundEventType.ASK_INSERT_BOMB,
            min_index=0, max_index=len(self.match.deck)
        )

    def finish_defuse(self, player: Participant, index: int, make_public: bool):
        """Put the held bomb back at index (clamped, counted from the bottom) and end the slot."""
        match = self.match
        player.take(Card.BOMB)
        placed = match.deck.insert_at(index, Card.BOMB)
        on_top = match.deck.is_top_index(placed)
        match.top_card_public = Card.BOMB if (on_top and make_public) else None
        match.defusing_player_id = None
        logger.info(f"[{match.room_id}] {player.id} put the bomb back")
        self._broadcast(
            OutboundEventType.BOMB_INSERTED,
            player_id=player.id, revealed_on_top=match.top_card_public is not None
        )
        match.end_turn_slot()
