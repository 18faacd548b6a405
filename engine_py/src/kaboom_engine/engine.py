"""Match orchestration and the room registry"""

import logging
import random
import threading
from typing import Callable, Dict, List, Optional, Union

from .constants import (
    CANCEL_ACTOR_LEFT, PHASE_ENDED, PHASE_PLAYING, PHASE_WAITING, Card, effect_for
)
from .deck import DeckManager
from .effects import CardEffectResolver
from .errors import (
    ALREADY_JOINED, DeckEmpty, GameError, ROOM_FULL, ROOM_NOT_FOUND, UNKNOWN_PLAYER, raise_error
)
from .events import EventSink, OutboundEventType, create_game_event
from .models import ActionResult, Participant, PendingAction
from .pending import PendingActionCoordinator
from .rules import RuleConfig, default_rules
from .scheduling import AsyncioScheduler, Scheduler
from .turns import TurnScheduler
from .validate import (
    parse_card, validate_draw, validate_insert_bomb, validate_nope, validate_play_card,
    validate_play_pair
)

logger = logging.getLogger(__name__)


class Match:
    """
    One room's match: phase machine, command intake and elimination.

    Public commands and the pending-action deadline all run under
    `self.lock`, so a room never sees two of them interleave.
    """

    def __init__(
        self,
        room_id: str,
        rules: Optional[RuleConfig] = None,
        sink: Optional[EventSink] = None,
        scheduler: Optional[Scheduler] = None,
        rng: Optional[random.Random] = None,
    ):
        self.room_id = room_id
        self.rules = rules or default_rules
        self.sink = sink or EventSink()
        self.scheduler = scheduler or AsyncioScheduler()
        self.rng = rng or random.Random(self.rules.seed)
        self.lock = threading.RLock()

        self.participants: Dict[str, Participant] = {}  # join order
        self.phase = PHASE_WAITING
        self.winner_id: Optional[str] = None
        self.defusing_player_id: Optional[str] = None
        self.top_card_public: Optional[Card] = None
        self.version = 0

        self.deck = DeckManager(self.rng)
        self.turns = TurnScheduler(self.is_alive)
        self.effects = CardEffectResolver(self)
        self.pending = PendingActionCoordinator(
            room_id, self.scheduler, self.rules.nope_window_seconds,
            self.lock, self.sink, self.deck, self._on_pending_settled
        )

    # ------------------------------------------------------------------ queries

    def is_alive(self, player_id: str) -> bool:
        player = self.participants.get(player_id)
        return player is not None and player.alive

    def alive_ids(self) -> List[str]:
        return [pid for pid, p in self.participants.items() if p.alive]

    def current_player_id(self) -> Optional[str]:
        if self.phase != PHASE_PLAYING:
            return None
        return self.turns.current_participant()

    def total_cards(self) -> int:
        """Hands + deck + discard; constant within a round."""
        return self.deck.card_count() + sum(len(p.hand) for p in self.participants.values())

    # ----------------------------------------------------------------- commands

    def _run(self, command: Callable[[], None]) -> ActionResult:
        with self.lock:
            try:
                command()
            except GameError as e:
                logger.debug(f"[{self.room_id}] rejected: {e}")
                return ActionResult.error(e.code, e.message)
            self._touch()
            return ActionResult.ok()

    def join(self, player_id: str, name: str) -> ActionResult:
        def command():
            if player_id in self.participants:
                raise_error(ALREADY_JOINED, "Already in this room")
            if len(self.participants) >= self.rules.max_players:
                raise_error(ROOM_FULL, "Room is full")
            player = Participant(id=player_id, name=name)
            self.participants[player_id] = player
            self.turns.add_participant(player_id)
            if self.phase == PHASE_PLAYING:
                player.hand = self.deck.deal_hands([self.rules.hand_size], self.rules.starting_defuses)[0]
                if self.deck.relocations:
                    self.top_card_public = None
            logger.info(f"[{self.room_id}] {name} ({player_id}) joined")
            self._broadcast(OutboundEventType.PLAYER_JOINED, player_id=player_id, name=name)
            self._recompute()
        return self._run(command)

    def leave(self, player_id: str) -> ActionResult:
        def command():
            player = self.participants.pop(player_id, None)
            if player is None:
                raise_error(UNKNOWN_PLAYER, "Player not found")
            if self.defusing_player_id == player_id:
                self.defusing_player_id = None
                self.top_card_public = None
            if self.pending.active and self.pending.pending.actor_id == player_id:
                self.pending.cancel(CANCEL_ACTOR_LEFT)
            was_current = self.turns.remove_participant(player_id)
            logger.info(f"[{self.room_id}] {player.name} ({player_id}) left")
            self._broadcast(OutboundEventType.PLAYER_LEFT, player_id=player_id)
            self._recompute(force_heal=was_current)
        return self._run(command)

    def play_card(self, player_id: str, card: Union[Card, str]) -> ActionResult:
        def command():
            played = parse_card(card)
            player, effect_card, cloned_from = validate_play_card(self, player_id, played)
            player.take(played)
            self.deck.discard(played, acting_as=effect_card)
            self._broadcast(
                OutboundEventType.CARD_PLAYED,
                player_id=player_id,
                card=played.value,
                cloned_from=cloned_from.value if cloned_from else None,
            )
            self.pending.open(
                actor_id=player_id,
                display_card=played,
                effect=effect_for(effect_card),
                effect_card=effect_card,
                cloned_from=cloned_from,
            )
        return self._run(command)

    def play_pair(self, player_id: str, card: Union[Card, str], target_id: str) -> ActionResult:
        def command():
            played = parse_card(card)
            player = validate_play_pair(self, player_id, played, target_id)
            for _ in range(2):
                player.take(played)
                self.deck.discard(played)
            self._broadcast(
                OutboundEventType.CARD_PLAYED,
                player_id=player_id, card=played.value, count=2, target_id=target_id
            )
            self.pending.open(
                actor_id=player_id,
                display_card=played,
                effect=effect_for(played),
                pair_target_id=target_id,
            )
        return self._run(command)

    def play_nope(self, player_id: str) -> ActionResult:
        def command():
            player = validate_nope(self, player_id)
            self.pending.accept_counterplay(player)
        return self._run(command)

    def draw_card(self, player_id: str) -> ActionResult:
        def command():
            validate_draw(self, player_id)
            self.effects.resolve_draw(player_id, from_bottom=False)
        return self._run(command)

    def insert_bomb(self, player_id: str, index: int, make_public: bool = False) -> ActionResult:
        def command():
            player = validate_insert_bomb(self, player_id)
            self.effects.finish_defuse(player, index, make_public)
        return self._run(command)

    def restart(self, player_id: Optional[str] = None) -> ActionResult:
        def command():
            if player_id is not None and player_id not in self.participants:
                raise_error(UNKNOWN_PLAYER, "Player not found")
            if len(self.participants) < self.rules.min_players:
                self._to_waiting()
            else:
                self._start_round()
        return self._run(command)

    # ------------------------------------------------------- turn flow, phases

    def end_turn_slot(self):
        """Spend one slot of the current player; ends the round if nobody can follow."""
        if self.phase != PHASE_PLAYING or self.defusing_player_id:
            return
        alive = self.alive_ids()
        if len(alive) <= 1:
            self.end_round(alive[0] if alive else None)
            return
        if not self.turns.consume_one_turn():
            self.end_round(None)

    def eliminate(self, player: Participant):
        """The current player drew a bomb with nothing to neutralize it."""
        player.alive = False
        self.deck.discard(Card.BOMB)
        self.turns.clear_debt(player.id)
        logger.info(f"[{self.room_id}] {player.name} ({player.id}) eliminated")
        self._broadcast(OutboundEventType.PLAYER_ELIMINATED, player_id=player.id)
        alive = self.alive_ids()
        if len(alive) <= 1:
            self.end_round(alive[0] if alive else None)
            return
        if not self.turns.end_current_turn():
            self.end_round(None)

    def end_round(self, winner_id: Optional[str]):
        self.phase = PHASE_ENDED
        self.winner_id = winner_id
        self._clear_round_state()
        logger.info(f"[{self.room_id}] round ended, winner: {winner_id}")
        self._broadcast(OutboundEventType.ROUND_ENDED, winner_id=winner_id)

    def _clear_round_state(self):
        self.pending.clear()
        self.defusing_player_id = None
        self.top_card_public = None
        self.deck.clear()
        self.turns.extra_turn_debt = {}
        self.turns.turns_remaining = 0

    def _to_waiting(self):
        if self.phase != PHASE_WAITING:
            logger.info(f"[{self.room_id}] not enough players, back to waiting")
        self.phase = PHASE_WAITING
        self.winner_id = None
        self._clear_round_state()
        for player in self.participants.values():
            player.hand = []
            player.alive = True
        self.turns.reset(list(self.participants))

    def _start_round(self):
        self.pending.clear()
        self.deck.build(self.rules.deck_composition)
        self.defusing_player_id = None
        self.top_card_public = None
        self.winner_id = None

        players = list(self.participants.values())
        hands = self.deck.deal_hands([self.rules.hand_size] * len(players), self.rules.starting_defuses)
        for player, hand in zip(players, hands):
            player.alive = True
            player.hand = hand

        self.turns.reset([p.id for p in players])
        self.phase = PHASE_PLAYING
        self.turns.start()
        first = self.turns.current_participant()
        logger.info(f"[{self.room_id}] round started with {len(players)} players, {first} goes first")
        self._broadcast(
            OutboundEventType.ROUND_STARTED,
            players=[p.id for p in players], first_player_id=first
        )

    def _recompute(self, force_heal: bool = False):
        """Re-derive the phase after a participant-count change or an elimination."""
        if len(self.participants) < self.rules.min_players:
            self._to_waiting()
            return
        if self.phase == PHASE_WAITING:
            self._start_round()
            return
        if self.phase == PHASE_PLAYING:
            alive = self.alive_ids()
            if len(alive) <= 1:
                self.end_round(alive[0] if alive else None)
                return
            if not self.turns.heal(force=force_heal):
                self.end_round(None)

    def _on_pending_settled(self, action: PendingAction, resolved: bool):
        if resolved and self.phase == PHASE_PLAYING:
            try:
                self.effects.resolve(action)
            except DeckEmpty as e:
                self.sink.send_to(self.room_id, action.actor_id, create_game_event(
                    OutboundEventType.ERROR, code=e.code, message=e.message
                ))
        self._touch()

    def _broadcast(self, event_type: OutboundEventType, **data):
        self.sink.broadcast(self.room_id, create_game_event(event_type, **data))

    def _touch(self):
        self.version += 1
        self.sink.state_changed(self.room_id)


class KaboomEngine:
    """Registry of independent rooms; create_room returns the existing room if there is one."""

    def __init__(
        self,
        rules: Optional[RuleConfig] = None,
        sink: Optional[EventSink] = None,
        scheduler: Optional[Scheduler] = None,
    ):
        self.rules = rules or default_rules
        self.sink = sink or EventSink()
        self.scheduler = scheduler or AsyncioScheduler()
        self.rooms: Dict[str, Match] = {}
        self._rooms_lock = threading.Lock()

    def create_room(self, room_id: str) -> Match:
        with self._rooms_lock:
            if room_id not in self.rooms:
                self.rooms[room_id] = Match(room_id, self.rules, self.sink, self.scheduler)
                logger.info(f"Room {room_id} created")
            return self.rooms[room_id]

    def get_room(self, room_id: str) -> Optional[Match]:
        return self.rooms.get(room_id)

    def remove_room(self, room_id: str):
        with self._rooms_lock:
            match = self.rooms.pop(room_id, None)
        if match is not None:
            with match.lock:
                match.pending.clear()
            logger.info(f"Room {room_id} removed")

    def join(self, room_id: str, player_id: str, name: str) -> ActionResult:
        return self.create_room(room_id).join(player_id, name)

    def leave(self, room_id: str, player_id: str) -> ActionResult:
        match = self.get_room(room_id)
        if match is None:
            return ActionResult.error(ROOM_NOT_FOUND, "Room not found")
        result = match.leave(player_id)
        if not match.participants:
            self.remove_room(room_id)
        return result
