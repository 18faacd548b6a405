"""
Shared fixtures: a recording sink, a manual clock and rigged matches.
"""

import random
from collections import deque
from typing import List, Optional

import pytest

from kaboom_engine.constants import PHASE_PLAYING, Card
from kaboom_engine.engine import Match
from kaboom_engine.events import EventSink, GameEvent, OutboundEventType
from kaboom_engine.rules import create_rules
from kaboom_engine.scheduling import ManualScheduler

WINDOW = 2.0


class RecordingSink(EventSink):
    """Keeps every event so tests can assert on who was told what."""

    def __init__(self):
        self.broadcasts: List[GameEvent] = []
        self.unicasts: List[tuple] = []  # (player_id, event)
        self.state_changes = 0

    def broadcast(self, room_id, event):
        self.broadcasts.append(event)

    def send_to(self, room_id, player_id, event):
        self.unicasts.append((player_id, event))

    def state_changed(self, room_id):
        self.state_changes += 1

    def of_type(self, event_type: OutboundEventType) -> List[GameEvent]:
        return [e for e in self.broadcasts if e.type == event_type]

    def sent_to(self, player_id: str, event_type: Optional[OutboundEventType] = None) -> List[GameEvent]:
        return [
            e for pid, e in self.unicasts
            if pid == player_id and (event_type is None or e.type == event_type)
        ]

    def clear(self):
        self.broadcasts.clear()
        self.unicasts.clear()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def clock():
    return ManualScheduler()


@pytest.fixture
def rules():
    return create_rules(nope_window_seconds=WINDOW, seed=7)


@pytest.fixture
def make_match(sink, clock, rules):
    """Build a match with the given players joined in order (a round auto-starts at two)."""
    def _make(*names, room_id="room-1", match_rules=None):
        match = Match(room_id, match_rules or rules, sink, clock, random.Random(7))
        for name in names:
            assert match.join(name, name.title()).success
        return match
    return _make


def rig(match: Match, hands: dict, deck: List[Card], discard: Optional[List[Card]] = None,
        current: Optional[str] = None):
    """
    Replace hands, deck (bottom first) and discard pile of a playing match.

    The turn pointer goes to `current` (default: first in join order) with one slot.
    """
    assert match.phase == PHASE_PLAYING
    for pid, hand in hands.items():
        match.participants[pid].hand = list(hand)
        match.participants[pid].alive = True
    match.deck.cards = deque(deck)
    match.deck.discard_pile = [(c, c) for c in (discard or [])]
    match.turns.extra_turn_debt = {}
    order = match.turns.turn_order
    match.turns.set_current(order.index(current) if current else 0)
    match.top_card_public = None
    match.defusing_player_id = None
    return match


def settle(clock: ManualScheduler) -> int:
    """Let the counter-play window run out."""
    return clock.advance(WINDOW + 0.01)


@pytest.fixture
def two_players(make_match):
    return make_match("alice", "bob")


@pytest.fixture
def three_players(make_match):
    return make_match("alice", "bob", "carol")
