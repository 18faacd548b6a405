"""
Tests for the counter-play window.
"""

import pytest

from conftest import WINDOW, rig, settle
from kaboom_engine.constants import CANCEL_NOPED, Card
from kaboom_engine.errors import (
    ACTION_PENDING, CARD_NOT_HELD, NOTHING_TO_NOPE, PLAYER_ELIMINATED
)
from kaboom_engine.events import OutboundEventType


@pytest.fixture
def skip_ready(two_players):
    return rig(
        two_players,
        hands={"alice": [Card.SKIP, Card.NOPE], "bob": [Card.NOPE, Card.NOPE, Card.NOPE]},
        deck=[Card.PLAIN] * 5,
    )


def test_unanswered_action_resolves_after_window(skip_ready, clock, sink):
    assert skip_ready.play_card("alice", Card.SKIP).success
    assert skip_ready.pending.active
    assert clock.advance(WINDOW - 0.1) == 0
    assert skip_ready.pending.active

    assert settle(clock) == 1
    assert not skip_ready.pending.active
    assert skip_ready.current_player_id() == "bob"
    assert len(sink.of_type(OutboundEventType.ACTION_RESOLVED)) == 1


@pytest.mark.parametrize("nopes,resolved", [(0, True), (1, False), (2, True), (3, False)])
def test_nope_parity(skip_ready, clock, sink, nopes, resolved):
    total = skip_ready.total_cards()
    assert skip_ready.play_card("alice", Card.SKIP).success
    for _ in range(nopes):
        assert skip_ready.play_nope("bob").success
    assert skip_ready.pending.pending.nope_count == nopes
    settle(clock)

    assert not skip_ready.pending.active
    assert skip_ready.current_player_id() == ("bob" if resolved else "alice")
    assert skip_ready.total_cards() == total
    assert skip_ready.deck.discard_count == 1 + nopes
    if not resolved:
        cancelled = sink.of_type(OutboundEventType.ACTION_CANCELLED)
        assert cancelled[-1].data["reason"] == CANCEL_NOPED


def test_each_nope_restarts_the_full_window(skip_ready, clock):
    assert skip_ready.play_card("alice", Card.SKIP).success
    clock.advance(WINDOW * 0.75)
    assert skip_ready.play_nope("bob").success
    assert skip_ready.pending.pending.resolve_at == pytest.approx(clock.now() + WINDOW)

    clock.advance(WINDOW * 0.75)
    assert skip_ready.pending.active
    clock.advance(WINDOW * 0.3)
    assert not skip_ready.pending.active
    assert skip_ready.current_player_id() == "alice"


def test_superseded_deadline_never_fires(skip_ready, clock):
    assert skip_ready.play_card("alice", Card.SKIP).success
    assert skip_ready.play_nope("bob").success
    assert skip_ready.play_nope("bob").success
    assert clock.pending_count == 1
    assert settle(clock) == 1


def test_actor_may_nope_own_action(skip_ready, clock):
    assert skip_ready.play_card("alice", Card.SKIP).success
    assert skip_ready.play_nope("alice").success
    settle(clock)
    assert skip_ready.current_player_id() == "alice"


def test_turn_commands_blocked_while_pending(skip_ready):
    assert skip_ready.play_card("alice", Card.SKIP).success
    result = skip_ready.draw_card("alice")
    assert result.error_code == ACTION_PENDING
    assert skip_ready.draw_card("bob").error_code == ACTION_PENDING


def test_nope_without_pending_action(skip_ready):
    assert skip_ready.play_nope("bob").error_code == NOTHING_TO_NOPE


def test_nope_requires_the_card(skip_ready):
    skip_ready.participants["bob"].hand = [Card.PLAIN]
    assert skip_ready.play_card("alice", Card.SKIP).success
    assert skip_ready.play_nope("bob").error_code == CARD_NOT_HELD


def test_eliminated_player_cannot_nope(three_players):
    match = rig(
        three_players,
        hands={"alice": [Card.SKIP], "bob": [Card.NOPE], "carol": [Card.PLAIN]},
        deck=[Card.PLAIN] * 3,
    )
    match.participants["bob"].alive = False
    assert match.play_card("alice", Card.SKIP).success
    assert match.play_nope("bob").error_code == PLAYER_ELIMINATED


def test_pending_summary_is_public(skip_ready, sink):
    assert skip_ready.play_card("alice", Card.SKIP).success
    event = sink.of_type(OutboundEventType.ACTION_PENDING)[-1]
    assert event.data["actor_id"] == "alice"
    assert event.data["effect"] == "skip"
    assert event.data["nope_count"] == 0
