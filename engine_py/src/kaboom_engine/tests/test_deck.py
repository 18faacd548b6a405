"""
Tests for the draw pile, discard pile and dealing.
"""

import random
from collections import deque

import pytest

from kaboom_engine.constants import DEFAULT_DECK_COMPOSITION, Card, create_deck
from kaboom_engine.deck import DeckManager, shuffle_deck
from kaboom_engine.errors import DECK_EMPTY, DeckEmpty


def make_deck(cards):
    deck = DeckManager(random.Random(1))
    deck.cards = deque(cards)
    return deck


def test_create_deck_matches_composition():
    deck = create_deck(DEFAULT_DECK_COMPOSITION)
    assert len(deck) == sum(DEFAULT_DECK_COMPOSITION.values())
    assert deck.count(Card.BOMB) == DEFAULT_DECK_COMPOSITION[Card.BOMB]


def test_shuffle_is_reproducible_with_seed():
    deck = create_deck(DEFAULT_DECK_COMPOSITION)
    assert shuffle_deck(deck, random.Random(3)) == shuffle_deck(deck, random.Random(3))
    assert sorted(shuffle_deck(deck, random.Random(3))) == sorted(deck)


def test_draw_top_and_bottom():
    deck = make_deck([Card.PLAIN, Card.SKIP, Card.BOMB])
    assert deck.draw_top() == Card.BOMB
    assert deck.draw_bottom() == Card.PLAIN
    assert len(deck) == 1


def test_draw_from_empty_deck():
    deck = make_deck([])
    with pytest.raises(DeckEmpty) as exc:
        deck.draw_top()
    assert exc.value.code == DECK_EMPTY
    with pytest.raises(DeckEmpty):
        deck.draw_bottom()


@pytest.mark.parametrize("index,expected", [(-5, 0), (0, 0), (2, 2), (3, 3), (99, 3)])
def test_insert_at_clamps(index, expected):
    deck = make_deck([Card.PLAIN, Card.PLAIN, Card.PLAIN])
    placed = deck.insert_at(index, Card.BOMB)
    assert placed == expected
    assert list(deck.cards)[expected] == Card.BOMB
    assert len(deck) == 4


def test_insert_at_top_is_top_index():
    deck = make_deck([Card.PLAIN, Card.SKIP])
    placed = deck.insert_at(len(deck), Card.BOMB)
    assert deck.is_top_index(placed)
    assert deck.draw_top() == Card.BOMB


def test_peek_top_returns_top_first():
    deck = make_deck([Card.PLAIN, Card.SKIP, Card.ATTACK, Card.BOMB])
    assert deck.peek_top(3) == [Card.BOMB, Card.ATTACK, Card.SKIP]
    assert deck.peek_top(10) == [Card.BOMB, Card.ATTACK, Card.SKIP, Card.PLAIN]
    assert len(deck) == 4


def test_discard_remembers_acting_identity():
    deck = make_deck([])
    assert deck.discard_top() is None
    deck.discard(Card.ATTACK)
    deck.discard(Card.CLONE, acting_as=Card.ATTACK)
    assert deck.discard_top() == Card.CLONE
    assert deck.discard_top_effect() == Card.ATTACK
    assert deck.discard_count == 2


def test_deal_safe_card_moves_bombs_to_bottom():
    deck = make_deck([Card.PLAIN, Card.BOMB, Card.BOMB])
    assert deck.deal_safe_card() == Card.PLAIN
    assert deck.relocations == 2
    assert list(deck.cards) == [Card.BOMB, Card.BOMB]


def test_deal_safe_card_gives_up_on_all_bombs():
    deck = make_deck([Card.BOMB, Card.BOMB])
    assert deck.deal_safe_card() is None
    assert len(deck) == 2


def test_dealt_hands_never_hold_bombs():
    deck = DeckManager(random.Random(5))
    deck.build(DEFAULT_DECK_COMPOSITION)
    total = len(deck)
    hands = deck.deal_hands([5] * 5, defuses=1)
    for hand in hands:
        assert len(hand) == 5
        assert Card.BOMB not in hand
        assert hand.count(Card.DEFUSE) >= 1
    assert len(deck) + sum(len(h) for h in hands) == total
    assert list(deck.cards).count(Card.BOMB) == DEFAULT_DECK_COMPOSITION[Card.BOMB]


def test_deal_reshuffles_only_after_relocation(monkeypatch):
    deck = make_deck([Card.PLAIN, Card.PLAIN, Card.SKIP, Card.SKIP])
    calls = []
    monkeypatch.setattr(deck, "shuffle_in_place", lambda: calls.append(1))
    deck.deal_hands([2])
    assert calls == []

    deck = make_deck([Card.PLAIN, Card.PLAIN, Card.SKIP, Card.BOMB])
    monkeypatch.setattr(deck, "shuffle_in_place", lambda: calls.append(1))
    deck.deal_hands([2])
    assert deck.relocations == 1
    assert calls == [1]
