"""Game constants and utilities"""

from enum import Enum
from typing import Dict, List


class Card(str, Enum):
    """Every card identity in the game. Cards are fungible within an identity."""
    BOMB = "bomb"
    DEFUSE = "defuse"
    SKIP = "skip"
    ATTACK = "attack"
    SEE_FUTURE = "see_future"
    DRAW_BOTTOM = "draw_bottom"
    SHUFFLE = "shuffle"
    CLONE = "clone"
    NOPE = "nope"
    TACO = "taco"
    MELON = "melon"
    BEARD = "beard"
    PLAIN = "plain"


class Effect(str, Enum):
    """Effects a pending action can carry once it settles."""
    SKIP = "skip"
    ATTACK = "attack"
    SEE_FUTURE = "see_future"
    DRAW_BOTTOM = "draw_bottom"
    SHUFFLE = "shuffle"
    STEAL = "steal"


PHASE_WAITING = 'waiting'
PHASE_PLAYING = 'playing'
PHASE_ENDED = 'ended'

PAIR_CARDS = frozenset({Card.TACO, Card.MELON, Card.BEARD})

# Cards playable through play_card, each mapped to the effect it carries
ACTION_EFFECTS: Dict[Card, Effect] = {
    Card.SKIP: Effect.SKIP,
    Card.ATTACK: Effect.ATTACK,
    Card.SEE_FUTURE: Effect.SEE_FUTURE,
    Card.DRAW_BOTTOM: Effect.DRAW_BOTTOM,
    Card.SHUFFLE: Effect.SHUFFLE,
}

CLONABLE_CARDS = frozenset(ACTION_EFFECTS)

DEFAULT_DECK_COMPOSITION: Dict[Card, int] = {
    Card.BOMB: 4,
    Card.DEFUSE: 6,
    Card.SKIP: 4,
    Card.ATTACK: 4,
    Card.SEE_FUTURE: 4,
    Card.DRAW_BOTTOM: 4,
    Card.SHUFFLE: 4,
    Card.CLONE: 4,
    Card.NOPE: 5,
    Card.TACO: 4,
    Card.MELON: 4,
    Card.BEARD: 4,
    Card.PLAIN: 6,
}

# Steal outcomes reported in steal_result
STEAL_OK = 'ok'
STEAL_ACTOR_GONE = 'actor_gone'
STEAL_TARGET_GONE = 'target_gone'
STEAL_TARGET_ELIMINATED = 'target_eliminated'
STEAL_TARGET_EMPTY = 'target_empty'

# Reasons attached to action_cancelled
CANCEL_NOPED = 'noped'
CANCEL_ACTOR_LEFT = 'actor_left'


def create_deck(composition: Dict[Card, int]) -> List[Card]:
    deck = []
    for card, count in composition.items():
        deck.extend([Card(card)] * count)
    return deck


def effect_for(card: Card) -> Effect:
    """Effect carried by a played card; pair cards steal."""
    if card in PAIR_CARDS:
        return Effect.STEAL
    return ACTION_EFFECTS[card]


def is_pair_card(card: Card) -> bool:
    return card in PAIR_CARDS
