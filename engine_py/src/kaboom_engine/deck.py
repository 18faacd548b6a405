"""
Draw pile, discard pile and dealing.
"""

import logging
import random
from collections import deque
from typing import Deque, Dict, List, Optional, Tuple

from .constants import Card, create_deck
from .errors import DeckEmpty

logger = logging.getLogger(__name__)


def shuffle_deck(deck: List[Card], rng: Optional[random.Random] = None) -> List[Card]:
    """
    Shuffle a copy of the deck.

    Args:
        deck: Cards to shuffle
        rng: Random source; a seeded one makes the shuffle reproducible

    Returns:
        Shuffled copy of the deck
    """
    deck_copy = list(deck)
    (rng or random).shuffle(deck_copy)
    return deck_copy


class DeckManager:
    """
    Owns the draw pile and the discard pile of one room.

    The draw pile is a deque whose right end is the top. Each discard entry
    keeps the identity the card acted as, so a Clone spent on Attack reads
    as Attack when someone clones the pile again.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()
        self.cards: Deque[Card] = deque()
        self.discard_pile: List[Tuple[Card, Card]] = []  # (card, acting_as)
        self.relocations = 0

    def build(self, composition: Dict[Card, int]) -> List[Card]:
        """Replace the draw pile with a freshly shuffled deck and empty the discard pile."""
        cards = shuffle_deck(create_deck(composition), self.rng)
        self.cards = deque(cards)
        self.discard_pile = []
        self.relocations = 0
        return cards

    def clear(self):
        self.cards.clear()
        self.discard_pile = []
        self.relocations = 0

    def shuffle_in_place(self):
        cards = list(self.cards)
        self.rng.shuffle(cards)
        self.cards = deque(cards)

    def __len__(self) -> int:
        return len(self.cards)

    def draw_top(self) -> Card:
        if not self.cards:
            raise DeckEmpty()
        return self.cards.pop()

    def draw_bottom(self) -> Card:
        if not self.cards:
            raise DeckEmpty()
        return self.cards.popleft()

    def insert_at(self, index: int, card: Card) -> int:
        """Insert card counting from the bottom; index == len(deck) puts it on top. Returns the clamped index."""
        index = max(0, min(int(index), len(self.cards)))
        self.cards.insert(index, card)
        return index

    def is_top_index(self, index: int) -> bool:
        return index == len(self.cards) - 1

    def peek_top(self, n: int) -> List[Card]:
        """Up to n cards nearest the top, top first."""
        n = max(0, min(n, len(self.cards)))
        return [self.cards[-1 - i] for i in range(n)]

    def remove_one(self, card: Card) -> bool:
        try:
            self.cards.remove(card)
        except ValueError:
            return False
        return True

    def discard(self, card: Card, acting_as: Optional[Card] = None):
        self.discard_pile.append((card, acting_as or card))

    def discard_top(self) -> Optional[Card]:
        return self.discard_pile[-1][0] if self.discard_pile else None

    def discard_top_effect(self) -> Optional[Card]:
        """Identity the top discard acted as (differs from the card only for Clones)."""
        return self.discard_pile[-1][1] if self.discard_pile else None

    @property
    def discard_count(self) -> int:
        return len(self.discard_pile)

    def card_count(self) -> int:
        return len(self.cards) + len(self.discard_pile)

    def deal_safe_card(self) -> Optional[Card]:
        """
        Draw from the top, never handing out a Bomb.

        A Bomb that surfaces is moved to the bottom and the draw retried, at
        most len(deck) times. Returns None when no safe card turns up.
        """
        for _ in range(len(self.cards)):
            card = self.cards.pop()
            if card != Card.BOMB:
                return card
            self.cards.appendleft(card)
            self.relocations += 1
        return None

    def deal_hands(self, sizes: List[int], defuses: int = 0) -> List[List[Card]]:
        """
        Deal one hand per entry in sizes.

        Each hand first gets up to `defuses` Defuse cards pulled out of the
        deck, then safe cards until it reaches its size. Bombs pushed to the
        bottom while dealing would make the first draws predictably safe, so
        the deck is reshuffled once afterwards if any relocation happened.
        """
        self.relocations = 0
        hands = []
        for size in sizes:
            hand = []
            for _ in range(min(defuses, size)):
                if not self.remove_one(Card.DEFUSE):
                    break
                hand.append(Card.DEFUSE)
            while len(hand) < size:
                card = self.deal_safe_card()
                if card is None:
                    logger.warning(f"Deck ran out of safe cards while dealing ({len(hand)}/{size})")
                    break
                hand.append(card)
            hands.append(hand)
        if self.relocations:
            logger.debug(f"Reshuffling after {self.relocations} bomb relocation(s) during dealing")
            self.shuffle_in_place()
        return hands
