"""Game models and data structures"""

from dataclasses import dataclass, field
from typing import List, Optional

from .constants import Card, Effect


@dataclass
class Participant:
    id: str
    name: str
    hand: List[Card] = field(default_factory=list)  # insertion order
    alive: bool = True

    def holds(self, card: Card, count: int = 1) -> bool:
        return self.hand.count(card) >= count

    def take(self, card: Card) -> Card:
        """Remove one copy of card from the hand."""
        self.hand.remove(card)
        return card


@dataclass
class PendingAction:
    actor_id: str
    display_card: Card
    effect: Effect
    effect_card: Optional[Card] = None  # None for pair steals
    cloned_from: Optional[Card] = None
    pair_target_id: Optional[str] = None
    nope_count: int = 0
    resolve_at: float = 0.0
    generation: int = 0

    @property
    def cancelled(self) -> bool:
        return self.nope_count % 2 == 1


class ActionResult:
    """Result of a command against a match."""

    def __init__(
        self,
        success: bool,
        error_code: Optional[str] = None,
        error_message: Optional[str] = None
    ):
        self.success = success
        self.error_code = error_code
        self.error_message = error_message

    @classmethod
    def ok(cls) -> 'ActionResult':
        return cls(success=True)

    @classmethod
    def error(cls, error_code: str, error_message: str) -> 'ActionResult':
        return cls(success=False, error_code=error_code, error_message=error_message)

    def __repr__(self):
        if self.success:
            return "ActionResult(ok)"
        return f"ActionResult({self.error_code}: {self.error_message})"
