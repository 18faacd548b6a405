"""
Game rule configuration and validation.
"""

import os
from typing import Dict, Optional

from pydantic import BaseModel, Field, field_validator

from .constants import Card, DEFAULT_DECK_COMPOSITION


class RuleConfig(BaseModel):
    """Configuration for game rules and settings."""

    min_players: int = Field(
        default=2,
        ge=2,
        le=10,
        description="Minimum number of connected players required to play"
    )
    max_players: int = Field(
        default=10,
        ge=2,
        le=10,
        description="Maximum number of players allowed in a room"
    )
    nope_window_seconds: float = Field(
        default=2.0,
        gt=0,
        le=30,
        description="Counter-play window, restarted on every Nope"
    )
    hand_size: int = Field(
        default=5,
        ge=1,
        le=10,
        description="Cards in a freshly dealt hand, Defuses included"
    )
    starting_defuses: int = Field(
        default=1,
        ge=0,
        le=3,
        description="Defuse cards handed to each player out of the deck"
    )
    see_future_count: int = Field(
        default=3,
        ge=1,
        le=5,
        description="Cards revealed by See the Future"
    )
    deck_composition: Dict[Card, int] = Field(
        default_factory=lambda: dict(DEFAULT_DECK_COMPOSITION),
        description="Fixed count per card identity"
    )
    seed: Optional[int] = Field(
        default=None,
        description="Optional RNG seed for reproducible rounds"
    )

    @field_validator('max_players')
    @classmethod
    def validate_max_players(cls, v, info):
        """Validate maximum players doesn't drop below minimum."""
        min_players = info.data.get('min_players', 2)
        if v < min_players:
            raise ValueError(f'max_players ({v}) must be >= min_players ({min_players})')
        return v

    @field_validator('deck_composition')
    @classmethod
    def validate_deck_composition(cls, v):
        for card, count in v.items():
            if count < 0:
                raise ValueError(f'negative count for {card.value}: {count}')
        return v


# Default configuration instance
default_rules = RuleConfig()


def create_rules(**overrides) -> RuleConfig:
    """Create a RuleConfig with optional overrides."""
    config_dict = default_rules.model_dump()
    config_dict.update(overrides)
    return RuleConfig(**config_dict)


def rules_from_env() -> RuleConfig:
    """Build rules from KABOOM_* environment variables, falling back to defaults."""
    overrides = {}
    if os.getenv("KABOOM_NOPE_WINDOW"):
        overrides["nope_window_seconds"] = float(os.getenv("KABOOM_NOPE_WINDOW"))
    if os.getenv("KABOOM_MIN_PLAYERS"):
        overrides["min_players"] = int(os.getenv("KABOOM_MIN_PLAYERS"))
    if os.getenv("KABOOM_MAX_PLAYERS"):
        overrides["max_players"] = int(os.getenv("KABOOM_MAX_PLAYERS"))
    if os.getenv("KABOOM_HAND_SIZE"):
        overrides["hand_size"] = int(os.getenv("KABOOM_HAND_SIZE"))
    if os.getenv("KABOOM_SEED"):
        overrides["seed"] = int(os.getenv("KABOOM_SEED"))
    return create_rules(**overrides)
