"""
Precondition checks for match commands.

Every check raises GameError and leaves the match untouched, so a command
either passes all of its checks or changes nothing.
"""

from typing import TYPE_CHECKING, Optional, Tuple, Union

from .constants import ACTION_EFFECTS, CLONABLE_CARDS, PHASE_PLAYING, Card, is_pair_card
from .errors import (
    ACTION_PENDING, CARD_NOT_HELD, CARD_NOT_PLAYABLE, DEFUSE_PENDING, INVALID_TARGET,
    NOT_DEFUSING, NOT_YOUR_TURN, NOTHING_TO_CLONE, NOTHING_TO_NOPE, PLAYER_ELIMINATED,
    UNKNOWN_PLAYER, WRONG_PHASE, raise_error
)
from .models import Participant

if TYPE_CHECKING:
    from .engine import Match


def parse_card(value: Union[Card, str]) -> Card:
    try:
        return Card(value)
    except ValueError:
        raise_error(CARD_NOT_PLAYABLE, f"Unknown card: {value}")


def require_participant(match: 'Match', player_id: str) -> Participant:
    player = match.participants.get(player_id)
    if not player:
        raise_error(UNKNOWN_PLAYER, "Player not found")
    return player


def require_playing(match: 'Match'):
    if match.phase != PHASE_PLAYING:
        raise_error(WRONG_PHASE, "The game is not in progress")


def validate_turn_action(match: 'Match', player_id: str) -> Participant:
    """Checks shared by every command that spends the current player's turn."""
    player = require_participant(match, player_id)
    require_playing(match)
    if match.pending.active:
        raise_error(ACTION_PENDING, "An action is pending; only Nope can be played now")
    if match.defusing_player_id:
        raise_error(DEFUSE_PENDING, "Waiting for the bomb to be put back into the deck")
    if not player.alive:
        raise_error(PLAYER_ELIMINATED, "You have been eliminated")
    if match.turns.current_participant() != player_id:
        raise_error(NOT_YOUR_TURN, "Not your turn")
    return player


def validate_play_card(match: 'Match', player_id: str, card: Card) -> Tuple[Participant, Card, Optional[Card]]:
    """
    Validate play_card.

    Returns:
        (player, effect_card, cloned_from): the identity whose effect will
        run, and for a Clone the identity it copies.
    """
    player = validate_turn_action(match, player_id)
    if card == Card.NOPE:
        raise_error(CARD_NOT_PLAYABLE, "Nope can only answer a pending action")
    if is_pair_card(card):
        raise_error(CARD_NOT_PLAYABLE, "Pair cards are played two at a time against a target")
    if card != Card.CLONE and card not in ACTION_EFFECTS:
        raise_error(CARD_NOT_PLAYABLE, f"{card.value} cannot be played")
    if not player.holds(card):
        raise_error(CARD_NOT_HELD, f"You don't hold {card.value}")
    if card != Card.CLONE:
        return player, card, None
    top = match.deck.discard_top_effect()
    if top is None:
        raise_error(NOTHING_TO_CLONE, "The discard pile is empty")
    if top not in CLONABLE_CARDS:
        raise_error(NOTHING_TO_CLONE, f"The top of the discard pile ({top.value}) cannot be cloned")
    return player, top, top


def validate_play_pair(match: 'Match', player_id: str, card: Card, target_id: str) -> Participant:
    player = validate_turn_action(match, player_id)
    if not is_pair_card(card):
        raise_error(CARD_NOT_PLAYABLE, f"{card.value} is not a pair card")
    if not player.holds(card, 2):
        raise_error(CARD_NOT_HELD, f"You need two {card.value} cards")
    if target_id == player_id:
        raise_error(INVALID_TARGET, "You cannot steal from yourself")
    if target_id not in match.participants:
        raise_error(INVALID_TARGET, "Target not found")
    return player


def validate_nope(match: 'Match', player_id: str) -> Participant:
    player = require_participant(match, player_id)
    require_playing(match)
    if not match.pending.active:
        raise_error(NOTHING_TO_NOPE, "There is no pending action to nope")
    if not player.alive:
        raise_error(PLAYER_ELIMINATED, "You have been eliminated")
    if match.defusing_player_id == player_id:
        raise_error(DEFUSE_PENDING, "Put the bomb back before playing Nope")
    if not player.holds(Card.NOPE):
        raise_error(CARD_NOT_HELD, "You don't hold a Nope")
    return player


def validate_draw(match: 'Match', player_id: str) -> Participant:
    return validate_turn_action(match, player_id)


def validate_insert_bomb(match: 'Match', player_id: str) -> Participant:
    player = require_participant(match, player_id)
    require_playing(match)
    if match.pending.active:
        raise_error(ACTION_PENDING, "An action is pending")
    if match.defusing_player_id != player_id:
        raise_error(NOT_DEFUSING, "You are not defusing a bomb")
    if not player.holds(Card.BOMB):
        raise_error(CARD_NOT_HELD, "You don't hold the bomb")
    return player
