"""
State serialization and sanitization utilities.
"""

from typing import TYPE_CHECKING, Any, Dict, Optional

from .pending import pending_summary

if TYPE_CHECKING:
    from .engine import Match


def sanitize_state(match: 'Match', viewer_id: Optional[str] = None) -> Dict[str, Any]:
    """
    Sanitize match state for transmission to one client.

    Args:
        match: Match to snapshot
        viewer_id: ID of the participant viewing the state (to show their cards)

    Returns:
        Sanitized state dictionary safe for JSON transmission. Other hands
        appear only as counts and the deck order is never included.
    """
    viewer = match.participants.get(viewer_id) if viewer_id else None
    discard_top = match.deck.discard_top()
    discard_top_effect = match.deck.discard_top_effect()

    return {
        "room_id": match.room_id,
        "version": match.version,
        "viewer_id": viewer_id,
        "hand": [c.value for c in viewer.hand] if viewer else [],
        "players": [serialize_player(p) for p in match.participants.values()],
        "phase": match.phase,
        "current_turn": match.current_player_id(),
        "turns_remaining": match.turns.turns_remaining if match.current_player_id() else 0,
        "deck_count": len(match.deck),
        "discard_count": match.deck.discard_count,
        "discard_top": discard_top.value if discard_top else None,
        "discard_top_effect": discard_top_effect.value if discard_top_effect else None,
        "top_card_public": match.top_card_public.value if match.top_card_public else None,
        "defusing_player_id": match.defusing_player_id,
        "pending_action": pending_summary(match.pending.pending),
        "winner_id": match.winner_id,
    }


def serialize_player(player) -> Dict[str, Any]:
    """Public view of one participant."""
    return {
        "id": player.id,
        "name": player.name,
        "alive": player.alive,
        "hand_count": len(player.hand),
    }
