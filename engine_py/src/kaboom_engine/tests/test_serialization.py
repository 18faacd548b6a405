"""
Tests for per-viewer snapshots.
"""

from conftest import rig
from kaboom_engine.constants import Card
from kaboom_engine.serialization import sanitize_state


def test_snapshot_shows_only_own_hand(two_players):
    match = rig(
        two_players,
        hands={"alice": [Card.SKIP, Card.DEFUSE], "bob": [Card.NOPE]},
        deck=[Card.PLAIN, Card.BOMB],
        discard=[Card.ATTACK],
    )
    state = sanitize_state(match, "alice")

    assert state["viewer_id"] == "alice"
    assert state["hand"] == ["skip", "defuse"]
    assert state["players"] == [
        {"id": "alice", "name": "Alice", "alive": True, "hand_count": 2},
        {"id": "bob", "name": "Bob", "alive": True, "hand_count": 1},
    ]
    assert "nope" not in str(state["players"])
    assert state["deck_count"] == 2
    assert "deck" not in state
    assert state["discard_count"] == 1
    assert state["discard_top"] == "attack"
    assert state["discard_top_effect"] == "attack"
    assert state["current_turn"] == "alice"
    assert state["turns_remaining"] == 1
    assert state["phase"] == "playing"
    assert state["pending_action"] is None
    assert state["top_card_public"] is None


def test_snapshot_for_unknown_viewer_has_no_hand(two_players):
    state = sanitize_state(two_players, None)
    assert state["hand"] == []
    assert len(state["players"]) == 2


def test_snapshot_includes_pending_summary(two_players):
    match = rig(two_players, hands={"alice": [Card.CLONE], "bob": []}, deck=[Card.PLAIN],
                discard=[Card.SKIP])
    assert match.play_card("alice", Card.CLONE).success
    pending = sanitize_state(match, "bob")["pending_action"]
    assert pending["actor_id"] == "alice"
    assert pending["display_card"] == "clone"
    assert pending["cloned_from"] == "skip"
    assert pending["nope_count"] == 0
    assert pending["resolve_at"] > 0


def test_snapshot_marks_public_top_bomb(two_players):
    match = rig(two_players, hands={"alice": [Card.DEFUSE], "bob": []}, deck=[Card.PLAIN, Card.BOMB])
    match.draw_card("alice")
    assert sanitize_state(match, "bob")["defusing_player_id"] == "alice"
    match.insert_bomb("alice", 5, True)
    state = sanitize_state(match, "bob")
    assert state["top_card_public"] == "bomb"
    assert state["defusing_player_id"] is None


def test_waiting_snapshot(make_match):
    match = make_match("alice")
    state = sanitize_state(match, "alice")
    assert state["phase"] == "waiting"
    assert state["current_turn"] is None
    assert state["turns_remaining"] == 0


def test_snapshot_shows_what_a_discarded_clone_acted_as(two_players):
    """A Clone spent on Attack reads as clonable Attack."""
    match = rig(two_players, hands={"alice": [Card.CLONE], "bob": []}, deck=[Card.PLAIN] * 3,
                discard=[Card.ATTACK])
    assert match.play_card("alice", Card.CLONE).success
    state = sanitize_state(match, "bob")
    assert state["discard_top"] == "clone"
    assert state["discard_top_effect"] == "attack"
