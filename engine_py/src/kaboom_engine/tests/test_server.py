"""
Tests for the FastAPI app and the websocket protocol.
"""

import pytest
from fastapi.testclient import TestClient

from kaboom_engine.main import app


@pytest.fixture
def client():
    return TestClient(app)


def receive_until(ws, event_type, limit=20):
    """Read messages until one of event_type arrives."""
    for _ in range(limit):
        message = ws.receive_json()
        if message["type"] == event_type:
            return message
    raise AssertionError(f"no {event_type} message within {limit} messages")


def test_root_and_health(client):
    assert client.get("/").json()["message"] == "Kaboom Card Game API"
    health = client.get("/health").json()
    assert health["status"] == "healthy"
    assert "rooms" in health and "connections" in health


def test_join_then_state(client):
    with client.websocket_connect("/ws") as ws:
        ws.send_json({"type": "join", "room_id": "server-solo", "name": "Alice"})
        joined = ws.receive_json()
        assert joined["type"] == "join_success"
        player_id = joined["data"]["player_id"]

        state = receive_until(ws, "state")["data"]["state"]
        assert state["viewer_id"] == player_id
        assert state["phase"] == "waiting"
        assert state["players"][0]["name"] == "Alice"

        ws.send_json({"type": "draw_card"})
        error = receive_until(ws, "error")
        assert error["data"]["code"] == "WRONG_PHASE"

        ws.send_json({"type": "request_state"})
        assert receive_until(ws, "state")["data"]["state"]["room_id"] == "server-solo"


def test_malformed_messages(client):
    with client.websocket_connect("/ws") as ws:
        ws.send_text("{not json")
        assert receive_until(ws, "error")["data"]["code"] == "INVALID_EVENT"

        ws.send_json({"type": "dance"})
        assert receive_until(ws, "error")["data"]["code"] == "INVALID_EVENT"

        ws.send_json({"type": "draw_card"})
        assert receive_until(ws, "error")["data"]["code"] == "ROOM_NOT_FOUND"


def test_second_join_is_rejected(client):
    with client.websocket_connect("/ws") as ws:
        ws.send_json({"type": "join", "room_id": "server-twice", "name": "Alice"})
        receive_until(ws, "state")
        ws.send_json({"type": "join", "room_id": "server-other", "name": "Alice"})
        assert receive_until(ws, "error")["data"]["code"] == "ALREADY_JOINED"


def test_two_players_start_a_round(client):
    with client.websocket_connect("/ws") as alice, client.websocket_connect("/ws") as bob:
        alice.send_json({"type": "join", "room_id": "server-pair", "name": "Alice"})
        alice_id = alice.receive_json()["data"]["player_id"]
        receive_until(alice, "state")

        bob.send_json({"type": "join", "room_id": "server-pair", "name": "Bob"})
        bob_id = bob.receive_json()["data"]["player_id"]
        started = receive_until(bob, "round_started")
        assert started["data"]["first_player_id"] == alice_id

        bob_state = receive_until(bob, "state")["data"]["state"]
        alice_state = receive_until(alice, "state")["data"]["state"]
        assert alice_state["phase"] == "playing"
        assert len(bob_state["hand"]) == 5
        assert "bomb" not in bob_state["hand"]
        assert {p["id"] for p in bob_state["players"]} == {alice_id, bob_id}
        assert all(p["hand_count"] == 5 for p in alice_state["players"])

        bob.send_json({"type": "draw_card"})
        assert receive_until(bob, "error")["data"]["code"] == "NOT_YOUR_TURN"
