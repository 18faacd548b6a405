#!/usr/bin/env python3
"""
Smoke check against a running backend: two clients join one room and the
round must start.

    python engine_py/ws_smoke.py [ws://localhost:8000/ws]
"""

import asyncio
import json
import sys

import websockets


async def wait_for(websocket, event_type, limit=20):
    for _ in range(limit):
        message = json.loads(await websocket.recv())
        if message["type"] == event_type:
            return message
    raise RuntimeError(f"no {event_type} within {limit} messages")


async def smoke(uri: str) -> bool:
    print(f"Connecting to {uri}...")
    try:
        async with websockets.connect(uri) as alice, websockets.connect(uri) as bob:
            await alice.send(json.dumps({"type": "join", "room_id": "smoke", "name": "Alice"}))
            joined = await wait_for(alice, "join_success")
            print(f"Alice joined as {joined['data']['player_id']}")

            await bob.send(json.dumps({"type": "join", "room_id": "smoke", "name": "Bob"}))
            started = await wait_for(bob, "round_started")
            print(f"Round started, first player: {started['data']['first_player_id']}")

            state = (await wait_for(bob, "state"))["data"]["state"]
            print(f"Bob holds {state['hand']}, deck has {state['deck_count']} cards")
    except (OSError, websockets.exceptions.WebSocketException, RuntimeError) as e:
        print(f"Smoke check failed: {e}")
        return False

    print("Smoke check passed")
    return True


if __name__ == "__main__":
    target = sys.argv[1] if len(sys.argv) > 1 else "ws://localhost:8000/ws"
    sys.exit(0 if asyncio.run(smoke(target)) else 1)
