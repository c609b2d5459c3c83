import asyncio

import pytest
from starlette.websockets import WebSocketDisconnect

import app.main as main
from app.services.realtime import ConnectionRegistry
from tests.conftest import FakeChannel


def token_of(headers):
    return headers["Authorization"].split(" ", 1)[1]


def test_registry_delivers_to_every_channel_of_a_user():
    registry = ConnectionRegistry()
    first, second, other = FakeChannel(), FakeChannel(), FakeChannel()
    registry.register(1, first)
    registry.register(1, second)
    registry.register(2, other)

    delivered = asyncio.run(registry.send(1, {"event": "notification"}))

    assert delivered == 2
    assert first.events == second.events == [{"event": "notification"}]
    assert other.events == []


def test_registry_send_to_offline_user_is_a_noop():
    registry = ConnectionRegistry()
    assert asyncio.run(registry.send(7, {"event": "notification"})) == 0


def test_registry_drops_dead_channels():
    registry = ConnectionRegistry()
    alive, dead = FakeChannel(), FakeChannel(fail=True)
    registry.register(1, dead)
    registry.register(1, alive)

    assert asyncio.run(registry.send(1, {"event": "x"})) == 1
    assert registry.is_connected(1)
    assert asyncio.run(registry.send(1, {"event": "y"})) == 1
    assert alive.events == [{"event": "x"}, {"event": "y"}]


def test_registry_unregister():
    registry = ConnectionRegistry()
    first, second = FakeChannel(), FakeChannel()
    registry.register(1, first)
    registry.register(1, second)

    registry.unregister(1, first)
    assert registry.is_connected(1)
    registry.unregister(1)
    assert not registry.is_connected(1)
    # Unknown users are ignored
    registry.unregister(99)


def test_websocket_rejects_missing_or_bad_token(client):
    for path in ("/ws", "/ws?token=not-a-jwt"):
        with pytest.raises(WebSocketDisconnect) as exc_info:
            with client.websocket_connect(path):
                pass
        assert exc_info.value.code == 1008


def test_websocket_ping_pong(client, register):
    headers, _ = register("Alice")

    with client.websocket_connect(f"/ws?token={token_of(headers)}") as ws:
        ws.send_json({"event": "ping"})
        assert ws.receive_json() == {"event": "pong"}


def test_follow_is_pushed_to_connected_user(client, register):
    alice_headers, alice_id = register("Alice")
    bob_headers, bob_id = register("Bob")

    with client.websocket_connect(f"/ws?token={token_of(alice_headers)}") as ws:
        response = client.post(f"/api/users/{alice_id}/follow", headers=bob_headers)
        assert response.status_code == 200

        event = ws.receive_json()

    assert event["event"] == "notification"
    assert event["data"]["type"] == "follow"
    assert event["data"]["from"] == bob_id
    assert event["data"]["text"] == "Bob started following you"
    assert event["data"]["read"] is False


def test_push_during_handshake_does_not_drop_the_socket(client, register):
    headers, user_id = register("Alice")
    registry = main.app.state.connections
    sent = []

    async def scenario():
        handshake, gate, listening, closed = (asyncio.Event() for _ in range(4))
        calls = {"n": 0}

        async def receive():
            calls["n"] += 1
            if calls["n"] == 1:
                # Hold the connect message so the endpoint waits inside accept()
                handshake.set()
                await gate.wait()
                return {"type": "websocket.connect"}
            listening.set()
            await closed.wait()
            return {"type": "websocket.disconnect", "code": 1000}

        async def send(message):
            sent.append(message)

        scope = {
            "type": "websocket",
            "asgi": {"version": "3.0"},
            "scheme": "ws",
            "server": ("testserver", 80),
            "client": ("testclient", 50000),
            "root_path": "",
            "path": "/ws",
            "raw_path": b"/ws",
            "query_string": f"token={token_of(headers)}".encode(),
            "headers": [],
            "subprotocols": [],
        }
        task = asyncio.create_task(main.app(scope, receive, send))

        await asyncio.wait_for(handshake.wait(), timeout=5)
        during = await registry.send(user_id, {"event": "notification", "data": {}})
        connected_during = registry.is_connected(user_id)

        gate.set()
        await asyncio.wait_for(listening.wait(), timeout=5)
        after = await registry.send(user_id, {"event": "notification", "data": {}})
        connected_after = registry.is_connected(user_id)

        closed.set()
        await asyncio.wait_for(task, timeout=5)
        return during, connected_during, after, connected_after

    during, connected_during, after, connected_after = asyncio.run(scenario())

    assert (during, connected_during) == (0, False)
    assert (after, connected_after) == (1, True)
    assert [m["type"] for m in sent] == ["websocket.accept", "websocket.send"]
    assert not registry.is_connected(user_id)
