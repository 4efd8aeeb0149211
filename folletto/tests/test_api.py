"""
Tests for the API layer.

Tests:
- GameService intent dispatch
- Outbound message shapes
- Error notices scoped to the caller
- FastAPI endpoints and the WebSocket channel
"""

import asyncio

import pytest
from fastapi.testclient import TestClient

from ..api.app import ConnectionManager, create_app
from ..api.service import GameService, build_snapshot
from ..engine_core.state import RoomState
from ..engine_core.reducer import Reducer
from ..session import RoomManager
from .conftest import ScriptedRoller


def types_of(messages):
    return [m["type"] for m in messages]


@pytest.fixture
def service(manager) -> GameService:
    return GameService(manager=manager)


@pytest.fixture
def room(service):
    """Room created by connection "host"; returns its code."""
    outcome = service.handle("host", {"type": "createRoom", "playersCount": 3})
    return outcome.room_code


class TestGameService:
    """Tests for GameService."""

    def test_create_room(self, service):
        outcome = service.handle("host", {"type": "createRoom", "playersCount": 9})

        assert outcome.ok
        assert types_of(outcome.direct) == ["roomCreated", "state"]
        assert outcome.direct[0]["payload"] == {"code": outcome.room_code}
        snapshot = outcome.direct[1]["payload"]
        assert snapshot["playerCount"] == 6
        assert snapshot["coins"] == [4] * 6
        assert snapshot["phase"] == "awaiting_roll"
        assert service.room_of("host") == outcome.room_code
        assert outcome.broadcast == []

    def test_join_room(self, service, room):
        outcome = service.handle("guest", {"type": "joinRoom", "code": room.lower()})

        assert outcome.ok
        assert types_of(outcome.direct) == ["state"]
        assert service.room_of("guest") == room

    def test_join_unknown_room(self, service):
        outcome = service.handle("guest", {"type": "joinRoom", "code": "NOPE00"})

        assert not outcome.ok
        assert outcome.direct[0]["payload"]["code"] == "ROOM_NOT_FOUND"
        assert outcome.broadcast == []
        assert service.room_of("guest") is None

    def test_room_intent_before_join(self, service):
        outcome = service.handle("guest", {"type": "roll"})
        assert outcome.direct[0]["payload"]["code"] == "NOT_IN_ROOM"

    @pytest.mark.parametrize("raw", [
        "roll",
        {"type": "fly"},
        {"kind": "roll"},
        {"type": "claimSeat", "seat": "first"},
        {"type": "hostControl", "action": "explode"},
    ])
    def test_invalid_intents(self, service, room, raw):
        outcome = service.handle("host", raw)

        assert types_of(outcome.direct) == ["errorMsg"]
        assert outcome.direct[0]["payload"]["code"] == "INVALID_INTENT"

    def test_ping(self, service):
        outcome = service.handle("anyone", {"type": "ping"})
        assert types_of(outcome.direct) == ["pong"]

    def test_claim_seat_broadcasts(self, service, room):
        outcome = service.handle("host", {"type": "claimSeat", "seat": 0, "nick": "Ada", "avatar": "🦊"})

        assert outcome.room_code == room
        assert types_of(outcome.broadcast) == ["state"]
        assert outcome.broadcast[0]["payload"]["players"][0] == {"nick": "Ada", "avatar": "🦊"}

    def test_turn_broadcasts(self, service, room, roller):
        roller.push((3, 4))
        rolled = service.handle("host", {"type": "roll"})
        assert rolled.broadcast[0]["payload"]["lastRoll"] == {"a": 3, "b": 4, "total": 7}

        confirmed = service.handle("host", {"type": "confirmSum", "sum": "7"})
        assert confirmed.broadcast[0]["payload"]["requiredMove"] == {"type": "deposit", "target": "center"}

        acted = service.handle("host", {"type": "doAction"})
        snapshot = acted.broadcast[0]["payload"]
        assert snapshot["centerCoins"] == 1
        assert snapshot["coins"] == [3, 4, 4]
        assert snapshot["current"] == 1

    def test_rejected_turn_goes_to_caller_only(self, service, room):
        outcome = service.handle("host", {"type": "doAction"})

        assert outcome.broadcast == []
        assert outcome.direct[0]["payload"]["code"] == "NO_PENDING_MOVE"

    def test_game_over_is_broadcast(self, service, room, roller):
        state = service.manager.store.get(room).state
        state.rolls_taken = [7, 8, 8]
        state.coins = [4, 6, 2]

        roller.push((3, 4))
        service.handle("host", {"type": "roll"})
        service.handle("host", {"type": "confirmSum", "sum": 7})
        outcome = service.handle("host", {"type": "doAction"})

        assert types_of(outcome.broadcast) == ["state", "gameOver"]
        assert outcome.broadcast[1]["payload"] == {"winners": [1], "coins": [3, 6, 2]}
        assert outcome.broadcast[0]["payload"]["finished"] is True

    def test_host_controls(self, service, room):
        guest = service.handle("guest", {"type": "joinRoom", "code": room})
        assert guest.ok

        denied = service.handle("guest", {"type": "hostControl", "action": "pause"})
        assert denied.direct[0]["payload"]["code"] == "NOT_HOST"

        paused = service.handle("host", {"type": "hostControl", "action": "pause"})
        assert paused.broadcast[0]["payload"]["paused"] is True

        started = service.handle("host", {"type": "startGame"})
        assert started.broadcast[0]["payload"]["paused"] is False

    def test_disconnect_broadcasts_vacated_seats(self, service, room):
        service.handle("guest", {"type": "joinRoom", "code": room})
        service.handle("guest", {"type": "claimSeat", "seat": 1, "nick": "Bea"})

        outcomes = service.disconnect("guest")

        assert [o.room_code for o in outcomes] == [room]
        assert outcomes[0].broadcast[0]["payload"]["players"][1] is None
        assert service.room_of("guest") is None

    def test_forgotten_room_unbinds_connections(self, service, room):
        service.manager.forget_room(room)

        outcome = service.handle("host", {"type": "roll"})

        assert outcome.direct[0]["payload"]["code"] == "ROOM_NOT_FOUND"
        assert service.room_of("host") is None


class TestSnapshot:

    def test_snapshot_hides_connection_ids(self):
        state = RoomState.create("SNAP01", 3, host_connection_id="secret-host")
        payload = build_snapshot(state).model_dump(by_alias=True)

        assert "secret-host" not in str(payload)
        assert payload["borders"] == {str(n): False for n in (3, 4, 5, 6, 8, 9, 10, 11)}
        assert payload["log"] == ["New game. Everyone has 4 coins."]
        assert payload["grace"] == ["normal"] * 3
        assert payload["lastRoll"] is None
        assert payload["requiredMove"] is None


class TestApp:
    """Tests for the FastAPI application."""

    @pytest.fixture
    def client(self):
        roller = ScriptedRoller([(2, 3)] * 10)
        service = GameService(manager=RoomManager(reducer=Reducer(roller=roller)))
        return TestClient(create_app(service))

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["rooms"] == 0

    def test_unknown_room_snapshot(self, client):
        response = client.get("/api/v1/rooms/nope00")

        assert response.status_code == 404
        assert response.json()["error_code"] == "ROOM_NOT_FOUND"

    def test_room_list_is_not_exposed(self, client):
        assert client.get("/api/v1/rooms").status_code in (404, 405)

    def test_websocket_game_flow(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"type": "createRoom", "playersCount": 4})
            created = ws.receive_json()
            assert created["type"] == "roomCreated"
            code = created["payload"]["code"]
            assert ws.receive_json()["type"] == "state"

            ws.send_json({"type": "claimSeat", "seat": 1, "nick": "Bea"})
            assert ws.receive_json()["payload"]["players"][1]["nick"] == "Bea"

            ws.send_json({"type": "roll"})
            assert ws.receive_json()["payload"]["lastRoll"]["total"] == 5

            ws.send_json({"type": "confirmSum", "sum": 6})
            assert ws.receive_json()["payload"]["log"][0] == "Wrong sum."

            ws.send_text("not json")
            assert ws.receive_json()["payload"]["code"] == "INVALID_INTENT"

            ws.send_json({"type": "ping"})
            assert ws.receive_json()["type"] == "pong"

        response = client.get(f"/api/v1/rooms/{code}")
        assert response.status_code == 200
        assert response.json()["playerCount"] == 4

    def test_binary_frame_is_rejected(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.send_bytes(b"\x00binary")
            reply = ws.receive_json()
            assert reply["type"] == "errorMsg"
            assert reply["payload"]["code"] == "INVALID_INTENT"

            # the socket stays usable
            ws.send_json({"type": "ping"})
            assert ws.receive_json()["type"] == "pong"


class FakeSocket:
    """Stands in for a WebSocket in ConnectionManager tests."""

    def __init__(self, broken: bool = False):
        self.sent = []
        self.broken = broken

    async def send_json(self, payload):
        if self.broken:
            raise RuntimeError("socket closed")
        self.sent.append(payload)


class TestConnectionManager:
    """Fan-out between sockets watching the same room."""

    def test_broadcast_reaches_every_watcher(self):
        connections = ConnectionManager()
        host, guest, stranger = FakeSocket(), FakeSocket(), FakeSocket()
        connections.watch(host, "ROOM01")
        connections.watch(guest, "ROOM01")
        connections.watch(stranger, "ROOM02")

        messages = [{"type": "state", "payload": {"current": 1}}]
        asyncio.run(connections.broadcast("ROOM01", messages))

        assert host.sent == messages
        assert guest.sent == messages
        assert stranger.sent == []

    def test_dead_socket_is_dropped(self):
        connections = ConnectionManager()
        alive, dead = FakeSocket(), FakeSocket(broken=True)
        connections.watch(alive, "ROOM01")
        connections.watch(dead, "ROOM01")

        asyncio.run(connections.broadcast("ROOM01", [{"type": "pong", "payload": None}]))

        assert connections.room_of(dead) is None
        assert connections.active_connections["ROOM01"] == [alive]
        assert len(alive.sent) == 1

    def test_watch_moves_socket_between_rooms(self):
        connections = ConnectionManager()
        ws = FakeSocket()
        connections.watch(ws, "ROOM01")
        connections.watch(ws, "ROOM02")

        assert connections.room_of(ws) == "ROOM02"
        assert "ROOM01" not in connections.active_connections

        connections.disconnect(ws)
        assert connections.active_connections == {}

    def test_two_players_share_a_room(self, service, room):
        """Seat claims by one connection reach the other's socket."""
        connections = ConnectionManager()
        host, guest = FakeSocket(), FakeSocket()
        connections.watch(host, room)
        service.handle("guest", {"type": "joinRoom", "code": room})
        connections.watch(guest, room)

        outcome = service.handle("guest", {"type": "claimSeat", "seat": 1, "nick": "Bea"})
        asyncio.run(connections.broadcast(outcome.room_code, outcome.broadcast))

        for ws in (host, guest):
            assert ws.sent[-1]["payload"]["players"][1]["nick"] == "Bea"
