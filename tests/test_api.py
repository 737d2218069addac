import pytest
from fastapi.testclient import TestClient

from main import app


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


def join(websocket, room_id, user_id):
    websocket.send_json({"type": "join-room", "roomId": room_id, "userId": user_id, "userName": user_id})


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_status_starts_empty(client):
    response = client.get("/status")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "rooms": 0, "connections": 0}


def test_unknown_room_returns_404(client):
    response = client.get("/rooms/missing")

    assert response.status_code == 404
    assert "missing" in response.json()["message"]


def test_websocket_call_flow(client):
    with client.websocket_connect("/ws") as alice:
        alice_id = alice.receive_json()["connectionId"]
        join(alice, "r1", "A")
        assert alice.receive_json() == {
            "type": "room-users",
            "users": [{"userId": "A", "userName": "A", "connectionId": alice_id}],
        }

        with client.websocket_connect("/ws") as bob:
            bob_id = bob.receive_json()["connectionId"]
            join(bob, "r1", "B")
            assert alice.receive_json() == {"type": "user-joined", "userId": "B", "userName": "B", "connectionId": bob_id}
            assert len(bob.receive_json()["users"]) == 2

            rooms = client.get("/rooms").json()
            assert rooms == [{"roomId": "r1", "memberCount": 2, "callActive": False, "creatorUserId": None}]

            alice.send_json({"type": "start-call", "roomId": "r1", "userId": "A", "userName": "A"})
            assert bob.receive_json()["type"] == "incoming-call"

            bob.send_json({"type": "accept-call", "roomId": "r1", "userId": "B", "userName": "B"})
            assert alice.receive_json() == {"type": "call-accepted", "userId": "B", "userName": "B"}

            offer = {"type": "offer", "sdp": "v=0"}
            alice.send_json({"type": "offer", "to": bob_id, "roomId": "r1", "from": "A", "offer": offer})
            relayed = bob.receive_json()
            assert relayed["offer"] == offer
            assert relayed["from"] == alice_id

            detail = client.get("/rooms/r1").json()
            assert detail["callActive"] is True
            assert detail["creatorUserId"] == "A"
            assert {m["connectionId"] for m in detail["members"]} == {alice_id, bob_id}

            alice.send_text("garbage")
            assert alice.receive_json()["code"] == "invalid-message"

        assert alice.receive_json() == {"type": "user-left", "userId": "B", "userName": "B"}
        assert client.get("/status").json() == {"status": "ok", "rooms": 1, "connections": 1}
