import pytest
from fastapi import status
from fastapi.testclient import TestClient
from pymongo.errors import ConnectionFailure
from starlette.websockets import WebSocketDisconnect

from campuslink.core.auth import ROLE_ADMIN, create_access_token
from campuslink.main import app
from campuslink.services.chat_service import get_chat_service
from campuslink.services.profile_service import get_profile_service
from campuslink.services.report_service import get_report_capture
from campuslink.services.request_service import get_request_lifecycle


def _token(user_id, role=None):
    data = {"sub": user_id}
    if role:
        data["role"] = role
    return create_access_token(data)


def _auth(user_id, role=None):
    return {"Authorization": f"Bearer {_token(user_id, role)}"}


@pytest.fixture
def client(profiles, lifecycle, chats, reports):
    app.dependency_overrides[get_profile_service] = lambda: profiles
    app.dependency_overrides[get_request_lifecycle] = lambda: lifecycle
    app.dependency_overrides[get_chat_service] = lambda: chats
    app.dependency_overrides[get_report_capture] = lambda: reports
    yield TestClient(app)
    app.dependency_overrides.clear()


def _create_profile(client, user_id, **fields):
    body = {"department": "CSE", "year": "3", "bio": "Happy to help", "skills_have": [], "skills_to_learn": []}
    body.update(fields)
    response = client.post("/api/profiles", json=body, headers=_auth(user_id))
    assert response.status_code == 201
    return response.json()


def _open_chat(client, sender="alice", receiver="bob"):
    response = client.post("/api/mentor-requests", json={"receiver_id": receiver}, headers=_auth(sender))
    assert response.status_code == 201
    request_id = response.json()["id"]
    response = client.post(
        f"/api/mentor-requests/{request_id}/respond", json={"accept": True}, headers=_auth(receiver)
    )
    assert response.status_code == 200
    return response.json()["chat_room"]["id"]


def test_full_mentorship_flow(client):
    _create_profile(client, "alice", skills_to_learn=["Python"])
    _create_profile(client, "bob", skills_have=["Python Programming", "Photography"])

    response = client.get("/api/mentors/search", headers=_auth("alice"))
    assert response.status_code == 200
    search = response.json()
    assert search["skills"] == ["Python"]
    assert [m["profile"]["id"] for m in search["mentors"]] == ["bob"]
    assert search["mentors"][0]["score"] == 100

    chat_id = _open_chat(client)

    response = client.post(f"/api/chats/{chat_id}/messages", json={"text": "hi bob"}, headers=_auth("alice"))
    assert response.status_code == 201
    response = client.get(f"/api/chats/{chat_id}/messages", headers=_auth("bob"))
    assert [m["text"] for m in response.json()] == ["hi bob"]

    response = client.post(f"/api/chats/{chat_id}/reports", json={"reason": "Testing"}, headers=_auth("bob"))
    assert response.status_code == 201
    report_id = response.json()["id"]
    assert response.json()["status"] == "pending"

    admin = _auth("root", ROLE_ADMIN)
    response = client.get(f"/api/admin/reports/{report_id}", headers=admin)
    assert [m["text"] for m in response.json()["messages"]] == ["hi bob"]

    response = client.put(f"/api/admin/reports/{report_id}/status", json={"status": "reviewed"}, headers=admin)
    assert response.status_code == 200
    assert response.json()["reviewed_by"] == "root"

    response = client.put(f"/api/admin/reports/{report_id}/status", json={"status": "pending"}, headers=admin)
    assert response.status_code == 400
    assert response.json()["code"] == "validation_error"

    assert client.get("/api/admin/chats/stats", headers=admin).json()["total_chats"] == 1
    assert client.get("/api/admin/mentor-requests/stats", headers=admin).json()["accepted"] == 1


def test_outsider_cannot_use_chat(client):
    chat_id = _open_chat(client)

    response = client.get(f"/api/chats/{chat_id}/messages", headers=_auth("mallory"))
    assert response.status_code == 403
    response = client.post(f"/api/chats/{chat_id}/messages", json={"text": "hey"}, headers=_auth("mallory"))
    assert response.status_code == 403


def test_only_receiver_can_respond(client):
    response = client.post("/api/mentor-requests", json={"receiver_id": "bob"}, headers=_auth("alice"))
    request_id = response.json()["id"]

    response = client.post(
        f"/api/mentor-requests/{request_id}/respond", json={"accept": True}, headers=_auth("alice")
    )
    assert response.status_code == 403


def test_duplicate_request_conflicts(client):
    client.post("/api/mentor-requests", json={"receiver_id": "bob"}, headers=_auth("alice"))

    response = client.post("/api/mentor-requests", json={"receiver_id": "bob"}, headers=_auth("alice"))

    assert response.status_code == 409
    assert response.json()["code"] == "duplicate_request"


def test_unsafe_chat_message_is_422(client):
    chat_id = _open_chat(client)

    response = client.post(f"/api/chats/{chat_id}/messages", json={"text": "idiot"}, headers=_auth("alice"))

    assert response.status_code == 422
    assert response.json()["code"] == "content_rejected"


def test_admin_routes_require_reviewer(client):
    assert client.get("/api/admin/reports", headers=_auth("alice")).status_code == 403
    assert client.get("/api/admin/reports").status_code in (401, 403)
    assert client.get("/api/admin/reports", headers={"Authorization": "Bearer junk"}).status_code == 401


def test_websocket_pushes_message_list(client):
    chat_id = _open_chat(client)

    with client.websocket_connect(f"/api/chats/{chat_id}/ws?token={_token('bob')}") as websocket:
        assert websocket.receive_json() == []
        client.post(f"/api/chats/{chat_id}/messages", json={"text": "hello"}, headers=_auth("alice"))
        assert [m["text"] for m in websocket.receive_json()] == ["hello"]


def test_websocket_rejects_bad_token_and_outsiders(client):
    chat_id = _open_chat(client)

    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect(f"/api/chats/{chat_id}/ws?token=junk") as websocket:
            websocket.receive_json()
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect(f"/api/chats/{chat_id}/ws?token={_token('mallory')}") as websocket:
            websocket.receive_json()


def test_websocket_closes_when_live_updates_fail(client, chats):
    chat_id = _open_chat(client)

    def unavailable(chat_room_id):
        raise ConnectionFailure("store went away")

    chats.messages.list_for_room = unavailable

    with pytest.raises(WebSocketDisconnect) as exc_info:
        with client.websocket_connect(f"/api/chats/{chat_id}/ws?token={_token('bob')}") as websocket:
            websocket.receive_json()
    assert exc_info.value.code == status.WS_1011_INTERNAL_ERROR
