# mypy: ignore-errors
# tests/v1/test_realtime_ws.py
"""End-to-end tests for the realtime socket."""

import json

from fastapi import status

from pinloop.api.v1.endpoints.realtime import FrameHandler
from pinloop.core.security import create_access_token

WS_PATH = "/api/v1/realtime/ws"


def _authenticate(ws, user_id, username=None):
    ws.send_json({"type": "authenticate", "data": {"token": create_access_token(user_id, username or user_id)}})
    frame = ws.receive_json()
    assert frame["event"] == "authenticated"
    assert frame["data"]["userId"] == user_id
    return frame["data"]


def _join(ws, conversation_id):
    ws.send_json({"type": "join-conversation", "data": {"conversationId": conversation_id}})
    frame = ws.receive_json()
    assert frame == {"event": "joined-conversation", "data": {"conversationId": conversation_id}}


def _assert_idle(ws):
    """Nothing else is queued for ``ws``: the next frame is the reply to a ping."""
    ws.send_json({"type": "ping"})
    assert ws.receive_json() == {"event": "pong", "data": None}


def test_realtime_config(client) -> None:
    response = client.get("/api/v1/realtime/config")
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["typingTimeoutSeconds"] == 3.0
    assert data["channelPrefixes"] == {"user": "user:", "conversation": "conversation:"}
    assert "new-message-notification" in data["events"]


def test_authenticate_registers_presence(client, test_user, auth_token, gateway) -> None:
    with client.websocket_connect(WS_PATH) as ws:
        _authenticate(ws, "alice", "Alice")
        assert gateway.presence.is_online("alice")

        response = client.get("/api/v1/realtime/presence/alice", headers=auth_token)
        assert response.json() == {"userId": "alice", "online": True, "connections": 1}

    assert not gateway.presence.is_online("alice")
    assert gateway.connection_count == 0
    response = client.get("/api/v1/realtime/presence/alice", headers=auth_token)
    assert response.json()["online"] is False


def test_invalid_token_keeps_connection_open(client) -> None:
    with client.websocket_connect(WS_PATH) as ws:
        ws.send_json({"type": "authenticate", "data": {"token": "not-a-jwt"}})
        frame = ws.receive_json()
        assert frame["event"] == "error"
        assert frame["data"]["type"] == "authenticate"
        assert frame["data"]["status"] == 401

        _assert_idle(ws)


def test_malformed_and_unknown_frames(client) -> None:
    with client.websocket_connect(WS_PATH) as ws:
        ws.send_text("definitely not json")
        assert ws.receive_json()["data"]["detail"] == "Malformed frame"

        ws.send_json({"type": "dance", "data": {}})
        frame = ws.receive_json()
        assert frame["event"] == "error"
        assert frame["data"]["detail"] == "Unknown frame type: dance"


def test_join_requires_authentication(client, conversation) -> None:
    with client.websocket_connect(WS_PATH) as ws:
        ws.send_json({"type": "join-conversation", "data": {"conversationId": conversation.id}})
        frame = ws.receive_json()
        assert frame["event"] == "error"
        assert frame["data"]["status"] == 401


def test_outsider_cannot_join_room(client, test_user, other_user, third_user, conversation) -> None:
    with client.websocket_connect(WS_PATH) as ws:
        _authenticate(ws, "carol")
        ws.send_json({"type": "join-conversation", "data": {"conversationId": conversation.id}})
        frame = ws.receive_json()
        assert frame["event"] == "error"
        assert frame["data"]["status"] == 403


def test_message_fan_out(client, test_user, other_user, auth_token, conversation) -> None:
    """The room gets new-message; the recipient's personal channel gets the envelope."""
    with client.websocket_connect(WS_PATH) as alice_ws, client.websocket_connect(WS_PATH) as bob_ws:
        _authenticate(alice_ws, "alice")
        _authenticate(bob_ws, "bob")
        _join(alice_ws, conversation.id)

        response = client.post(
            f"/api/v1/conversations/{conversation.id}/messages",
            json={"content": "hey bob"},
            headers=auth_token,
        )
        assert response.status_code == status.HTTP_201_CREATED
        message = response.json()

        room_frame = alice_ws.receive_json()
        assert room_frame == {"event": "new-message", "data": message}
        _assert_idle(alice_ws)

        personal = bob_ws.receive_json()
        assert personal["event"] == "new-message-notification"
        assert personal["data"] == {"conversationId": conversation.id, "message": message}
        _assert_idle(bob_ws)


def test_rooms_are_isolated(client, test_user, other_user, third_user, auth_token, conversation) -> None:
    other = client.post("/api/v1/conversations", json={"participantId": "carol"}, headers=auth_token).json()

    with client.websocket_connect(WS_PATH) as bob_ws:
        _authenticate(bob_ws, "bob")
        _join(bob_ws, conversation.id)

        client.post(
            f"/api/v1/conversations/{other['id']}/messages",
            json={"content": "only for carol"},
            headers=auth_token,
        )
        _assert_idle(bob_ws)


def test_leave_stops_room_delivery(client, test_user, other_user, auth_token, conversation) -> None:
    with client.websocket_connect(WS_PATH) as alice_ws:
        _authenticate(alice_ws, "alice")
        _join(alice_ws, conversation.id)
        alice_ws.send_json({"type": "leave-conversation", "data": {"conversationId": conversation.id}})
        assert alice_ws.receive_json()["event"] == "left-conversation"

        client.post(
            f"/api/v1/conversations/{conversation.id}/messages",
            json={"content": "after leaving"},
            headers=auth_token,
        )
        _assert_idle(alice_ws)


def test_typing_relayed_to_others_in_room(client, test_user, other_user, conversation) -> None:
    with client.websocket_connect(WS_PATH) as alice_ws, client.websocket_connect(WS_PATH) as bob_ws:
        _authenticate(alice_ws, "alice", "Alice")
        _authenticate(bob_ws, "bob", "Bob")
        _join(alice_ws, conversation.id)
        _join(bob_ws, conversation.id)

        alice_ws.send_json({"type": "typing", "data": {"conversationId": conversation.id}})
        assert bob_ws.receive_json() == {
            "event": "user-typing",
            "data": {"conversationId": conversation.id, "userId": "alice", "username": "Alice"},
        }

        alice_ws.send_json({"type": "stop-typing", "data": {"conversationId": conversation.id}})
        assert bob_ws.receive_json()["event"] == "user-stop-typing"

        _assert_idle(alice_ws)


def test_typing_requires_joined_room(client, test_user, other_user, conversation) -> None:
    with client.websocket_connect(WS_PATH) as ws:
        _authenticate(ws, "alice")
        ws.send_json({"type": "typing", "data": {"conversationId": conversation.id}})
        frame = ws.receive_json()
        assert frame["event"] == "error"
        assert frame["data"]["status"] == 403


def test_notification_pushed_to_recipient(client, test_user, other_user, other_auth_token) -> None:
    with client.websocket_connect(WS_PATH) as alice_ws:
        _authenticate(alice_ws, "alice")

        response = client.post(
            "/api/v1/activity",
            json={"type": "follow", "recipientId": "alice"},
            headers=other_auth_token,
        )
        frame = alice_ws.receive_json()

        assert frame["event"] == "new-notification"
        assert frame["data"] == response.json()
        assert frame["data"]["sender"]["id"] == "bob"


def test_unauthenticated_socket_receives_nothing(client, test_user, other_user, other_auth_token) -> None:
    with client.websocket_connect(WS_PATH) as ws:
        client.post(
            "/api/v1/activity",
            json={"type": "follow", "recipientId": "alice"},
            headers=other_auth_token,
        )
        _assert_idle(ws)


def test_rejected_join_releases_session_transaction(db_session, gateway, test_user, other_user, conversation) -> None:
    connection = gateway.connect()
    handler = FrameHandler(connection, gateway, db_session)
    token = create_access_token("alice", "Alice")
    handler.handle(json.dumps({"type": "authenticate", "data": {"token": token}}))

    handler.handle(json.dumps({"type": "join-conversation", "data": {"conversationId": conversation.id + 100}}))

    assert [e.event for e in connection.drain()] == ["authenticated", "error"]
    assert not db_session.in_transaction()
    assert f"conversation:{conversation.id + 100}" not in connection.rooms
