# mypy: ignore-errors
# tests/v1/test_activity.py
"""Tests for the activity hook that drives notifications."""

from fastapi import status

from pinloop.models import Notification, Pin

PIN = {"id": "pin-9", "creatorId": "alice", "title": "Mountains", "imageUrl": "https://img.example/p9.jpg"}


def _record(client, headers, **event):
    return client.post("/api/v1/activity", json=event, headers=headers)


def test_like_creates_notification(client, test_user, other_user, other_auth_token, db_session) -> None:
    response = _record(client, other_auth_token, type="like", recipientId="alice", pin=PIN)

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["type"] == "like"
    assert data["recipientId"] == "alice"
    assert data["sender"]["username"] == "Bob"
    assert data["pin"]["title"] == "Mountains"
    assert data["read"] is False
    assert db_session.get(Pin, "pin-9").creator_id == "alice"


def test_like_unlike_like_toggles(client, test_user, other_user, other_auth_token, db_session) -> None:
    """Toggling never leaves more than one outstanding like notification."""
    first = _record(client, other_auth_token, type="like", recipientId="alice", pin=PIN).json()
    duplicate = _record(client, other_auth_token, type="like", recipientId="alice", pin=PIN).json()
    assert duplicate["id"] == first["id"]
    assert db_session.query(Notification).count() == 1

    revoked = _record(client, other_auth_token, type="like", recipientId="alice", pin=PIN, active=False)
    assert revoked.status_code == status.HTTP_200_OK
    assert revoked.json() is None
    assert db_session.query(Notification).count() == 0

    again = _record(client, other_auth_token, type="like", recipientId="alice", pin=PIN).json()
    assert db_session.query(Notification).count() == 1


def test_follow_and_unfollow(client, test_user, other_user, other_auth_token, db_session) -> None:
    created = _record(client, other_auth_token, type="follow", recipientId="alice")
    assert created.json()["pin"] is None

    _record(client, other_auth_token, type="follow", recipientId="alice", active=False)
    assert db_session.query(Notification).count() == 0


def test_unfollow_keeps_other_notifications(client, test_user, other_user, other_auth_token, db_session) -> None:
    _record(client, other_auth_token, type="follow", recipientId="alice")
    _record(client, other_auth_token, type="save", recipientId="alice", pin=PIN)

    _record(client, other_auth_token, type="follow", recipientId="alice", active=False)

    remaining = db_session.query(Notification).all()
    assert [n.type for n in remaining] == ["save"]


def test_comments_accumulate(client, test_user, other_user, other_auth_token, db_session) -> None:
    for text in ("Nice!", "  Where is this?  "):
        response = _record(client, other_auth_token, type="comment", recipientId="alice", pin=PIN, comment=text)
        assert response.status_code == status.HTTP_200_OK

    comments = sorted(n.comment for n in db_session.query(Notification).all())
    assert comments == ["Nice!", "Where is this?"]


def test_comment_cannot_be_revoked(client, test_user, other_user, other_auth_token) -> None:
    response = _record(client, other_auth_token, type="comment", recipientId="alice", pin=PIN, active=False)
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"] == "Comments cannot be revoked"


def test_self_activity_is_silent(client, test_user, auth_token, db_session) -> None:
    response = _record(client, auth_token, type="like", recipientId="alice", pin=PIN)

    assert response.status_code == status.HTTP_200_OK
    assert response.json() is None
    assert db_session.query(Notification).count() == 0


def test_pin_required_for_like(client, test_user, other_user, other_auth_token) -> None:
    response = _record(client, other_auth_token, type="like", recipientId="alice")
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"] == "A pin is required for like activity"


def test_follow_rejects_pin(client, test_user, other_user, other_auth_token) -> None:
    response = _record(client, other_auth_token, type="follow", recipientId="alice", pin=PIN)
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_unknown_activity_type(client, test_user, other_user, other_auth_token) -> None:
    response = _record(client, other_auth_token, type="poke", recipientId="alice")
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_like_is_listed_for_recipient(client, test_user, other_user, auth_token, other_auth_token) -> None:
    _record(client, other_auth_token, type="like", recipientId="alice", pin=PIN)

    data = client.get("/api/v1/notifications", headers=auth_token).json()
    assert data["unreadCount"] == 1
    assert data["notifications"][0]["pin"]["imageUrl"] == "https://img.example/p9.jpg"


def test_existing_pin_is_never_rewritten(
    client, test_user, other_user, third_user, auth_token, other_auth_token, third_auth_token, db_session
) -> None:
    _record(client, other_auth_token, type="like", recipientId="alice", pin=PIN)

    hijack = {**PIN, "creatorId": "carol", "title": "HACKED"}
    response = _record(client, third_auth_token, type="save", recipientId="carol", pin=hijack)
    assert response.status_code == status.HTTP_400_BAD_REQUEST

    renamed = _record(client, third_auth_token, type="save", recipientId="alice", pin={**PIN, "title": "Renamed"})
    assert renamed.status_code == status.HTTP_200_OK

    pin = db_session.get(Pin, "pin-9")
    assert (pin.creator_id, pin.title) == ("alice", "Mountains")
    listed = client.get("/api/v1/notifications", headers=auth_token).json()["notifications"]
    assert {n["pin"]["title"] for n in listed} == {"Mountains"}


def test_pin_activity_must_target_creator(client, test_user, other_user, third_user, third_auth_token, db_session) -> None:
    claimed = _record(client, third_auth_token, type="like", recipientId="bob", pin=PIN)
    assert claimed.status_code == status.HTTP_400_BAD_REQUEST
    assert claimed.json()["detail"] == "Pin activity must be addressed to the pin's creator"
    assert db_session.get(Pin, "pin-9") is None

    _record(client, third_auth_token, type="like", recipientId="alice", pin=PIN)
    stored = _record(client, third_auth_token, type="comment", recipientId="bob", pin={"id": "pin-9"}, comment="hi")
    assert stored.status_code == status.HTTP_400_BAD_REQUEST
    assert db_session.query(Notification).filter_by(recipient_id="bob").count() == 0
