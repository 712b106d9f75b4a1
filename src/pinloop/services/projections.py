"""Populate-on-read projections from ORM rows to API schemas.

Callers expect sender, participant, actor and pin summaries rather than bare
ids. Each helper loads the summaries it needs in one query per table.
"""
from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import UTC, datetime

from sqlalchemy.orm import Session

from pinloop.models import Conversation, Message, Notification, Pin, UserProfile
from pinloop.repositories import PinRepository, ProfileRepository
from pinloop.schemas import (
    ConversationResponse,
    MessageResponse,
    NotificationResponse,
    PinSummary,
    UserSummary,
)


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive timestamps returned by backends without tz support."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)


def user_summary(profiles: Mapping[str, UserProfile], user_id: str) -> UserSummary:
    profile = profiles.get(user_id)
    if profile is None:
        return UserSummary(id=user_id)
    return UserSummary(id=profile.id, username=profile.username, avatar=profile.avatar)


def pin_summary(pins: Mapping[str, Pin], pin_id: str | None) -> PinSummary | None:
    if pin_id is None:
        return None
    pin = pins.get(pin_id)
    if pin is None:
        return PinSummary(id=pin_id)
    return PinSummary(id=pin.id, title=pin.title, image_url=pin.image_url)


def conversation_out(
    conversation: Conversation,
    profiles: Mapping[str, UserProfile],
    unread_count: int | None = None,
) -> ConversationResponse:
    return ConversationResponse(
        id=conversation.id,
        participants=[user_summary(profiles, uid) for uid in conversation.participant_ids],
        last_message_id=conversation.last_message_id,
        last_message_text=conversation.last_message_text,
        last_message_at=as_utc(conversation.last_message_at),
        created_at=as_utc(conversation.created_at),
        updated_at=as_utc(conversation.updated_at),
        unread_count=unread_count,
    )


def message_out(message: Message, profiles: Mapping[str, UserProfile]) -> MessageResponse:
    return MessageResponse(
        id=message.id,
        conversation_id=message.conversation_id,
        sender=user_summary(profiles, message.sender_id),
        content=message.content,
        read=message.is_read,
        created_at=as_utc(message.created_at),
    )


def notification_out(
    notification: Notification,
    profiles: Mapping[str, UserProfile],
    pins: Mapping[str, Pin],
) -> NotificationResponse:
    return NotificationResponse(
        id=notification.id,
        type=notification.type,
        sender=user_summary(profiles, notification.sender_id),
        recipient_id=notification.recipient_id,
        pin=pin_summary(pins, notification.pin_id),
        comment=notification.comment,
        read=notification.is_read,
        created_at=as_utc(notification.created_at),
    )


def populate_conversations(
    db: Session,
    conversations: Sequence[Conversation],
    unread_counts: Mapping[int, int] | None = None,
) -> list[ConversationResponse]:
    profiles = ProfileRepository(db).get_many(
        uid for conversation in conversations for uid in conversation.participant_ids
    )
    return [
        conversation_out(
            conversation,
            profiles,
            None if unread_counts is None else unread_counts.get(conversation.id, 0),
        )
        for conversation in conversations
    ]


def populate_messages(db: Session, messages: Sequence[Message]) -> list[MessageResponse]:
    profiles = ProfileRepository(db).get_many(message.sender_id for message in messages)
    return [message_out(message, profiles) for message in messages]


def populate_notifications(
    db: Session,
    notifications: Sequence[Notification],
) -> list[NotificationResponse]:
    profiles = ProfileRepository(db).get_many(n.sender_id for n in notifications)
    pins = PinRepository(db).get_many(n.pin_id for n in notifications)
    return [notification_out(n, profiles, pins) for n in notifications]
