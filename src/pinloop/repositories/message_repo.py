"""Data access helpers for messages."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from pinloop.models import Message

__all__ = ["MessageRepository"]


class MessageRepository:
    """Thin wrapper around database access for message entities."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def create(self, *, conversation_id: int, sender_id: str, content: str) -> Message:
        """Insert a message and flush so its id and timestamp are populated."""
        message = Message(
            conversation_id=conversation_id,
            sender_id=sender_id,
            content=content,
        )
        self.session.add(message)
        self.session.flush()
        return message

    def list_page(
        self,
        conversation_id: int,
        limit: int,
        before: datetime | None = None,
    ) -> list[Message]:
        """Return up to ``limit`` messages older than ``before``, newest first."""
        stmt = select(Message).where(Message.conversation_id == conversation_id)
        if before is not None:
            stmt = stmt.where(Message.created_at < before)
        stmt = stmt.order_by(Message.created_at.desc(), Message.id.desc()).limit(limit)
        result = self.session.execute(stmt)
        return list(result.scalars())

    def mark_read(self, conversation_id: int, reader_id: str) -> int:
        """Mark every unread message not sent by ``reader_id`` as read.

        Set-based, so repeated or concurrent calls converge on the same state.
        """
        result = self.session.execute(
            update(Message)
            .where(
                Message.conversation_id == conversation_id,
                Message.sender_id != reader_id,
                Message.is_read.is_(False),
            )
            .values(is_read=True)
        )
        return result.rowcount or 0
