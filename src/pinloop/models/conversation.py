# src/pinloop/models/conversation.py
"""Models describing two-party conversations and their messages."""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from pinloop.db.session import Base
from pinloop.db.time import utcnow


class Conversation(Base):
    """Persistent messaging thread between exactly two users.

    The participant pair is stored twice: in creation order for presentation and
    sorted for the uniqueness constraint, so at most one conversation exists per
    unordered pair.
    """

    __tablename__ = "conversation"
    __table_args__ = (
        UniqueConstraint("user_low_id", "user_high_id", name="uq_conversation_pair"),
        CheckConstraint("user_low_id < user_high_id", name="ck_conversation_distinct_pair"),
        Index("ix_conversation_user_high_id", "user_high_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    initiator_id: Mapped[str] = mapped_column(String(64), nullable=False)
    recipient_id: Mapped[str] = mapped_column(String(64), nullable=False)
    user_low_id: Mapped[str] = mapped_column(String(64), nullable=False)
    user_high_id: Mapped[str] = mapped_column(String(64), nullable=False)

    # Denormalized summary of the most recent message.
    last_message_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    last_message_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    last_message_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    @property
    def participant_ids(self) -> list[str]:
        """Participants in creation order."""
        return [self.initiator_id, self.recipient_id]

    def has_participant(self, user_id: str) -> bool:
        return user_id in (self.initiator_id, self.recipient_id)

    def other_participant(self, user_id: str) -> str:
        return self.recipient_id if user_id == self.initiator_id else self.initiator_id


class Message(Base):
    """Text message appended to a conversation."""

    __tablename__ = "message"
    __table_args__ = (
        Index("ix_message_conversation_created", "conversation_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    conversation_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("conversation.id", ondelete="CASCADE"), nullable=False
    )
    sender_id: Mapped[str] = mapped_column(String(64), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)

    # Only ever flips from False to True.
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
