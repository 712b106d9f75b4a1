"""Data access helpers for conversations."""
from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from pinloop.models import Conversation, Message

__all__ = ["ConversationRepository", "sorted_pair"]


def sorted_pair(user_a: str, user_b: str) -> tuple[str, str]:
    """Return the pair in the canonical order used by the uniqueness constraint."""
    return (user_a, user_b) if user_a < user_b else (user_b, user_a)


class ConversationRepository:
    """Thin wrapper around database access for conversation entities."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get_by_id(self, conversation_id: int) -> Conversation | None:
        return self.session.get(Conversation, conversation_id)

    def find_by_pair(self, user_a: str, user_b: str) -> Conversation | None:
        """Return the conversation for the unordered pair, if any."""
        low, high = sorted_pair(user_a, user_b)
        result = self.session.execute(
            select(Conversation).where(
                Conversation.user_low_id == low,
                Conversation.user_high_id == high,
            )
        )
        return result.scalars().first()

    def insert_pair(self, initiator_id: str, recipient_id: str) -> Conversation | None:
        """Insert a conversation inside a SAVEPOINT.

        Returns:
            The new conversation, or ``None`` if the unique pair constraint
            rejected it because a concurrent request created it first.
        """
        low, high = sorted_pair(initiator_id, recipient_id)
        conversation = Conversation(
            initiator_id=initiator_id,
            recipient_id=recipient_id,
            user_low_id=low,
            user_high_id=high,
        )
        try:
            with self.session.begin_nested():
                self.session.add(conversation)
        except IntegrityError:
            return None
        return conversation

    def list_for_user(self, user_id: str) -> Sequence[Conversation]:
        """Conversations the user takes part in, most recent activity first."""
        activity = func.coalesce(Conversation.last_message_at, Conversation.updated_at)
        result = self.session.execute(
            select(Conversation)
            .where(or_(Conversation.user_low_id == user_id, Conversation.user_high_id == user_id))
            .order_by(activity.desc(), Conversation.id.desc())
        )
        return result.scalars().all()

    def unread_counts(self, conversation_ids: Sequence[int], reader_id: str) -> dict[int, int]:
        """Count unread incoming messages per conversation for ``reader_id``."""
        if not conversation_ids:
            return {}
        rows = self.session.execute(
            select(Message.conversation_id, func.count(Message.id))
            .where(
                Message.conversation_id.in_(conversation_ids),
                Message.sender_id != reader_id,
                Message.is_read.is_(False),
            )
            .group_by(Message.conversation_id)
        )
        return {conversation_id: count for conversation_id, count in rows}

    def apply_summary(self, message: Message, preview_length: int) -> bool:
        """Point the conversation summary at ``message``.

        The update only applies when the stored summary is not newer than the
        message, so concurrent senders cannot roll the summary backwards.

        Returns:
            ``True`` if the summary now refers to ``message``.
        """
        result = self.session.execute(
            update(Conversation)
            .where(
                Conversation.id == message.conversation_id,
                or_(
                    Conversation.last_message_at.is_(None),
                    Conversation.last_message_at <= message.created_at,
                ),
            )
            .values(
                last_message_id=message.id,
                last_message_text=message.content[:preview_length],
                last_message_at=message.created_at,
                updated_at=message.created_at,
            )
            .execution_options(synchronize_session="fetch")
        )
        return bool(result.rowcount)
