"""Message service: append, page, mark read and fan out."""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from sqlalchemy.orm import Session

from pinloop.core.errors import ValidationError
from pinloop.core.settings import settings
from pinloop.db.session import commit_or_rollback
from pinloop.repositories import ConversationRepository, MessageRepository
from pinloop.schemas import MessageResponse, NewMessageNotification
from pinloop.services.conversations import ConversationService
from pinloop.services.gateway import (
    EVENT_NEW_MESSAGE,
    EVENT_NEW_MESSAGE_NOTIFICATION,
    RealtimeGateway,
    conversation_channel,
    user_channel,
)
from pinloop.services.projections import populate_messages

logger = logging.getLogger(__name__)


def normalize_content(content: str | None) -> str:
    """Trim ``content`` and enforce the length bounds.

    Raises:
        ValidationError: If nothing remains after trimming or the text is too long.
    """
    text = (content or "").strip()
    if not text:
        raise ValidationError("Message content is required")
    if len(text) > settings.message_max_length:
        raise ValidationError(
            f"Message content exceeds {settings.message_max_length} characters"
        )
    return text


def _to_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class MessageService:
    """Reads and writes messages of a conversation on behalf of a participant."""

    def __init__(self, db: Session, gateway: RealtimeGateway | None = None) -> None:
        self.db = db
        self.gateway = gateway
        self.directory = ConversationService(db)
        self.conversations = ConversationRepository(db)
        self.messages = MessageRepository(db)

    def list_messages(
        self,
        conversation_id: int,
        requester_id: str,
        limit: int | None = None,
        before: datetime | None = None,
    ) -> list[MessageResponse]:
        """Return a page of messages oldest-first and mark incoming ones read.

        Messages are fetched newest-first from ``before`` (exclusive) backwards,
        then reversed, which lets clients load older history from the tail.
        Every unread message from the other participant in the conversation is
        marked read, not only the ones on this page.
        """
        self.directory.get_for_participant(conversation_id, requester_id)
        limit = max(1, min(limit or settings.message_page_default, settings.message_page_max))

        page = self.messages.list_page(conversation_id, limit, _to_utc(before))
        page.reverse()
        result = populate_messages(self.db, page)

        marked = self.messages.mark_read(conversation_id, requester_id)
        if marked:
            commit_or_rollback(self.db, "mark messages read")
            logger.debug("Marked %d messages read in conversation %s", marked, conversation_id)
        return result

    def send_message(self, conversation_id: int, sender_id: str, content: str) -> MessageResponse:
        """Persist a message, update the conversation summary, then fan out.

        The message insert and summary update commit together, so a failed send
        leaves neither behind. Delivery to live connections happens only after
        the commit and never fails the send.

        Raises:
            NotFoundError: If the conversation does not exist.
            ForbiddenError: If ``sender_id`` is not a participant.
            ValidationError: If the content is empty or too long.
        """
        conversation = self.directory.get_for_participant(conversation_id, sender_id)
        text = normalize_content(content)

        message = self.messages.create(
            conversation_id=conversation.id,
            sender_id=sender_id,
            content=text,
        )
        self.conversations.apply_summary(message, settings.message_preview_length)
        commit_or_rollback(self.db, "send message")

        payload = populate_messages(self.db, [message])[0]
        self._fan_out(conversation.id, conversation.other_participant(sender_id), payload)
        return payload

    def _fan_out(self, conversation_id: int, recipient_id: str, message: MessageResponse) -> None:
        if self.gateway is None:
            return
        try:
            self.gateway.publish(
                conversation_channel(conversation_id),
                EVENT_NEW_MESSAGE,
                message.to_payload(),
            )
            envelope = NewMessageNotification(conversation_id=conversation_id, message=message)
            self.gateway.publish(
                user_channel(recipient_id),
                EVENT_NEW_MESSAGE_NOTIFICATION,
                envelope.to_payload(),
            )
        except Exception:  # a committed send never fails on delivery
            logger.warning(
                "Failed to fan out message %s in conversation %s",
                message.id,
                conversation_id,
                exc_info=True,
            )
