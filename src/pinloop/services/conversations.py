"""Conversation directory: one conversation per unordered pair of users."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from pinloop.core.errors import ForbiddenError, InvalidOperationError, NotFoundError
from pinloop.db.session import commit_or_rollback
from pinloop.models import Conversation
from pinloop.repositories import ConversationRepository, ProfileRepository
from pinloop.schemas import ConversationResponse
from pinloop.services.projections import populate_conversations

logger = logging.getLogger(__name__)


class ConversationService:
    """Resolves, lists and authorizes access to conversations."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.conversations = ConversationRepository(db)
        self.profiles = ProfileRepository(db)

    def get_or_create(self, user_a: str, user_b: str) -> ConversationResponse:
        """Return the conversation between ``user_a`` and ``user_b``, creating it if needed.

        Concurrent first-time calls for the same pair, in either direction,
        resolve to a single row: the loser of the insert race hits the unique
        pair constraint and re-reads the winner's conversation.

        Raises:
            InvalidOperationError: If both ids are the same user.
            NotFoundError: If ``user_b`` is unknown.
        """
        if user_a == user_b:
            raise InvalidOperationError("Cannot start conversation with yourself")

        conversation = self.conversations.find_by_pair(user_a, user_b)
        if conversation is None:
            if self.profiles.get(user_b) is None:
                raise NotFoundError("User not found")
            conversation = self.conversations.insert_pair(user_a, user_b)
            if conversation is None:
                logger.info("Conversation for pair already created concurrently; re-reading")
                conversation = self.conversations.find_by_pair(user_a, user_b)
                if conversation is None:
                    raise NotFoundError("Conversation not found")
            else:
                logger.info("Created conversation %s between %s and %s", conversation.id, user_a, user_b)
            commit_or_rollback(self.db, "create conversation")

        return populate_conversations(self.db, [conversation])[0]

    def list_for_user(self, user_id: str) -> list[ConversationResponse]:
        """Conversations of ``user_id`` with unread counts, most recent activity first."""
        conversations = self.conversations.list_for_user(user_id)
        unread = self.conversations.unread_counts([c.id for c in conversations], user_id)
        return populate_conversations(self.db, conversations, unread)

    def get_for_participant(self, conversation_id: int, user_id: str) -> Conversation:
        """Return the conversation if ``user_id`` takes part in it.

        Raises:
            NotFoundError: If the conversation does not exist.
            ForbiddenError: If ``user_id`` is not a participant.
        """
        conversation = self.conversations.get_by_id(conversation_id)
        if conversation is None:
            raise NotFoundError("Conversation not found")
        if not conversation.has_participant(user_id):
            raise ForbiddenError("Not a participant of this conversation")
        return conversation
