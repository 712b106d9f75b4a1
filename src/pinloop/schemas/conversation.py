"""Conversation-related Pydantic schemas."""

from datetime import datetime

from pydantic import Field

from .common import ApiModel
from .user import UserSummary


class ConversationCreate(ApiModel):
    """Schema for resolving the conversation with another user."""

    participant_id: str = Field(..., min_length=1, max_length=64, description="Other participant's user id")


class ConversationResponse(ApiModel):
    """Conversation with participant summaries attached."""

    id: int
    participants: list[UserSummary]
    last_message_id: int | None = None
    last_message_text: str | None = None
    last_message_at: datetime | None = None
    created_at: datetime
    updated_at: datetime
    unread_count: int | None = Field(None, description="Only present in listings")
