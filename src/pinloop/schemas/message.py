"""Message-related Pydantic schemas."""

from datetime import datetime

from pydantic import Field

from .common import ApiModel
from .user import UserSummary


class MessageCreate(ApiModel):
    """Schema for sending a message; content is validated by the service."""

    content: str = Field(..., description="Message text, trimmed before storage")


class MessageResponse(ApiModel):
    """Message with the sender summary populated."""

    id: int
    conversation_id: int
    sender: UserSummary
    content: str
    read: bool
    created_at: datetime
