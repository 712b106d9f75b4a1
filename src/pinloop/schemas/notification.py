"""Notification-related Pydantic schemas."""

from datetime import datetime
from enum import Enum

from pydantic import Field

from .common import ApiModel
from .user import PinSummary, UserSummary


class NotificationType(str, Enum):
    """Kinds of activity that notify a user."""

    LIKE = "like"
    COMMENT = "comment"
    FOLLOW = "follow"
    SAVE = "save"


class NotificationResponse(ApiModel):
    """Notification with actor and subject pin summaries populated."""

    id: int
    type: NotificationType
    sender: UserSummary
    recipient_id: str
    pin: PinSummary | None = None
    comment: str | None = None
    read: bool
    created_at: datetime


class NotificationList(ApiModel):
    """A page of notifications plus the recipient's total unread count."""

    notifications: list[NotificationResponse]
    unread_count: int


class NotificationMarkRead(ApiModel):
    """Either explicit ids or ``markAllRead``."""

    notification_ids: list[int] | None = Field(None, description="Notifications to mark read")
    mark_all_read: bool = False


class MarkReadResult(ApiModel):
    success: bool = True
    updated: int
