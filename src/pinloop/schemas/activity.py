"""Schemas for activity events reported by the pin and follow services."""

from pydantic import Field

from .common import ApiModel
from .notification import NotificationType
from .user import PinReference


class ActivityEvent(ApiModel):
    """A toggle or comment performed by the authenticated user.

    ``active`` is ``True`` when the action was performed (like, follow, save,
    comment) and ``False`` when it was reversed (unlike, unfollow, unsave).
    """

    type: NotificationType
    recipient_id: str = Field(..., min_length=1, max_length=64)
    active: bool = True
    pin: PinReference | None = None
    comment: str | None = Field(None, max_length=5000)
