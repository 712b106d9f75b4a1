"""Display summaries populated into query results."""

from pydantic import Field

from .common import ApiModel


class UserSummary(ApiModel):
    """Public profile summary of a user."""

    id: str
    username: str | None = None
    avatar: str | None = None


class PinSummary(ApiModel):
    """Summary of the pin a notification refers to."""

    id: str
    title: str | None = None
    image_url: str | None = None


class PinReference(ApiModel):
    """Pin details reported by the pin service along with an activity event."""

    id: str = Field(..., min_length=1, max_length=64)
    creator_id: str | None = Field(None, max_length=64)
    title: str | None = None
    image_url: str | None = None
