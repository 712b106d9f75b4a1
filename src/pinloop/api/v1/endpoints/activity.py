"""Activity hook endpoint used by the pin and follow services."""

from __future__ import annotations

from fastapi import APIRouter

from pinloop.api.v1.dependencies import CurrentUserDep, GatewayDep, SessionDep
from pinloop.schemas import ActivityEvent, NotificationResponse
from pinloop.services.activity import ActivityService

router = APIRouter(prefix="/activity", tags=["activity"])


@router.post("", response_model=NotificationResponse | None)
async def record_activity(
    event: ActivityEvent,
    current_user: CurrentUserDep,
    db: SessionDep,
    gateway: GatewayDep,
) -> NotificationResponse | None:
    """Create or revoke the notification for a like, follow, save or comment.

    Returns the outstanding notification, or ``null`` for reversals and
    actions on one's own content.
    """
    return ActivityService(db, gateway).record(current_user.user_id, event)
