"""Notification endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Query

from pinloop.api.v1.dependencies import CurrentUserDep, SessionDep
from pinloop.core.settings import settings
from pinloop.schemas import MarkReadResult, NotificationList, NotificationMarkRead
from pinloop.services.notifications import NotificationService

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=NotificationList)
async def list_notifications(
    current_user: CurrentUserDep,
    db: SessionDep,
    limit: int = Query(settings.notification_page_default, ge=1, le=settings.notification_page_max),
    unread: bool = Query(False, description="Only return unread notifications"),
) -> NotificationList:
    """Get the newest notifications and the total unread count."""
    return NotificationService(db).list_notifications(current_user.user_id, limit, unread)


@router.patch("", response_model=MarkReadResult)
async def mark_notifications_read(
    payload: NotificationMarkRead,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> MarkReadResult:
    """Mark the given notifications, or all of them, as read."""
    updated = NotificationService(db).mark_read(
        current_user.user_id,
        payload.notification_ids,
        mark_all=payload.mark_all_read,
    )
    return MarkReadResult(updated=updated)
