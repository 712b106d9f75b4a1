"""Notification service: directed activity notifications with realtime push."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from sqlalchemy.orm import Session

from pinloop.core.errors import ValidationError
from pinloop.core.settings import settings
from pinloop.db.session import commit_or_rollback
from pinloop.models import NOTIFICATION_TYPES, Notification
from pinloop.models.notification import dedupe_key_for
from pinloop.repositories import NotificationRepository
from pinloop.schemas import NotificationList, NotificationResponse
from pinloop.services.gateway import EVENT_NEW_NOTIFICATION, RealtimeGateway, user_channel
from pinloop.services.projections import populate_notifications

logger = logging.getLogger(__name__)


def _check_type(kind: str) -> None:
    if kind not in NOTIFICATION_TYPES:
        raise ValidationError(f"Unknown notification type: {kind}")


class NotificationService:
    """Creates, revokes, lists and marks notifications for a recipient."""

    def __init__(self, db: Session, gateway: RealtimeGateway | None = None) -> None:
        self.db = db
        self.gateway = gateway
        self.notifications = NotificationRepository(db)

    def notify(
        self,
        actor_id: str,
        recipient_id: str,
        kind: str,
        pin_id: str | None = None,
        comment: str | None = None,
    ) -> NotificationResponse | None:
        """Record that ``actor_id`` did ``kind`` to ``recipient_id``.

        Self-notifications are suppressed and return ``None``. For like, follow
        and save an outstanding notification for the same subject is returned
        as-is rather than duplicated; the unique dedupe key settles concurrent
        toggles the same way. A freshly created notification is pushed to the
        recipient's personal channel.
        """
        _check_type(kind)
        if actor_id == recipient_id:
            return None

        notification = self.notifications.insert(
            sender_id=actor_id,
            recipient_id=recipient_id,
            kind=kind,
            pin_id=pin_id,
            comment=comment,
        )
        if notification is None:
            key = dedupe_key_for(kind, actor_id, recipient_id, pin_id)
            existing = self.notifications.get_by_dedupe_key(key) if key else None
            if existing is None:
                # The conflicting row was revoked between our insert and re-read.
                return None
            return populate_notifications(self.db, [existing])[0]

        commit_or_rollback(self.db, "create notification")
        payload = populate_notifications(self.db, [notification])[0]
        self._push(notification, payload)
        return payload

    def revoke(
        self,
        actor_id: str,
        recipient_id: str,
        kind: str,
        pin_id: str | None = None,
    ) -> int:
        """Delete notifications matching the reversed action; returns how many."""
        _check_type(kind)
        deleted = self.notifications.delete_matching(
            sender_id=actor_id,
            recipient_id=recipient_id,
            kind=kind,
            pin_id=pin_id,
        )
        if deleted:
            commit_or_rollback(self.db, "revoke notification")
            logger.debug("Revoked %d %s notification(s) from %s to %s", deleted, kind, actor_id, recipient_id)
        return deleted

    def list_notifications(
        self,
        recipient_id: str,
        limit: int | None = None,
        unread_only: bool = False,
    ) -> NotificationList:
        """Newest notifications first, plus the total unread count."""
        limit = max(1, min(limit or settings.notification_page_default, settings.notification_page_max))
        rows = self.notifications.list_for_recipient(recipient_id, limit, unread_only)
        return NotificationList(
            notifications=populate_notifications(self.db, rows),
            unread_count=self.notifications.unread_count(recipient_id),
        )

    def mark_read(
        self,
        recipient_id: str,
        notification_ids: Sequence[int] | None = None,
        mark_all: bool = False,
    ) -> int:
        """Mark notifications of ``recipient_id`` read; idempotent.

        With ``mark_all`` every unread notification is marked; otherwise only
        the given ids that belong to the recipient.
        """
        if mark_all:
            updated = self.notifications.mark_read(recipient_id)
        elif notification_ids:
            updated = self.notifications.mark_read(recipient_id, list(notification_ids))
        else:
            return 0
        if updated:
            commit_or_rollback(self.db, "mark notifications read")
        return updated

    def _push(self, notification: Notification, payload: NotificationResponse) -> None:
        if self.gateway is None:
            return
        try:
            self.gateway.publish(
                user_channel(notification.recipient_id),
                EVENT_NEW_NOTIFICATION,
                payload.to_payload(),
            )
        except Exception:  # the notification is already committed
            logger.warning("Failed to push notification %s", notification.id, exc_info=True)
