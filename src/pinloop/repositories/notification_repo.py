"""Data access helpers for notifications."""
from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from pinloop.models import Notification
from pinloop.models.notification import dedupe_key_for

__all__ = ["NotificationRepository"]


class NotificationRepository:
    """Thin wrapper around database access for notification entities."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get_by_dedupe_key(self, dedupe_key: str) -> Notification | None:
        result = self.session.execute(
            select(Notification).where(Notification.dedupe_key == dedupe_key)
        )
        return result.scalars().first()

    def insert(
        self,
        *,
        sender_id: str,
        recipient_id: str,
        kind: str,
        pin_id: str | None = None,
        comment: str | None = None,
    ) -> Notification | None:
        """Insert a notification inside a SAVEPOINT.

        Returns:
            The new row, or ``None`` when an outstanding toggle notification for
            the same (sender, recipient, type, pin) already exists.
        """
        notification = Notification(
            sender_id=sender_id,
            recipient_id=recipient_id,
            type=kind,
            pin_id=pin_id,
            comment=comment,
            dedupe_key=dedupe_key_for(kind, sender_id, recipient_id, pin_id),
        )
        try:
            with self.session.begin_nested():
                self.session.add(notification)
        except IntegrityError:
            return None
        return notification

    def delete_matching(
        self,
        *,
        sender_id: str,
        recipient_id: str,
        kind: str,
        pin_id: str | None = None,
    ) -> int:
        stmt = delete(Notification).where(
            Notification.sender_id == sender_id,
            Notification.recipient_id == recipient_id,
            Notification.type == kind,
        )
        if pin_id is None:
            stmt = stmt.where(Notification.pin_id.is_(None))
        else:
            stmt = stmt.where(Notification.pin_id == pin_id)
        result = self.session.execute(stmt)
        return result.rowcount or 0

    def list_for_recipient(
        self,
        recipient_id: str,
        limit: int,
        unread_only: bool = False,
    ) -> list[Notification]:
        stmt = select(Notification).where(Notification.recipient_id == recipient_id)
        if unread_only:
            stmt = stmt.where(Notification.is_read.is_(False))
        stmt = stmt.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit)
        result = self.session.execute(stmt)
        return list(result.scalars())

    def unread_count(self, recipient_id: str) -> int:
        result = self.session.execute(
            select(func.count(Notification.id)).where(
                Notification.recipient_id == recipient_id,
                Notification.is_read.is_(False),
            )
        )
        return int(result.scalar_one())

    def mark_read(self, recipient_id: str, notification_ids: Sequence[int] | None = None) -> int:
        """Flip unread notifications of ``recipient_id`` to read.

        ``notification_ids=None`` marks all of them; ids belonging to other
        recipients are silently ignored.
        """
        stmt = update(Notification).where(
            Notification.recipient_id == recipient_id,
            Notification.is_read.is_(False),
        )
        if notification_ids is not None:
            if not notification_ids:
                return 0
            stmt = stmt.where(Notification.id.in_(notification_ids))
        result = self.session.execute(stmt.values(is_read=True))
        return result.rowcount or 0
