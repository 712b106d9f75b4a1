"""Translate pin and follow activity into notification side effects.

The pin service owns likes, saves, comments and follows. It reports each
toggle here so the matching notification is created or revoked.
"""
from __future__ import annotations

from sqlalchemy.orm import Session

from pinloop.core.errors import InvalidOperationError, ValidationError
from pinloop.db.session import commit_or_rollback
from pinloop.repositories import PinRepository
from pinloop.schemas import ActivityEvent, NotificationResponse, NotificationType
from pinloop.services.gateway import RealtimeGateway
from pinloop.services.notifications import NotificationService

PIN_SUBJECT_TYPES = frozenset({NotificationType.LIKE, NotificationType.COMMENT, NotificationType.SAVE})


class ActivityService:
    """Applies activity events reported on behalf of an acting user."""

    def __init__(self, db: Session, gateway: RealtimeGateway | None = None) -> None:
        self.db = db
        self.pins = PinRepository(db)
        self.notifications = NotificationService(db, gateway)

    def record(self, actor_id: str, event: ActivityEvent) -> NotificationResponse | None:
        """Create or revoke the notification for ``event``.

        Returns:
            The outstanding notification after a performed action, or ``None``
            for reversals and self-directed actions.
        """
        kind = NotificationType(event.type)
        pin_id = event.pin.id if event.pin is not None else None

        if kind in PIN_SUBJECT_TYPES and pin_id is None:
            raise ValidationError(f"A pin is required for {kind.value} activity")
        if kind is NotificationType.FOLLOW and pin_id is not None:
            raise ValidationError("Follow activity does not take a pin")
        if kind is NotificationType.COMMENT and not event.active:
            raise InvalidOperationError("Comments cannot be revoked")

        if event.pin is not None:
            self._check_pin(event)

        if not event.active:
            self.notifications.revoke(actor_id, event.recipient_id, kind.value, pin_id)
            return None

        comment = event.comment.strip() if event.comment else None
        return self.notifications.notify(
            actor_id,
            event.recipient_id,
            kind.value,
            pin_id=pin_id,
            comment=comment or None,
        )

    def _check_pin(self, event: ActivityEvent) -> None:
        """Require the event to target the pin's creator, recording unknown pins.

        The first report of a pin fixes its creator. Later reports only read
        the stored summary, so no actor can rewrite another user's pin.
        """
        claimed_creator = event.pin.creator_id or event.recipient_id
        if claimed_creator != event.recipient_id:
            raise ValidationError("Pin activity must be addressed to the pin's creator")

        pin = self.pins.get(event.pin.id)
        if pin is None:
            self.pins.add(
                event.pin.id,
                event.recipient_id,
                title=event.pin.title,
                image_url=event.pin.image_url,
            )
            commit_or_rollback(self.db, "record pin")
        elif pin.creator_id != event.recipient_id:
            raise ValidationError("Pin activity must be addressed to the pin's creator")
