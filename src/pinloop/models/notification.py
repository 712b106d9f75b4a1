"""Models for directed activity notifications."""

from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from pinloop.db.session import Base
from pinloop.db.time import utcnow

NOTIFICATION_TYPES = ("like", "comment", "follow", "save")
# Types created and revoked together with a reversible toggle.
TOGGLE_NOTIFICATION_TYPES = frozenset({"like", "follow", "save"})


def dedupe_key_for(kind: str, sender_id: str, recipient_id: str, pin_id: str | None) -> str | None:
    """Return the uniqueness key for toggle notifications, ``None`` otherwise."""
    if kind not in TOGGLE_NOTIFICATION_TYPES:
        return None
    return "/".join((kind, sender_id, recipient_id, pin_id or "-"))


class Notification(Base):
    """Notification delivered to ``recipient_id`` about an action by ``sender_id``."""

    __tablename__ = "notification"
    __table_args__ = (
        CheckConstraint(
            "type IN ('like', 'comment', 'follow', 'save')",
            name="ck_notification_type",
        ),
        Index("ix_notification_recipient_created", "recipient_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    recipient_id: Mapped[str] = mapped_column(String(64), nullable=False)
    sender_id: Mapped[str] = mapped_column(String(64), nullable=False)
    type: Mapped[str] = mapped_column(String(16), nullable=False)
    pin_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    # NULL for comments; NULLs never collide in a unique index.
    dedupe_key: Mapped[str | None] = mapped_column(String(300), nullable=True, unique=True)
