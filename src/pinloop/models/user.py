"""Read models mirrored from external collaborators.

Users are owned by the identity provider and pins by the pin service. The rows
here only exist so that query results can be populated with display summaries.
"""
from datetime import datetime

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from pinloop.db.session import Base
from pinloop.db.time import utcnow


class UserProfile(Base):
    """Display summary for a user, refreshed from token claims."""

    __tablename__ = "user_profile"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    username: Mapped[str] = mapped_column(Text, nullable=False)
    avatar: Mapped[str | None] = mapped_column(Text, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )


class Pin(Base):
    """Subject pin referenced by like, comment and save notifications."""

    __tablename__ = "pin"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    creator_id: Mapped[str] = mapped_column(String(64), nullable=False)
    title: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
