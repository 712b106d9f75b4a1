"""Data access helpers for the user and pin read models."""
from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from pinloop.models import Pin, UserProfile

__all__ = ["PinRepository", "ProfileRepository"]


class ProfileRepository:
    """Upserts and bulk lookups of :class:`UserProfile` rows."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, user_id: str) -> UserProfile | None:
        return self.session.get(UserProfile, user_id)

    def upsert(self, user_id: str, username: str, avatar: str | None = None) -> UserProfile:
        """Insert or refresh a profile from identity claims; flushes, does not commit."""
        profile = self.get(user_id)
        if profile is None:
            profile = UserProfile(id=user_id, username=username, avatar=avatar)
            self.session.add(profile)
        elif profile.username != username or profile.avatar != avatar:
            profile.username = username
            profile.avatar = avatar
        self.session.flush()
        return profile

    def get_many(self, user_ids: Iterable[str]) -> dict[str, UserProfile]:
        ids = set(user_ids)
        if not ids:
            return {}
        rows = self.session.execute(select(UserProfile).where(UserProfile.id.in_(ids)))
        return {profile.id: profile for profile in rows.scalars()}


class PinRepository:
    """Inserts and bulk lookups of :class:`Pin` summaries."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, pin_id: str) -> Pin | None:
        return self.session.get(Pin, pin_id)

    def add(
        self,
        pin_id: str,
        creator_id: str,
        title: str | None = None,
        image_url: str | None = None,
    ) -> Pin:
        """Record a pin summary seen for the first time; existing rows are never rewritten."""
        pin = Pin(id=pin_id, creator_id=creator_id, title=title, image_url=image_url)
        self.session.add(pin)
        self.session.flush()
        return pin

    def get_many(self, pin_ids: Iterable[str | None]) -> dict[str, Pin]:
        ids = {pin_id for pin_id in pin_ids if pin_id}
        if not ids:
            return {}
        rows = self.session.execute(select(Pin).where(Pin.id.in_(ids)))
        return {pin.id: pin for pin in rows.scalars()}
