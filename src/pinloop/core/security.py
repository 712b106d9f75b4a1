"""Bearer token helpers for identities issued by the external identity provider.

The service never issues credentials to end users. ``create_access_token`` exists
for development tooling and tests, signing tokens the same way the identity
provider does so that ``decode_identity`` accepts them.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from pinloop.core.errors import UnauthorizedError
from pinloop.core.settings import settings


@dataclass(frozen=True)
class Identity:
    """Authenticated user as asserted by a verified token."""

    user_id: str
    username: str
    avatar: str | None = None


def create_access_token(
    user_id: str,
    username: str,
    avatar: str | None = None,
    expires_minutes: int | None = None,
) -> str:
    """Sign a JWT carrying the identity claims consumed by this service."""
    claims: dict[str, object] = {"sub": user_id, "username": username}
    if avatar is not None:
        claims["avatar"] = avatar
    minutes = settings.access_token_expire_minutes if expires_minutes is None else expires_minutes
    claims["exp"] = datetime.now(UTC) + timedelta(minutes=minutes)
    encoded_jwt: str = jwt.encode(claims, settings.secret_key, algorithm=settings.jwt_algorithm)
    return encoded_jwt


def decode_identity(token: str) -> Identity:
    """Verify ``token`` and return the identity it carries.

    Raises:
        UnauthorizedError: If the token is malformed, expired, wrongly signed or
            lacks a subject.
    """
    if not token:
        raise UnauthorizedError("Could not validate credentials")
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as err:
        raise UnauthorizedError("Could not validate credentials") from err

    subject = payload.get("sub")
    if not subject or not isinstance(subject, str):
        raise UnauthorizedError("Could not validate credentials")

    username = payload.get("username") or subject
    avatar = payload.get("avatar")
    return Identity(user_id=subject, username=str(username), avatar=avatar)
