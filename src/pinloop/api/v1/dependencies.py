"""Shared API dependencies for authentication and common functionality."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session
from starlette.requests import HTTPConnection

from pinloop.core.errors import UnauthorizedError
from pinloop.core.security import Identity, decode_identity
from pinloop.db.session import commit_or_rollback, get_db
from pinloop.repositories import ProfileRepository
from pinloop.services.gateway import RealtimeGateway
from pinloop.services.presence import PresenceRegistry

# HTTP Bearer scheme; auto_error is off so missing credentials become 401, not 403
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def sync_profile(db: Session, identity: Identity) -> None:
    """Refresh the locally mirrored profile from identity claims."""
    ProfileRepository(db).upsert(identity.user_id, identity.username, identity.avatar)
    commit_or_rollback(db, "sync user profile")


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    db: SessionDep,
) -> Identity:
    """Get the current authenticated user from the bearer token.

    Args:
        credentials: HTTP Bearer token credentials
        db: Database session

    Returns:
        Identity asserted by the token

    Raises:
        HTTPException: If the token is missing or invalid
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        identity = decode_identity(credentials.credentials)
    except UnauthorizedError as err:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=err.message,
            headers={"WWW-Authenticate": "Bearer"},
        ) from err

    sync_profile(db, identity)
    return identity


def get_gateway(connection: HTTPConnection) -> RealtimeGateway:
    """Return the process-wide gateway created at startup."""
    return connection.app.state.gateway


def get_presence(connection: HTTPConnection) -> PresenceRegistry:
    """Return the process-wide presence registry created at startup."""
    return connection.app.state.presence


# Type aliases for commonly injected collaborators
CurrentUserDep = Annotated[Identity, Depends(get_current_user)]
GatewayDep = Annotated[RealtimeGateway, Depends(get_gateway)]
PresenceDep = Annotated[PresenceRegistry, Depends(get_presence)]
