"""In-memory registry of which user each live connection belongs to."""

from __future__ import annotations

import logging
from collections import defaultdict

logger = logging.getLogger(__name__)


class PresenceRegistry:
    """Maps connection ids to authenticated user ids.

    One instance is created at application startup and injected wherever
    presence is needed. Entries are only changed by the owning connection's
    own authenticate and disconnect events. Nothing is persisted; after a
    restart every client reconnects and authenticates again.
    """

    def __init__(self) -> None:
        self._user_by_connection: dict[str, str] = {}
        self._connections_by_user: defaultdict[str, set[str]] = defaultdict(set)

    def bind(self, connection_id: str, user_id: str) -> None:
        """Associate ``connection_id`` with ``user_id``, replacing any earlier binding."""
        previous = self._user_by_connection.get(connection_id)
        if previous == user_id:
            return
        if previous is not None:
            self._discard(connection_id, previous)
        self._user_by_connection[connection_id] = user_id
        self._connections_by_user[user_id].add(connection_id)

    def unbind(self, connection_id: str) -> str | None:
        """Forget ``connection_id``; returns the user it was bound to, if any."""
        user_id = self._user_by_connection.pop(connection_id, None)
        if user_id is not None:
            self._discard(connection_id, user_id)
        return user_id

    def user_for(self, connection_id: str) -> str | None:
        return self._user_by_connection.get(connection_id)

    def connections_for(self, user_id: str) -> frozenset[str]:
        return frozenset(self._connections_by_user.get(user_id, ()))

    def is_online(self, user_id: str) -> bool:
        return bool(self._connections_by_user.get(user_id))

    def online_users(self) -> frozenset[str]:
        return frozenset(self._connections_by_user)

    def __len__(self) -> int:
        return len(self._user_by_connection)

    def _discard(self, connection_id: str, user_id: str) -> None:
        connections = self._connections_by_user.get(user_id)
        if connections is None:
            return
        connections.discard(connection_id)
        if not connections:
            del self._connections_by_user[user_id]
