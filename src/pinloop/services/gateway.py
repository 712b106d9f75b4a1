"""In-process publish/subscribe hub for realtime delivery.

State-mutating services call :meth:`RealtimeGateway.publish` after their
writes commit; WebSocket handlers drain each :class:`Connection` through
:meth:`Connection.events`. Delivery is fire-and-forget and at-most-once: a
publish never awaits, nothing is retained for offline clients, and a
connection whose queue is full simply misses the event. Clients catch up
through the listing APIs.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections import defaultdict
from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Any

from pinloop.core.errors import InvalidOperationError, UnauthorizedError
from pinloop.core.settings import settings
from pinloop.services.presence import PresenceRegistry

logger = logging.getLogger(__name__)

USER_CHANNEL_PREFIX = "user:"
CONVERSATION_CHANNEL_PREFIX = "conversation:"

# Event catalog
EVENT_NEW_MESSAGE = "new-message"
EVENT_NEW_MESSAGE_NOTIFICATION = "new-message-notification"
EVENT_NEW_NOTIFICATION = "new-notification"
EVENT_USER_TYPING = "user-typing"
EVENT_USER_STOP_TYPING = "user-stop-typing"

# Protocol acknowledgements sent only to the requesting connection
EVENT_AUTHENTICATED = "authenticated"
EVENT_JOINED = "joined-conversation"
EVENT_LEFT = "left-conversation"
EVENT_PONG = "pong"
EVENT_ERROR = "error"

BROADCAST_EVENTS = (
    EVENT_NEW_MESSAGE,
    EVENT_NEW_MESSAGE_NOTIFICATION,
    EVENT_NEW_NOTIFICATION,
    EVENT_USER_TYPING,
    EVENT_USER_STOP_TYPING,
)


def user_channel(user_id: str) -> str:
    return f"{USER_CHANNEL_PREFIX}{user_id}"


def conversation_channel(conversation_id: int | str) -> str:
    return f"{CONVERSATION_CHANNEL_PREFIX}{conversation_id}"


@dataclass(frozen=True)
class GatewayEvent:
    """One delivered event as seen by a connection."""

    channel: str | None
    event: str
    data: Any


class Connection:
    """A live client session and its outbound event stream."""

    def __init__(self, connection_id: str, queue_size: int) -> None:
        self.id = connection_id
        self.user_id: str | None = None
        self.username: str | None = None
        self.rooms: set[str] = set()
        self.dropped = 0
        self.closed = False
        self._queue: asyncio.Queue[GatewayEvent | None] = asyncio.Queue(maxsize=queue_size)

    @property
    def authenticated(self) -> bool:
        return self.user_id is not None

    @property
    def personal_channel(self) -> str | None:
        return user_channel(self.user_id) if self.user_id is not None else None

    def deliver(self, event: GatewayEvent) -> bool:
        """Enqueue ``event`` without blocking; returns ``False`` if it was dropped."""
        if self.closed:
            return False
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            self.dropped += 1
            logger.warning(
                "Dropping %s for connection %s: outbound queue full", event.event, self.id
            )
            return False
        return True

    def drain(self) -> list[GatewayEvent]:
        """Remove and return every queued event without waiting."""
        events: list[GatewayEvent] = []
        while True:
            try:
                item = self._queue.get_nowait()
            except asyncio.QueueEmpty:
                return events
            if item is not None:
                events.append(item)

    async def events(self) -> AsyncIterator[GatewayEvent]:
        """Yield delivered events in publish order until the connection closes."""
        while True:
            item = await self._queue.get()
            if item is None:
                return
            yield item

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        try:
            self._queue.put_nowait(None)
        except asyncio.QueueFull:
            # Make room for the end-of-stream marker.
            self._queue.get_nowait()
            self._queue.put_nowait(None)


class RealtimeGateway:
    """Single-process channel hub mapping users and conversations to connections."""

    def __init__(self, presence: PresenceRegistry, queue_size: int | None = None) -> None:
        self.presence = presence
        self.queue_size = queue_size or settings.gateway_queue_size
        self._connections: dict[str, Connection] = {}
        self._members: defaultdict[str, set[str]] = defaultdict(set)

    # Connection lifecycle

    def connect(self) -> Connection:
        connection = Connection(uuid.uuid4().hex, self.queue_size)
        self._connections[connection.id] = connection
        logger.info("Client connected: %s", connection.id)
        return connection

    def disconnect(self, connection: Connection) -> None:
        """Drop every membership of ``connection`` and end its event stream."""
        for room in list(connection.rooms):
            self._remove_member(room, connection.id)
        connection.rooms.clear()
        if connection.personal_channel is not None:
            self._remove_member(connection.personal_channel, connection.id)
        user_id = self.presence.unbind(connection.id)
        self._connections.pop(connection.id, None)
        connection.close()
        if user_id is not None:
            logger.info("User %s disconnected (%s)", user_id, connection.id)
        else:
            logger.info("Client disconnected: %s", connection.id)

    def authenticate(self, connection: Connection, user_id: str, username: str | None = None) -> None:
        """Bind ``connection`` to the personal channel of ``user_id``."""
        if connection.user_id is not None and connection.user_id != user_id:
            # Rebinding to another identity also drops rooms joined under the old one.
            self._remove_member(user_channel(connection.user_id), connection.id)
            for room in list(connection.rooms):
                self._remove_member(room, connection.id)
            connection.rooms.clear()
        connection.user_id = user_id
        connection.username = username
        self._members[user_channel(user_id)].add(connection.id)
        self.presence.bind(connection.id, user_id)
        logger.info("User %s authenticated on %s", user_id, connection.id)

    # Room membership

    def join(self, connection: Connection, channel: str) -> None:
        if not connection.authenticated:
            raise UnauthorizedError("Authenticate before joining channels")
        if channel.startswith(USER_CHANNEL_PREFIX):
            raise InvalidOperationError("Personal channels are assigned at authentication")
        self._members[channel].add(connection.id)
        connection.rooms.add(channel)
        logger.debug("Connection %s joined %s", connection.id, channel)

    def leave(self, connection: Connection, channel: str) -> None:
        if channel not in connection.rooms:
            return
        connection.rooms.discard(channel)
        self._remove_member(channel, connection.id)

    def members(self, channel: str) -> frozenset[str]:
        return frozenset(self._members.get(channel, ()))

    def get_connection(self, connection_id: str) -> Connection | None:
        return self._connections.get(connection_id)

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    # Delivery

    def publish(
        self,
        channel: str,
        event: str,
        data: Any,
        exclude: Connection | None = None,
    ) -> int:
        """Deliver ``data`` to every connection currently in ``channel``.

        Returns:
            Number of connections the event was enqueued for.
        """
        envelope = GatewayEvent(channel=channel, event=event, data=data)
        delivered = 0
        for connection_id in tuple(self._members.get(channel, ())):
            if exclude is not None and connection_id == exclude.id:
                continue
            connection = self._connections.get(connection_id)
            if connection is not None and connection.deliver(envelope):
                delivered += 1
        logger.debug("Published %s to %s (%d receivers)", event, channel, delivered)
        return delivered

    def publish_to_user(self, user_id: str, event: str, data: Any) -> int:
        return self.publish(user_channel(user_id), event, data)

    def send(self, connection: Connection, event: str, data: Any = None) -> bool:
        """Deliver a reply to a single connection outside any channel."""
        return connection.deliver(GatewayEvent(channel=None, event=event, data=data))

    def _remove_member(self, channel: str, connection_id: str) -> None:
        members = self._members.get(channel)
        if members is None:
            return
        members.discard(connection_id)
        if not members:
            del self._members[channel]
