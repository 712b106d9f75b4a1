# src/pinloop/api/v1/endpoints/realtime.py
"""Realtime WebSocket endpoint and protocol configuration.

Protocol: connect, send ``authenticate {token}``, then ``join-conversation`` /
``leave-conversation`` / ``typing`` / ``stop-typing`` frames. The server pushes
``new-message``, ``new-message-notification``, ``new-notification``,
``user-typing`` and ``user-stop-typing`` events. Until it authenticates, a
connection receives nothing but replies to its own frames.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from pinloop.api.v1.dependencies import (
    CurrentUserDep,
    GatewayDep,
    PresenceDep,
    SessionDep,
    sync_profile,
)
from pinloop.core.errors import AppError, ForbiddenError, UnauthorizedError
from pinloop.core.security import decode_identity
from pinloop.core.settings import settings
from pinloop.schemas import (
    AuthenticateFrame,
    ConversationFrame,
    PresenceStatus,
    RealtimeConfig,
    TypingPayload,
    WsInbound,
    WsOutbound,
)
from pinloop.services.conversations import ConversationService
from pinloop.services.gateway import (
    BROADCAST_EVENTS,
    CONVERSATION_CHANNEL_PREFIX,
    EVENT_AUTHENTICATED,
    EVENT_ERROR,
    EVENT_JOINED,
    EVENT_LEFT,
    EVENT_PONG,
    EVENT_USER_STOP_TYPING,
    EVENT_USER_TYPING,
    USER_CHANNEL_PREFIX,
    Connection,
    RealtimeGateway,
    conversation_channel,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/realtime", tags=["realtime"])


@router.get("/config", response_model=RealtimeConfig)
async def get_realtime_config() -> RealtimeConfig:
    """Return the protocol tunables clients must honour."""
    return RealtimeConfig(
        typing_timeout_seconds=settings.typing_timeout_seconds,
        channel_prefixes={"user": USER_CHANNEL_PREFIX, "conversation": CONVERSATION_CHANNEL_PREFIX},
        events=list(BROADCAST_EVENTS),
    )


@router.get("/presence/{user_id}", response_model=PresenceStatus)
async def get_presence_status(
    user_id: str,
    current_user: CurrentUserDep,
    presence: PresenceDep,
) -> PresenceStatus:
    """Report whether a user currently holds an authenticated socket."""
    connections = presence.connections_for(user_id)
    return PresenceStatus(user_id=user_id, online=bool(connections), connections=len(connections))


class FrameHandler:
    """Dispatches inbound frames of one connection."""

    def __init__(self, connection: Connection, gateway: RealtimeGateway, db: Session) -> None:
        self.connection = connection
        self.gateway = gateway
        self.db = db
        self._handlers: dict[str, Callable[[dict], None]] = {
            "authenticate": self.authenticate,
            "join-conversation": self.join_conversation,
            "leave-conversation": self.leave_conversation,
            "typing": self.typing,
            "stop-typing": self.stop_typing,
            "ping": self.ping,
        }

    def handle(self, raw: str) -> None:
        try:
            frame = WsInbound.model_validate_json(raw)
        except PydanticValidationError:
            self._error(None, "Malformed frame", 400)
            return

        handler = self._handlers.get(frame.type)
        if handler is None:
            self._error(frame.type, f"Unknown frame type: {frame.type}", 400)
            return
        try:
            handler(frame.data)
        except PydanticValidationError as exc:
            self._error(frame.type, f"Invalid {frame.type} data: {exc.error_count()} error(s)", 400)
        except AppError as exc:
            # End any read the rejected frame started so the socket holds no pool connection.
            self.db.rollback()
            self._error(frame.type, exc.message, exc.status_code)

    def authenticate(self, data: dict) -> None:
        token = AuthenticateFrame.model_validate(data).token
        identity = decode_identity(token)
        sync_profile(self.db, identity)
        self.gateway.authenticate(self.connection, identity.user_id, identity.username)
        self.gateway.send(
            self.connection,
            EVENT_AUTHENTICATED,
            {"userId": identity.user_id, "connectionId": self.connection.id},
        )

    def join_conversation(self, data: dict) -> None:
        conversation_id = ConversationFrame.model_validate(data).conversation_id
        self._require_authenticated()
        ConversationService(self.db).get_for_participant(conversation_id, self.connection.user_id)
        # End the read transaction so the long-lived session does not hold a snapshot.
        self.db.commit()
        self.gateway.join(self.connection, conversation_channel(conversation_id))
        self.gateway.send(self.connection, EVENT_JOINED, {"conversationId": conversation_id})

    def leave_conversation(self, data: dict) -> None:
        conversation_id = ConversationFrame.model_validate(data).conversation_id
        self.gateway.leave(self.connection, conversation_channel(conversation_id))
        self.gateway.send(self.connection, EVENT_LEFT, {"conversationId": conversation_id})

    def typing(self, data: dict) -> None:
        self._relay_typing(data, EVENT_USER_TYPING)

    def stop_typing(self, data: dict) -> None:
        self._relay_typing(data, EVENT_USER_STOP_TYPING)

    def ping(self, data: dict) -> None:
        self.gateway.send(self.connection, EVENT_PONG, data or None)

    def _relay_typing(self, data: dict, event: str) -> None:
        conversation_id = ConversationFrame.model_validate(data).conversation_id
        self._require_authenticated()
        channel = conversation_channel(conversation_id)
        if channel not in self.connection.rooms:
            raise ForbiddenError("Join the conversation before sending typing signals")
        payload = TypingPayload(
            conversation_id=conversation_id,
            user_id=self.connection.user_id,
            username=self.connection.username,
        )
        self.gateway.publish(channel, event, payload.to_payload(), exclude=self.connection)

    def _require_authenticated(self) -> None:
        if not self.connection.authenticated:
            raise UnauthorizedError("Authenticate first")

    def _error(self, frame_type: str | None, detail: str, status_code: int) -> None:
        self.gateway.send(
            self.connection,
            EVENT_ERROR,
            {"type": frame_type, "detail": detail, "status": status_code},
        )


async def _pump(websocket: WebSocket, connection: Connection) -> None:
    """Forward delivered events to the socket in order."""
    async for event in connection.events():
        frame = WsOutbound(event=event.event, data=event.data)
        try:
            await websocket.send_json(frame.model_dump(mode="json"))
        except (WebSocketDisconnect, RuntimeError):
            logger.debug("Socket for %s closed while sending %s", connection.id, event.event)
            return


@router.websocket("/ws")
async def realtime_socket(
    websocket: WebSocket,
    db: SessionDep,
    gateway: GatewayDep,
) -> None:
    """Serve one realtime client connection."""
    await websocket.accept()
    connection = gateway.connect()
    handler = FrameHandler(connection, gateway, db)
    sender = asyncio.create_task(_pump(websocket, connection))
    try:
        while True:
            raw = await websocket.receive_text()
            handler.handle(raw)
    except WebSocketDisconnect:
        pass
    finally:
        gateway.disconnect(connection)
        sender.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sender


__all__ = ["FrameHandler", "router"]
