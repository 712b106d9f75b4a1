"""Realtime socket frames and gateway payloads."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from .common import ApiModel
from .message import MessageResponse


class WsInbound(BaseModel):
    """Client to server frame."""

    type: str  # authenticate | join-conversation | leave-conversation | typing | stop-typing | ping
    data: dict[str, Any] = {}


class WsOutbound(BaseModel):
    """Server to client frame."""

    event: str
    data: Any = None


class NewMessageNotification(ApiModel):
    """Personal-channel envelope announcing a message in any conversation."""

    conversation_id: int
    message: MessageResponse


class TypingPayload(ApiModel):
    conversation_id: int
    user_id: str
    username: str | None = None


class RealtimeConfig(ApiModel):
    """Tunables clients need to honour the realtime protocol."""

    typing_timeout_seconds: float
    channel_prefixes: dict[str, str]
    events: list[str]


class AuthenticateFrame(ApiModel):
    token: str = Field(..., min_length=1)


class ConversationFrame(ApiModel):
    """Data of join, leave and typing frames."""

    conversation_id: int


class PresenceStatus(ApiModel):
    user_id: str
    online: bool
    connections: int = 0
