"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .activity import ActivityEvent
from .conversation import ConversationCreate, ConversationResponse
from .message import MessageCreate, MessageResponse
from .notification import (
    MarkReadResult,
    NotificationList,
    NotificationMarkRead,
    NotificationResponse,
    NotificationType,
)
from .realtime import (
    AuthenticateFrame,
    ConversationFrame,
    NewMessageNotification,
    PresenceStatus,
    RealtimeConfig,
    TypingPayload,
    WsInbound,
    WsOutbound,
)
from .user import PinReference, PinSummary, UserSummary

__all__ = [
    "ActivityEvent",
    "ConversationCreate", "ConversationResponse",
    "MessageCreate", "MessageResponse",
    "MarkReadResult", "NotificationList", "NotificationMarkRead",
    "NotificationResponse", "NotificationType",
    "AuthenticateFrame", "ConversationFrame",
    "NewMessageNotification", "PresenceStatus", "RealtimeConfig", "TypingPayload", "WsInbound", "WsOutbound",
    "PinReference", "PinSummary", "UserSummary",
]
