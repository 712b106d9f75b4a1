"""Business logic services for the pinloop service."""

from .activity import ActivityService
from .conversations import ConversationService
from .gateway import Connection, GatewayEvent, RealtimeGateway
from .messages import MessageService
from .notifications import NotificationService
from .presence import PresenceRegistry

__all__ = [
    "ActivityService",
    "Connection",
    "ConversationService",
    "GatewayEvent",
    "MessageService",
    "NotificationService",
    "PresenceRegistry",
    "RealtimeGateway",
]
