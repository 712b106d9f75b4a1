"""Repositories wrapping SQLAlchemy access for each aggregate."""

from .conversation_repo import ConversationRepository, sorted_pair
from .message_repo import MessageRepository
from .notification_repo import NotificationRepository
from .profile_repo import PinRepository, ProfileRepository

__all__ = [
    "ConversationRepository",
    "MessageRepository",
    "NotificationRepository",
    "PinRepository",
    "ProfileRepository",
    "sorted_pair",
]
