# src/pinloop/models/__init__.py
"""SQLAlchemy models for the pinloop service."""

from .conversation import Conversation, Message
from .notification import NOTIFICATION_TYPES, TOGGLE_NOTIFICATION_TYPES, Notification
from .user import Pin, UserProfile

__all__ = [
    "Conversation", "Message",
    "Notification", "NOTIFICATION_TYPES", "TOGGLE_NOTIFICATION_TYPES",
    "Pin", "UserProfile",
]
