# src/pinloop/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .activity import router as activity_router
from .conversations import router as conversations_router
from .notifications import router as notifications_router
from .realtime import router as realtime_router

__all__ = [
    "activity_router",
    "conversations_router",
    "notifications_router",
    "realtime_router",
]
