# src/pinloop/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    activity_router,
    conversations_router,
    notifications_router,
    realtime_router,
)

__all__ = [
    "conversations_router",
    "notifications_router",
    "activity_router",
    "realtime_router",
]
