# src/pinloop/main.py
"""Main entry point for the pinloop realtime service."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from pinloop.api.v1 import (
    activity_router,
    conversations_router,
    notifications_router,
    realtime_router,
)
from pinloop.core.errors import register_exception_handlers
from pinloop.core.logging import configure_logging
from pinloop.core.settings import settings
from pinloop.db.session import create_tables
from pinloop.services.gateway import RealtimeGateway
from pinloop.services.presence import PresenceRegistry

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Direct messages, notifications and realtime delivery for pinloop",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

register_exception_handlers(app)

# Include API routers
app.include_router(conversations_router, prefix="/api/v1")
app.include_router(notifications_router, prefix="/api/v1")
app.include_router(activity_router, prefix="/api/v1")
app.include_router(realtime_router, prefix="/api/v1")

# One registry and gateway per process; handlers receive them through dependencies.
app.state.presence = PresenceRegistry()
app.state.gateway = RealtimeGateway(app.state.presence)


@app.on_event("startup")
async def on_startup() -> None:
    configure_logging()
    if settings.debug:
        # Local development without running migrations.
        create_tables()
    logger.info("%s %s starting", settings.app_name, settings.app_version)


@app.on_event("shutdown")
async def on_shutdown() -> None:
    gateway: RealtimeGateway = app.state.gateway
    presence: PresenceRegistry = app.state.presence
    logger.info(
        "Shutting down with %d open connections (%d authenticated, %d users online)",
        gateway.connection_count,
        len(presence),
        len(presence.online_users()),
    )


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "description": "Direct messages, notifications and realtime delivery for pinloop",
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("pinloop.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
