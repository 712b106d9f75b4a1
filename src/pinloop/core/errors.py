"""Error taxonomy shared by services, HTTP routes and the realtime socket."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for failures that map onto a client-visible status."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)


class UnauthorizedError(AppError):
    """No valid identity is attached to the request or connection."""

    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenError(AppError):
    """Authenticated, but not a participant or owner of the resource."""

    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(AppError):
    """Referenced conversation, notification or user does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class ValidationError(AppError):
    """Rejected input such as empty or oversized message content."""

    status_code = status.HTTP_400_BAD_REQUEST


class InvalidOperationError(ValidationError):
    """Structurally valid request that cannot be honoured, e.g. messaging oneself."""


class TransientError(AppError):
    """Persistence or delivery I/O failure; the caller may retry."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


def register_exception_handlers(app: FastAPI) -> None:
    """Render :class:`AppError` subclasses as ``{"detail": message}`` responses."""

    @app.exception_handler(AppError)
    async def app_error_handler(_: Request, exc: AppError) -> JSONResponse:
        if isinstance(exc, TransientError):
            logger.error("TransientError: %s", exc.message)
        else:
            logger.info("%s: %s", type(exc).__name__, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})
