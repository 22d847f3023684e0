"""
Domain error taxonomy.

Services raise these; the HTTP layer maps them to status codes in one place
(see `register_exception_handlers`). Route handlers never build HTTP errors
for domain conditions themselves.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for errors that carry an HTTP status."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "An internal error occurred."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    """Malformed or out-of-range input."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request."


class UnauthorizedError(AppError):
    """No authenticated session."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authenticated"


class AuthError(UnauthorizedError):
    """Login failed. The message never says which credential was wrong."""

    default_message = "Invalid username or password"


class ForbiddenError(AppError):
    """Authenticated, but the target resource belongs to someone else."""

    status_code = status.HTTP_403_FORBIDDEN
    default_message = "You do not have permission to access this resource"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Resource already exists"


class UpstreamError(AppError):
    """The generative-AI collaborator failed."""

    default_message = "Failed to generate AI response. Please try again."


class AIConfigurationError(UpstreamError):
    """The AI collaborator cannot be used until an operator fixes its configuration."""

    default_message = (
        "AI service is not configured. Set the ANTHROPIC_API_KEY environment variable "
        "and restart the server."
    )


class StorageError(AppError):
    """Attachment storage failed."""

    default_message = "File storage operation failed."


class InternalError(AppError):
    pass


async def _app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Invalid request.", "errors": errors},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the domain error mapping to the application."""
    app.add_exception_handler(AppError, _app_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
