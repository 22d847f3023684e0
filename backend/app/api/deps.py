"""
FastAPI Dependencies for Authentication and Collaborators.

Key patterns:
1. get_current_user: Resolves the session cookie to a User, 401 otherwise
2. User-scoped queries: All service functions accept user_id to enforce ownership
3. No global "current user" state - always pass user explicitly
4. The AI client and attachment storage are dependencies so tests can override them

Security model:
- Signed session token stored in an HttpOnly cookie
- The token references a server-side session row; logout deletes the row
- Ownership checks happen in the service layer, not middleware
"""

from typing import Annotated

from fastapi import Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.db.models import User
from app.db.session import get_db
from app.errors import UnauthorizedError
from app.services import auth as auth_service
from app.services.llm_client import LLMClient, llm_client
from app.services.s3 import AttachmentStorage, get_attachment_storage

settings = get_settings()


# =============================================================================
# SESSION COOKIE
# =============================================================================


def _cookie_kwargs() -> dict:
    # For cross-domain deployments (e.g., Vercel + Render), use samesite="none" + secure=True
    return {
        "httponly": True,
        "secure": settings.cookie_cross_domain or settings.environment != "development",
        "samesite": "none" if settings.cookie_cross_domain else "lax",
    }


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.session_expire_minutes * 60,
        **_cookie_kwargs(),
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(key=settings.session_cookie_name, **_cookie_kwargs())


def get_session_token(request: Request) -> str | None:
    """Read the raw session token from the request cookie."""
    return request.cookies.get(settings.session_cookie_name)


# =============================================================================
# AUTHENTICATION DEPENDENCIES
# =============================================================================


async def get_optional_user(
    token: Annotated[str | None, Depends(get_session_token)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User | None:
    """Resolve the current user, or None for anonymous requests."""
    return await auth_service.resolve_session_user(db, token)


async def get_current_user(
    user: Annotated[User | None, Depends(get_optional_user)],
) -> User:
    """
    Return the current authenticated user.

    This is the primary authentication dependency. Use it in route handlers:

        @router.get("/colleges")
        async def list_colleges(current_user: CurrentUser):
            # current_user is guaranteed to be authenticated
            ...

    Raises UnauthorizedError (401) if the cookie is missing, invalid, expired,
    or refers to a session that has been logged out.
    """
    if user is None:
        raise UnauthorizedError()
    return user


# =============================================================================
# COLLABORATORS
# =============================================================================


def get_llm_client() -> LLMClient:
    return llm_client


# Type aliases for dependency injection
CurrentUser = Annotated[User, Depends(get_current_user)]
OptionalUser = Annotated[User | None, Depends(get_optional_user)]
DbSession = Annotated[AsyncSession, Depends(get_db)]
SessionToken = Annotated[str | None, Depends(get_session_token)]
LLM = Annotated[LLMClient, Depends(get_llm_client)]
Storage = Annotated[AttachmentStorage, Depends(get_attachment_storage)]
