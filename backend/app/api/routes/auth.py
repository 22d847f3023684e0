"""
Authentication Routes

Endpoints:
- POST /register - Create an account and start a session
- POST /login - Verify username/password and start a session
- POST /logout - End the session (idempotent)
- GET /me, GET /user - Get the current user

Session flow:
1. Register or login creates a server-side session row
2. The response sets an HttpOnly cookie holding a signed reference to that row
3. Every authenticated request resolves the cookie back to the row and its user
4. Logout deletes the row, so the cookie stops working even if a copy survives
"""

from fastapi import APIRouter, Response, status

from app.api.deps import (
    CurrentUser,
    DbSession,
    SessionToken,
    clear_session_cookie,
    set_session_cookie,
)
from app.schemas.auth import LoginRequest, RegisterRequest
from app.schemas.user import UserRead
from app.services import auth as auth_service

router = APIRouter(tags=["auth"])


@router.post("/register", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def register(data: RegisterRequest, response: Response, db: DbSession) -> UserRead:
    """
    Create an account. Omitted onboarding answers default to the skipped-question sentinel.

    Returns 409 if the username is taken.
    """
    user = await auth_service.register_user(db, data.username, data.password, data.onboarding)
    token = await auth_service.start_session(db, user)
    set_session_cookie(response, token)
    return UserRead.model_validate(user)


@router.post("/login", response_model=UserRead)
async def login(data: LoginRequest, response: Response, db: DbSession) -> UserRead:
    """Log in. Unknown username and wrong password produce the same 401."""
    user = await auth_service.authenticate_user(db, data.username, data.password)
    token = await auth_service.start_session(db, user)
    set_session_cookie(response, token)
    return UserRead.model_validate(user)


@router.post("/logout")
async def logout(response: Response, db: DbSession, token: SessionToken) -> dict:
    """End the session and clear the cookie. Safe to call without a session."""
    await auth_service.end_session(db, token)
    clear_session_cookie(response)
    return {"success": True, "message": "Logout successful"}


@router.get("/me", response_model=UserRead)
async def get_me(current_user: CurrentUser) -> UserRead:
    """
    Get the current authenticated user's profile.

    Useful for checking whether the session is still valid after a page reload.
    """
    return UserRead.model_validate(current_user)


@router.get("/user", response_model=UserRead)
async def get_user(current_user: CurrentUser) -> UserRead:
    """Alias of /me kept for older clients."""
    return UserRead.model_validate(current_user)
