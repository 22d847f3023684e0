"""
Account and login-session service.

Passwords are bcrypt-hashed with a per-password salt. A login creates a
UserSession row; the cookie carries a signed JWT whose subject is that row's
random session key, so logging out (deleting the row) revokes the cookie.
"""

import asyncio
import logging
import secrets
from datetime import datetime, timedelta, timezone

import bcrypt
from jose import JWTError, jwt
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.db.models import User, UserSession, default_onboarding
from app.errors import AuthError, ConflictError
from app.schemas.user import OnboardingAnswers

logger = logging.getLogger(__name__)
settings = get_settings()

# bcrypt only reads the first 72 bytes of a password
_BCRYPT_MAX_BYTES = 72

_dummy_hash: bytes | None = None


# =============================================================================
# PASSWORD HASHING
# =============================================================================


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


async def hash_password(password: str) -> str:
    """Hash a password for storage. bcrypt runs in a worker thread."""
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    hashed = await asyncio.to_thread(bcrypt.hashpw, _password_bytes(password), salt)
    return hashed.decode("utf-8")


async def verify_password(password: str, password_hash: str) -> bool:
    """Constant-time comparison of a password against a stored hash."""
    try:
        return await asyncio.to_thread(
            bcrypt.checkpw, _password_bytes(password), password_hash.encode("utf-8")
        )
    except ValueError:
        logger.warning("Stored password hash is malformed")
        return False


async def _burn_hash_time(password: str) -> None:
    """Spend the same work as a real check so unknown usernames are not distinguishable by timing."""
    global _dummy_hash
    if _dummy_hash is None:
        _dummy_hash = await asyncio.to_thread(
            bcrypt.hashpw, b"wayfarer", bcrypt.gensalt(rounds=settings.bcrypt_rounds)
        )
    await asyncio.to_thread(bcrypt.checkpw, _password_bytes(password), _dummy_hash)


# =============================================================================
# SESSION TOKENS
# =============================================================================


def create_session_token(session_key: str, expires_at: datetime) -> str:
    """Sign a cookie token referencing a server-side session row."""
    payload = {"sub": session_key, "exp": expires_at}
    return jwt.encode(payload, settings.session_secret_key, algorithm=settings.session_algorithm)


def decode_session_token(token: str) -> str | None:
    """Return the session key if the token is valid and unexpired, else None."""
    try:
        payload = jwt.decode(
            token,
            settings.session_secret_key,
            algorithms=[settings.session_algorithm],
        )
    except JWTError:
        return None
    session_key = payload.get("sub")
    return session_key if isinstance(session_key, str) else None


# =============================================================================
# ACCOUNTS
# =============================================================================


async def get_user_by_username(db: AsyncSession, username: str) -> User | None:
    result = await db.execute(select(User).where(User.username == username))
    return result.scalar_one_or_none()


async def register_user(
    db: AsyncSession,
    username: str,
    password: str,
    onboarding: OnboardingAnswers | None = None,
) -> User:
    """Create an account. Raises ConflictError if the username is taken."""
    if await get_user_by_username(db, username) is not None:
        raise ConflictError("Username already exists")

    user = User(
        username=username,
        password_hash=await hash_password(password),
        onboarding=onboarding.to_record() if onboarding else default_onboarding(),
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError as e:
        # Lost a race with a concurrent registration for the same name
        await db.rollback()
        raise ConflictError("Username already exists") from e
    await db.refresh(user)
    logger.info("Registered user id=%s", user.id)
    return user


async def authenticate_user(db: AsyncSession, username: str, password: str) -> User:
    """Verify credentials. The error never reveals which part was wrong."""
    user = await get_user_by_username(db, username)
    if user is None:
        await _burn_hash_time(password)
        raise AuthError()
    if not await verify_password(password, user.password_hash):
        raise AuthError()
    return user


# =============================================================================
# LOGIN SESSIONS
# =============================================================================


async def start_session(db: AsyncSession, user: User) -> str:
    """Persist a new login session and return the signed cookie token."""
    now = datetime.now(timezone.utc)
    await db.execute(delete(UserSession).where(UserSession.expires_at <= now))

    expires_at = now + timedelta(minutes=settings.session_expire_minutes)
    session_key = secrets.token_urlsafe(32)
    db.add(UserSession(user_id=user.id, session_key=session_key, expires_at=expires_at))
    await db.commit()
    return create_session_token(session_key, expires_at)


async def end_session(db: AsyncSession, token: str | None) -> None:
    """Delete the session referenced by the token. Unknown or invalid tokens are ignored."""
    if not token:
        return
    session_key = decode_session_token(token)
    if session_key is None:
        return
    await db.execute(delete(UserSession).where(UserSession.session_key == session_key))
    await db.commit()


async def resolve_session_user(db: AsyncSession, token: str | None) -> User | None:
    """Return the user for a live session token, or None."""
    if not token:
        return None
    session_key = decode_session_token(token)
    if session_key is None:
        return None

    result = await db.execute(
        select(User)
        .join(UserSession, UserSession.user_id == User.id)
        .where(
            UserSession.session_key == session_key,
            UserSession.expires_at > datetime.now(timezone.utc),
        )
    )
    return result.scalar_one_or_none()
