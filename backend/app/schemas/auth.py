"""Authentication schemas."""

from pydantic import ConfigDict, Field, field_validator

from app.schemas.base import BaseSchema
from app.schemas.user import OnboardingAnswers


class _Credentials(BaseSchema):
    # Passwords are compared byte-for-byte, so only the username is trimmed
    model_config = ConfigDict(str_strip_whitespace=False)

    username: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1, max_length=1024)

    @field_validator("username")
    @classmethod
    def strip_username(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Username is required")
        return value


class RegisterRequest(_Credentials):
    """Request schema for account registration."""

    onboarding: OnboardingAnswers | None = None


class LoginRequest(_Credentials):
    """Request schema for username/password login."""
