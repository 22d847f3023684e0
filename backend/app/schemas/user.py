"""User and onboarding schemas."""

from datetime import datetime

from pydantic import Field, field_validator

from app.db.models import SKIPPED_ANSWER
from app.schemas.base import BaseSchema


class OnboardingAnswers(BaseSchema):
    """
    The seven onboarding questionnaire answers.

    Omitted or blank answers are stored as the skipped-question sentinel.
    Serialized with camelCase keys, which is also the stored JSON shape.
    """

    programs: str = SKIPPED_ANSWER
    academic_env: str = SKIPPED_ANSWER
    location: str = SKIPPED_ANSWER
    culture: str = SKIPPED_ANSWER
    academic_stats: str = SKIPPED_ANSWER
    financial_aid: str = SKIPPED_ANSWER
    other: str = SKIPPED_ANSWER

    @field_validator("*", mode="before")
    @classmethod
    def blank_means_skipped(cls, value):
        if value is None or (isinstance(value, str) and not value.strip()):
            return SKIPPED_ANSWER
        return value

    def to_record(self) -> dict[str, str]:
        """Shape stored in the users.onboarding column."""
        return self.model_dump(by_alias=True)


class UserRead(BaseSchema):
    """Schema for reading user data. Never carries the password hash."""

    id: int
    username: str
    profile_description: str | None
    onboarding: OnboardingAnswers
    created_at: datetime
    updated_at: datetime


class OnboardingUpdate(BaseSchema):
    onboarding: OnboardingAnswers


class ProfileDescriptionUpdate(BaseSchema):
    profile_description: str = Field(..., min_length=1, max_length=20000)


class GenerateProfileRequest(BaseSchema):
    """Request to generate the initial profile from onboarding answers."""

    username: str | None = None
    onboarding: OnboardingAnswers


class GenerateProfileResponse(BaseSchema):
    profile_description: str
    success: bool = True
