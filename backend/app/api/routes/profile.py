"""Profile routes: onboarding answers and the AI-written profile description."""

from fastapi import APIRouter

from app.api.deps import LLM, CurrentUser, DbSession
from app.errors import ForbiddenError
from app.schemas.user import (
    GenerateProfileRequest,
    GenerateProfileResponse,
    OnboardingUpdate,
    ProfileDescriptionUpdate,
    UserRead,
)
from app.services.profile_manager import profile_manager

router = APIRouter(tags=["profile"])


@router.post("/user/onboarding", response_model=UserRead)
async def update_onboarding(data: OnboardingUpdate, current_user: CurrentUser, db: DbSession) -> UserRead:
    """Replace the onboarding answers."""
    current_user.onboarding = data.onboarding.to_record()
    await db.commit()
    await db.refresh(current_user)
    return UserRead.model_validate(current_user)


@router.post("/user/profile-description", response_model=UserRead)
async def update_profile_description(
    data: ProfileDescriptionUpdate,
    current_user: CurrentUser,
    db: DbSession,
) -> UserRead:
    """Overwrite the profile description by hand."""
    current_user.profile_description = data.profile_description
    await db.commit()
    await db.refresh(current_user)
    return UserRead.model_validate(current_user)


@router.post("/generate-profile", response_model=GenerateProfileResponse)
async def generate_profile(
    data: GenerateProfileRequest,
    current_user: CurrentUser,
    db: DbSession,
    llm: LLM,
) -> GenerateProfileResponse:
    """
    Store onboarding answers and generate the initial profile description.

    The optional username must match the session user; it exists only for
    clients that send it alongside the answers.
    """
    if data.username is not None and data.username != current_user.username:
        raise ForbiddenError("Cannot generate a profile for another user")

    description = await profile_manager.generate_initial_profile(db, llm, current_user, data.onboarding)
    return GenerateProfileResponse(profile_description=description)
