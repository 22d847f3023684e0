"""Student profile generation and chat-driven profile updates."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.db.models import User
from app.errors import UpstreamError
from app.schemas.user import OnboardingAnswers
from app.services import prompts
from app.services.llm_client import LLMClient

logger = logging.getLogger(__name__)
settings = get_settings()

NO_CHANGE_SENTINEL = "NULL"


def parse_profile_update(text: str) -> str | None:
    """Return the updated profile text, or None when the model answered with the no-change sentinel."""
    cleaned = text.strip().strip("\"'`.").strip()
    if not cleaned or cleaned.upper() == NO_CHANGE_SENTINEL:
        return None
    return text.strip()


class ProfileManager:
    """Maintains the free-text profile the chat and recommendation prompts are grounded on."""

    async def generate_initial_profile(
        self,
        db: AsyncSession,
        llm: LLMClient,
        user: User,
        onboarding: OnboardingAnswers,
    ) -> str:
        """
        Store the onboarding answers and generate the first profile description.

        The answers are committed before the AI call so they survive an AI failure.

        Raises:
            UpstreamError: If the AI call fails or returns nothing usable
        """
        user.onboarding = onboarding.to_record()
        await db.commit()

        prompt = prompts.profile_generation_prompt(user.onboarding)
        description = (await llm.complete(prompt, max_tokens=settings.llm_profile_max_tokens)).strip()
        if not description:
            raise UpstreamError("Failed to generate profile. Please try again.")

        user.profile_description = description
        await db.commit()
        await db.refresh(user)
        logger.info("Generated profile for user id=%s", user.id)
        return description

    async def check_for_update(
        self,
        llm: LLMClient,
        current_profile: str,
        user_message: str,
        history: list[tuple[str, str]],
    ) -> str | None:
        """
        Ask the model whether the new message changes the profile.

        Args:
            llm: AI collaborator
            current_profile: Existing profile description
            user_message: The message just sent
            history: (sender, content) pairs for context, oldest first

        Returns:
            The full updated profile, or None if nothing changed or the check failed
        """
        recent = history[-settings.profile_history_window:]
        prompt = prompts.profile_update_prompt(current_profile, user_message, recent)
        try:
            reply = await llm.complete(prompt, max_tokens=settings.llm_profile_max_tokens)
        except Exception:
            # Profile updates are not critical; the chat turn already succeeded
            logger.exception("Profile update check failed")
            return None
        return parse_profile_update(reply)


# Singleton instance
profile_manager = ProfileManager()
