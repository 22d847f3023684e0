"""
Advisors and read-only sharing.

An advisor's share token is the only credential for the shared view. Every
lookup re-reads the advisor row, so deactivating an advisor takes effect
on the next request.
"""

import logging
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models import (
    SHARED_VIEW_STATUS_ORDER,
    Advisor,
    AdvisorType,
    ChatMessage,
    ChatSession,
    CollegeRecommendation,
    SharedChatSession,
    User,
)
from app.errors import ForbiddenError, NotFoundError, ValidationError
from app.schemas.advisors import SharedAdvisorInfo, SharedProfileRead, SharedUserInfo
from app.schemas.chat import ChatSessionRead
from app.schemas.colleges import CollegeRead
from app.schemas.recommendations import RecommendationRead
from app.services import prompts
from app.services.colleges import list_colleges_by_status
from app.services.llm_client import LLMClient
from app.services.ownership import get_user_resource_or_none
from app.services.recommendations import list_recommendations, parse_college_info

logger = logging.getLogger(__name__)

FALLBACK_DESCRIPTION = "Recommended by your advisor."
FALLBACK_REASON = "Your advisor thinks this college would be a good fit for you."


# =============================================================================
# ADVISOR MANAGEMENT
# =============================================================================


async def list_advisors(db: AsyncSession, user_id: int) -> list[Advisor]:
    result = await db.execute(
        select(Advisor)
        .where(Advisor.user_id == user_id)
        .order_by(Advisor.created_at.desc(), Advisor.id.desc())
    )
    return list(result.scalars())


async def create_advisor(db: AsyncSession, user_id: int, name: str, type: AdvisorType) -> Advisor:
    name = name.strip()
    if not name:
        raise ValidationError("Advisor name is required")
    advisor = Advisor(user_id=user_id, name=name, type=AdvisorType(type), is_active=True)
    db.add(advisor)
    await db.commit()
    await db.refresh(advisor)
    return advisor


async def get_user_advisor(db: AsyncSession, user_id: int, advisor_id: int) -> Advisor:
    """Another user's advisor is reported as not found."""
    advisor = await get_user_resource_or_none(db, Advisor, advisor_id, user_id)
    if advisor is None:
        raise NotFoundError("Advisor not found")
    return advisor


async def set_active(db: AsyncSession, user_id: int, advisor_id: int, is_active: bool) -> Advisor:
    advisor = await get_user_advisor(db, user_id, advisor_id)
    advisor.is_active = is_active
    await db.commit()
    await db.refresh(advisor)
    logger.info("Advisor id=%s active=%s", advisor.id, is_active)
    return advisor


async def delete_advisor(db: AsyncSession, user_id: int, advisor_id: int) -> bool:
    """Delete an advisor and its share rows. Returns False if the user has no such advisor."""
    advisor = await get_user_resource_or_none(db, Advisor, advisor_id, user_id)
    if advisor is None:
        return False
    await db.delete(advisor)
    await db.commit()
    return True


async def get_user_advisors(db: AsyncSession, user_id: int, advisor_ids: list[int]) -> list[Advisor]:
    """Load several of the user's advisors, raising NotFoundError if any is missing."""
    wanted = set(advisor_ids)
    if not wanted:
        return []
    result = await db.execute(
        select(Advisor).where(Advisor.id.in_(wanted), Advisor.user_id == user_id)
    )
    advisors = list(result.scalars())
    if len(advisors) != len(wanted):
        raise NotFoundError("Advisor not found")
    return advisors


# =============================================================================
# SHARING
# =============================================================================


async def add_shares(db: AsyncSession, advisor_ids: list[int], session_ids: list[int]) -> None:
    """Insert missing (advisor, session) pairs. Does not commit."""
    if not advisor_ids or not session_ids:
        return
    result = await db.execute(
        select(SharedChatSession.advisor_id, SharedChatSession.session_id).where(
            SharedChatSession.advisor_id.in_(advisor_ids),
            SharedChatSession.session_id.in_(session_ids),
        )
    )
    existing = {(row.advisor_id, row.session_id) for row in result}
    for advisor_id in dict.fromkeys(advisor_ids):
        for session_id in dict.fromkeys(session_ids):
            if (advisor_id, session_id) not in existing:
                db.add(SharedChatSession(advisor_id=advisor_id, session_id=session_id))


async def shared_session_ids(db: AsyncSession, advisor_id: int) -> list[int]:
    result = await db.execute(
        select(SharedChatSession.session_id)
        .where(SharedChatSession.advisor_id == advisor_id)
        .order_by(SharedChatSession.session_id)
    )
    return list(result.scalars())


async def list_shared_session_ids(db: AsyncSession, user_id: int, advisor_id: int) -> list[int]:
    advisor = await get_user_advisor(db, user_id, advisor_id)
    return await shared_session_ids(db, advisor.id)


async def share_sessions(
    db: AsyncSession, user_id: int, advisor_id: int, session_ids: list[int]
) -> list[int]:
    """
    Share chat sessions with an advisor. Idempotent.

    Raises:
        ValidationError: If no session ids are given
        NotFoundError: If the advisor is not the user's
        ForbiddenError: If any session is missing or not the user's
    """
    if not session_ids:
        raise ValidationError("At least one session ID is required")
    advisor = await get_user_advisor(db, user_id, advisor_id)

    wanted = set(session_ids)
    result = await db.execute(
        select(ChatSession.id).where(ChatSession.id.in_(wanted), ChatSession.user_id == user_id)
    )
    if set(result.scalars()) != wanted:
        raise ForbiddenError("One or more sessions are not accessible")

    await add_shares(db, [advisor.id], list(wanted))
    await db.commit()
    return await shared_session_ids(db, advisor.id)


async def unshare_sessions(
    db: AsyncSession, user_id: int, advisor_id: int, session_ids: list[int]
) -> list[int]:
    """Remove exactly the given (advisor, session) pairs."""
    if not session_ids:
        raise ValidationError("At least one session ID is required")
    advisor = await get_user_advisor(db, user_id, advisor_id)

    await db.execute(
        delete(SharedChatSession).where(
            SharedChatSession.advisor_id == advisor.id,
            SharedChatSession.session_id.in_(set(session_ids)),
        )
    )
    await db.commit()
    return await shared_session_ids(db, advisor.id)


# =============================================================================
# SHARE-TOKEN ACCESS
# =============================================================================


def _parse_token(token: str | UUID) -> UUID | None:
    if isinstance(token, UUID):
        return token
    try:
        return UUID(str(token))
    except ValueError:
        return None


async def resolve_by_token(db: AsyncSession, token: str | UUID) -> Advisor | None:
    """Active advisor for a share token; None for unknown, malformed or inactive tokens."""
    share_token = _parse_token(token)
    if share_token is None:
        return None
    result = await db.execute(
        select(Advisor).where(Advisor.share_token == share_token, Advisor.is_active.is_(True))
    )
    return result.scalar_one_or_none()


async def _shared_sessions(db: AsyncSession, advisor: Advisor) -> list[ChatSession]:
    result = await db.execute(
        select(ChatSession)
        .join(SharedChatSession, SharedChatSession.session_id == ChatSession.id)
        .where(
            SharedChatSession.advisor_id == advisor.id,
            ChatSession.user_id == advisor.user_id,
        )
        .order_by(ChatSession.updated_at.desc(), ChatSession.id.desc())
    )
    return list(result.scalars())


async def shared_profile_view(db: AsyncSession, token: str | UUID) -> SharedProfileRead:
    """
    Read-only snapshot for an advisor.

    Exposes the username, profile description, colleges, recommendations and
    shared sessions only. Never the password hash, onboarding answers or
    unshared sessions.
    """
    advisor = await resolve_by_token(db, token)
    if advisor is None:
        raise NotFoundError("Advisor not found")
    user = await db.get(User, advisor.user_id)
    if user is None:
        raise NotFoundError("User not found")

    colleges = []
    for status in SHARED_VIEW_STATUS_ORDER:
        colleges.extend(await list_colleges_by_status(db, user.id, status))

    return SharedProfileRead(
        advisor=SharedAdvisorInfo(name=advisor.name, type=advisor.type),
        user=SharedUserInfo(username=user.username, profile_description=user.profile_description),
        colleges=[CollegeRead.model_validate(c) for c in colleges],
        recommendations=[
            RecommendationRead.model_validate(r) for r in await list_recommendations(db, user.id)
        ],
        shared_chat_sessions=[
            ChatSessionRead.model_validate(s) for s in await _shared_sessions(db, advisor)
        ],
    )


async def shared_messages(db: AsyncSession, token: str | UUID, session_id: int) -> list[ChatMessage]:
    """Messages of a shared session; empty unless the session is owned by the token's user and shared with it."""
    advisor = await resolve_by_token(db, token)
    if advisor is None:
        return []

    result = await db.execute(
        select(ChatMessage)
        .join(ChatSession, ChatSession.id == ChatMessage.session_id)
        .join(
            SharedChatSession,
            (SharedChatSession.session_id == ChatSession.id)
            & (SharedChatSession.advisor_id == advisor.id),
        )
        .where(ChatSession.id == session_id, ChatSession.user_id == advisor.user_id)
        .order_by(ChatMessage.created_at, ChatMessage.id)
    )
    return list(result.scalars())


async def add_recommendation_as_advisor(
    db: AsyncSession,
    llm: LLMClient,
    token: str | UUID,
    college_name: str,
    advisor_notes: str | None = None,
) -> CollegeRecommendation:
    """
    Add a recommendation for the token's student on the advisor's behalf.

    Description, reason and acceptance rate come from the AI; any AI failure
    falls back to fixed text with no acceptance rate.
    """
    college_name = (college_name or "").strip()
    if not college_name:
        raise ValidationError("College name is required")
    advisor = await resolve_by_token(db, token)
    if advisor is None:
        raise NotFoundError("Advisor not found or link inactive")

    try:
        info = parse_college_info(await llm.complete(prompts.college_info_prompt(college_name)))
    except Exception:
        logger.warning("College info lookup failed for %r, using fallback text", college_name, exc_info=True)
        info = {"description": "", "reason": "", "acceptance_rate": None}

    recommendation = CollegeRecommendation(
        user_id=advisor.user_id,
        name=college_name,
        description=info["description"] or FALLBACK_DESCRIPTION,
        reason=info["reason"] or FALLBACK_REASON,
        acceptance_rate=info["acceptance_rate"],
        recommended_by=advisor.name,
        advisor_notes=(advisor_notes or "").strip() or None,
    )
    db.add(recommendation)
    await db.commit()
    await db.refresh(recommendation)
    return recommendation
