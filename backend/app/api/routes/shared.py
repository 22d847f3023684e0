"""
Share-link routes for advisors.

No session is required: the share token in the path is the credential.
Unknown, malformed and deactivated tokens all behave as not found.
"""

from fastapi import APIRouter, status

from app.api.deps import LLM, DbSession
from app.schemas.advisors import SharedProfileRead
from app.schemas.chat import ChatMessageRead
from app.schemas.recommendations import AdvisorRecommendationCreate, RecommendationRead
from app.services import advisors as advisor_service

router = APIRouter(prefix="/shared", tags=["shared"])


@router.get("/{share_token}", response_model=SharedProfileRead)
async def get_shared_profile(share_token: str, db: DbSession) -> SharedProfileRead:
    """Read-only snapshot of the student's profile, colleges, recommendations and shared chats."""
    return await advisor_service.shared_profile_view(db, share_token)


@router.get("/{share_token}/chat/{session_id}/messages", response_model=list[ChatMessageRead])
async def get_shared_messages(share_token: str, session_id: int, db: DbSession) -> list[ChatMessageRead]:
    """Messages of a shared session. Empty when the session is not shared with this advisor."""
    messages = await advisor_service.shared_messages(db, share_token, session_id)
    return [ChatMessageRead.model_validate(m) for m in messages]


@router.post(
    "/{share_token}/recommendations",
    response_model=RecommendationRead,
    status_code=status.HTTP_201_CREATED,
)
async def add_advisor_recommendation(
    share_token: str,
    data: AdvisorRecommendationCreate,
    db: DbSession,
    llm: LLM,
) -> RecommendationRead:
    recommendation = await advisor_service.add_recommendation_as_advisor(
        db, llm, share_token, data.name, data.advisor_notes
    )
    return RecommendationRead.model_validate(recommendation)
