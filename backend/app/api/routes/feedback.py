"""Message feedback routes."""

from fastapi import APIRouter

from app.api.deps import CurrentUser, DbSession
from app.schemas.feedback import FeedbackCreate, FeedbackRead, FeedbackResponse
from app.services import feedback as feedback_service

router = APIRouter(tags=["feedback"])


@router.post("/message-feedback", response_model=FeedbackResponse)
async def submit_feedback(data: FeedbackCreate, current_user: CurrentUser, db: DbSession) -> FeedbackResponse:
    """Record a thumbs up or down on a message in one of the user's sessions."""
    feedback = await feedback_service.submit_feedback(
        db,
        current_user.id,
        data.message_id,
        data.message_content,
        data.is_positive,
    )
    return FeedbackResponse(feedback=FeedbackRead.model_validate(feedback))
