"""Thumbs up/down feedback on chat messages."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models import ChatMessage, ChatSession, MessageFeedback
from app.errors import ForbiddenError, NotFoundError

logger = logging.getLogger(__name__)


async def submit_feedback(
    db: AsyncSession,
    user_id: int,
    message_id: int,
    message_content: str,
    is_positive: bool,
) -> MessageFeedback:
    """Append a feedback entry. The message must be in one of the user's sessions."""
    message = await db.get(ChatMessage, message_id)
    if message is None:
        raise NotFoundError("Message not found")
    session = await db.get(ChatSession, message.session_id)
    if session is None or session.user_id != user_id:
        raise ForbiddenError()

    feedback = MessageFeedback(
        user_id=user_id,
        message_id=message_id,
        message_content=message_content,
        is_positive=is_positive,
    )
    db.add(feedback)
    await db.commit()
    await db.refresh(feedback)
    logger.info("Feedback id=%s on message id=%s positive=%s", feedback.id, message_id, is_positive)
    return feedback
