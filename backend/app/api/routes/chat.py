"""API routes for chat sessions and AI message turns."""

import logging

from fastapi import APIRouter

from app.api.deps import LLM, CurrentUser, DbSession, Storage
from app.schemas.base import SuccessResponse
from app.schemas.chat import (
    ChatMessageRead,
    ChatSessionCreate,
    ChatSessionRead,
    ChatSessionUpdate,
    RetryReplyRequest,
    SendMessageRequest,
    SendMessageResponse,
)
from app.services.chat_service import (
    ChatTurn,
    chat_service,
    create_session as create_chat_session,
    delete_session as delete_chat_session,
    list_messages as list_chat_messages,
    list_sessions as list_chat_sessions,
    rename_session as rename_chat_session,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])


def _turn_response(turn: ChatTurn) -> SendMessageResponse:
    return SendMessageResponse(
        session_id=turn.session.id,
        user_message=ChatMessageRead.model_validate(turn.user_message),
        ai_message=ChatMessageRead.model_validate(turn.ai_message) if turn.ai_message else None,
        profile_updated=turn.profile_updated,
        search_queries=turn.search_queries,
        error=turn.error,
    )


# =============================================================================
# SESSIONS
# =============================================================================


@router.get("/sessions", response_model=list[ChatSessionRead])
async def list_sessions(current_user: CurrentUser, db: DbSession) -> list[ChatSessionRead]:
    """List chat sessions, most recently active first."""
    sessions = await list_chat_sessions(db, current_user.id)
    return [ChatSessionRead.model_validate(s) for s in sessions]


@router.post("/sessions", response_model=ChatSessionRead)
async def create_session(
    current_user: CurrentUser,
    db: DbSession,
    data: ChatSessionCreate | None = None,
) -> ChatSessionRead:
    session = await create_chat_session(db, current_user.id, data.title if data else None)
    logger.info("Created chat session id=%s for user id=%s", session.id, current_user.id)
    return ChatSessionRead.model_validate(session)


@router.patch("/sessions/{session_id}", response_model=ChatSessionRead)
async def rename_session(
    session_id: int,
    data: ChatSessionUpdate,
    current_user: CurrentUser,
    db: DbSession,
) -> ChatSessionRead:
    session = await rename_chat_session(db, current_user.id, session_id, data.title)
    return ChatSessionRead.model_validate(session)


@router.delete("/sessions/{session_id}", response_model=SuccessResponse)
async def delete_session(session_id: int, current_user: CurrentUser, db: DbSession) -> SuccessResponse:
    """Delete a session with its messages, feedback and share rows."""
    deleted = await delete_chat_session(db, current_user.id, session_id)
    return SuccessResponse(success=deleted)


# =============================================================================
# MESSAGES
# =============================================================================


@router.get("/sessions/{session_id}/messages", response_model=list[ChatMessageRead])
async def list_messages(session_id: int, current_user: CurrentUser, db: DbSession) -> list[ChatMessageRead]:
    messages = await list_chat_messages(db, current_user.id, session_id)
    return [ChatMessageRead.model_validate(m) for m in messages]


@router.post("/sessions/{session_id}/messages", response_model=SendMessageResponse)
async def send_message(
    session_id: int,
    data: SendMessageRequest,
    current_user: CurrentUser,
    db: DbSession,
    llm: LLM,
    storage: Storage,
) -> SendMessageResponse:
    """
    Send a message to an existing session and get the AI reply.

    AI failures do not fail the request: the stored user message comes back
    with `error` set and no `aiMessage`.
    """
    turn = await chat_service.send_message(db, llm, storage, current_user, session_id, data)
    return _turn_response(turn)


@router.post("/sessions/{session_id}/retry", response_model=SendMessageResponse)
async def retry_reply(
    session_id: int,
    current_user: CurrentUser,
    db: DbSession,
    llm: LLM,
    storage: Storage,
    data: RetryReplyRequest | None = None,
) -> SendMessageResponse:
    """Ask for a new AI reply to the session's unanswered last message."""
    data = data or RetryReplyRequest()
    turn = await chat_service.retry_reply(
        db, llm, storage, current_user, session_id,
        web_search=data.use_web_search,
        extended_reasoning=data.extend_thinking,
    )
    return _turn_response(turn)


@router.post("/messages", response_model=SendMessageResponse)
async def send_message_new_session(
    data: SendMessageRequest,
    current_user: CurrentUser,
    db: DbSession,
    llm: LLM,
    storage: Storage,
) -> SendMessageResponse:
    """Send a first message; a session titled after it is created."""
    turn = await chat_service.send_message(db, llm, storage, current_user, None, data)
    return _turn_response(turn)
