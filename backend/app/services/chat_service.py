"""Chat service: sessions, message turns and AI replies."""

import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import sanitize_error
from app.db.models import ChatMessage, ChatSession, MessageSender, User, utcnow
from app.errors import AppError, ForbiddenError, ValidationError
from app.schemas.chat import SendMessageRequest
from app.services import advisors as advisor_service
from app.services import prompts
from app.services.attachments import load_for_model
from app.services.llm_client import Citation, HistoryTurn, LLMClient
from app.services.ownership import get_owned_or_raise
from app.services.profile_manager import profile_manager
from app.services.s3 import AttachmentStorage

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "New Conversation"
TITLE_MAX_LENGTH = 30
GENERIC_AI_ERROR = "Failed to generate AI response. Please try again."

_ROLE_BY_SENDER = {MessageSender.USER: "user", MessageSender.AI: "assistant"}


def derive_title(content: str) -> str:
    """Session title from a first message: up to 30 chars, else the first 27 plus "..."."""
    if len(content) > TITLE_MAX_LENGTH:
        return content[:TITLE_MAX_LENGTH - 3] + "..."
    return content


def strip_trailing_ellipsis(content: str) -> str:
    """Drop one trailing "..." that clients append while a message is pending."""
    return content[:-3] if content.endswith("...") else content


def append_sources(text: str, citations: list[Citation]) -> str:
    """Append web-search citations as a numbered Markdown "Sources" section."""
    if not citations:
        return text
    section = "\n\n## Sources\n"
    for i, cite in enumerate(citations, start=1):
        section += f"\n{i}. [{cite.title}]({cite.url})"
        if cite.snippet:
            section += f" - {cite.snippet}"
    return text + section


def _history_text(message: ChatMessage) -> str:
    names = [a.get("filename", "file") for a in message.attachments or []]
    if not names:
        return message.content
    return message.content + "".join(f"\n[Attached file: {name}]" for name in names)


@dataclass
class ChatTurn:
    """Result of sending (or retrying) a message."""

    session: ChatSession
    user_message: ChatMessage
    ai_message: ChatMessage | None = None
    profile_updated: bool = False
    search_queries: list[str] | None = None
    error: str | None = None


# =============================================================================
# SESSION MANAGEMENT
# =============================================================================


async def create_session(db: AsyncSession, user_id: int, title: str | None = None) -> ChatSession:
    """Create a session. Without an explicit title the first message names it."""
    title = (title or "").strip()
    session = ChatSession(
        user_id=user_id,
        title=title or DEFAULT_TITLE,
        auto_title=not title,
    )
    db.add(session)
    await db.commit()
    await db.refresh(session)
    return session


async def list_sessions(db: AsyncSession, user_id: int) -> list[ChatSession]:
    result = await db.execute(
        select(ChatSession)
        .where(ChatSession.user_id == user_id)
        .order_by(ChatSession.updated_at.desc(), ChatSession.id.desc())
    )
    return list(result.scalars())


async def list_messages(db: AsyncSession, user_id: int, session_id: int) -> list[ChatMessage]:
    await get_owned_or_raise(db, ChatSession, session_id, user_id, label="Chat session")
    result = await db.execute(
        select(ChatMessage)
        .where(ChatMessage.session_id == session_id)
        .order_by(ChatMessage.created_at, ChatMessage.id)
    )
    return list(result.scalars())


async def rename_session(db: AsyncSession, user_id: int, session_id: int, title: str) -> ChatSession:
    title = (title or "").strip()
    if not title:
        raise ValidationError("Title is required")
    session = await get_owned_or_raise(db, ChatSession, session_id, user_id, label="Chat session")
    session.title = title
    session.auto_title = False
    await db.commit()
    await db.refresh(session)
    return session


async def delete_session(db: AsyncSession, user_id: int, session_id: int) -> bool:
    """Delete a session with its messages and share rows. Returns False when the id does not exist."""
    session = await db.get(ChatSession, session_id)
    if session is None:
        return False
    if session.user_id != user_id:
        raise ForbiddenError()
    await db.delete(session)
    await db.commit()
    return True


# =============================================================================
# CHAT TURNS
# =============================================================================


class ChatService:
    """Runs a chat turn: persist the user message, get the AI reply, maybe update the profile."""

    async def send_message(
        self,
        db: AsyncSession,
        llm: LLMClient,
        storage: AttachmentStorage,
        user: User,
        session_id: int | None,
        request: SendMessageRequest,
    ) -> ChatTurn:
        """
        Send a message, creating a session when `session_id` is None.

        The user message is committed before the AI call and is never rolled
        back; AI failures come back as `ChatTurn.error`.
        """
        content = strip_trailing_ellipsis(request.content)
        if not content.strip():
            raise ValidationError("Message content is required")

        if session_id is None:
            session = None
        else:
            session = await get_owned_or_raise(db, ChatSession, session_id, user.id, label="Chat session")
        share_with = await advisor_service.get_user_advisors(db, user.id, request.share_with_advisor_ids)

        if session is None:
            session = ChatSession(user_id=user.id, title=derive_title(content), auto_title=True)
            db.add(session)
            await db.flush()
        elif session.auto_title and not await self._has_messages(db, session.id):
            session.title = derive_title(content)

        user_message = ChatMessage(
            session_id=session.id,
            content=content,
            sender=MessageSender.USER,
            attachments=[a.model_dump(by_alias=True) for a in request.attachments],
        )
        db.add(user_message)
        session.updated_at = utcnow()
        await advisor_service.add_shares(db, [a.id for a in share_with], [session.id])
        await db.commit()
        await db.refresh(user_message)
        await db.refresh(session)

        return await self._reply(
            db, llm, storage, user, session, user_message,
            web_search=request.use_web_search,
            extended_reasoning=request.extend_thinking,
        )

    async def retry_reply(
        self,
        db: AsyncSession,
        llm: LLMClient,
        storage: AttachmentStorage,
        user: User,
        session_id: int,
        *,
        web_search: bool = False,
        extended_reasoning: bool = False,
    ) -> ChatTurn:
        """Re-run the AI reply for the latest user message without storing a new one."""
        session = await get_owned_or_raise(db, ChatSession, session_id, user.id, label="Chat session")
        result = await db.execute(
            select(ChatMessage)
            .where(ChatMessage.session_id == session.id)
            .order_by(ChatMessage.created_at.desc(), ChatMessage.id.desc())
            .limit(1)
        )
        last = result.scalar_one_or_none()
        if last is None or last.sender != MessageSender.USER:
            raise ValidationError("There is no unanswered message to retry")

        return await self._reply(
            db, llm, storage, user, session, last,
            web_search=web_search,
            extended_reasoning=extended_reasoning,
        )

    async def _has_messages(self, db: AsyncSession, session_id: int) -> bool:
        result = await db.execute(
            select(ChatMessage.id).where(ChatMessage.session_id == session_id).limit(1)
        )
        return result.first() is not None

    async def _history_before(self, db: AsyncSession, message: ChatMessage) -> list[ChatMessage]:
        result = await db.execute(
            select(ChatMessage)
            .where(ChatMessage.session_id == message.session_id, ChatMessage.id < message.id)
            .order_by(ChatMessage.created_at, ChatMessage.id)
        )
        return list(result.scalars())

    async def _recover(self, db: AsyncSession, turn: ChatTurn, user: User) -> None:
        """Discard pending changes and reload the already-committed rows."""
        await db.rollback()
        await db.refresh(turn.session)
        await db.refresh(turn.user_message)
        await db.refresh(user)

    async def _reply(
        self,
        db: AsyncSession,
        llm: LLMClient,
        storage: AttachmentStorage,
        user: User,
        session: ChatSession,
        user_message: ChatMessage,
        *,
        web_search: bool,
        extended_reasoning: bool,
    ) -> ChatTurn:
        turn = ChatTurn(session=session, user_message=user_message)

        try:
            history = await self._history_before(db, user_message)
            system_prompt = prompts.chat_system_prompt(user.profile_description, session.title)
            attachments = await load_for_model(storage, user_message.attachments or [])

            reply = await llm.generate(
                system_prompt,
                [HistoryTurn(role=_ROLE_BY_SENDER[m.sender], content=_history_text(m)) for m in history],
                user_message.content,
                attachments,
                web_search=web_search,
                extended_reasoning=extended_reasoning,
            )

            ai_message = ChatMessage(
                session_id=session.id,
                content=append_sources(reply.text, reply.citations),
                sender=MessageSender.AI,
                attachments=[],
            )
            db.add(ai_message)
            session.updated_at = utcnow()
            await db.commit()
            await db.refresh(ai_message)
            turn.ai_message = ai_message
            turn.search_queries = reply.search_queries or None
        except AppError as e:
            logger.warning("AI reply failed for session id=%s: %s", session.id, e.message)
            await self._recover(db, turn, user)
            turn.error = e.message
            return turn
        except Exception as e:
            logger.exception("Unexpected error generating reply for session id=%s", session.id)
            await self._recover(db, turn, user)
            turn.error = sanitize_error(e, generic_message=GENERIC_AI_ERROR)
            return turn

        if user.profile_description:
            turn.profile_updated = await self._update_profile(db, llm, user, turn, history)
        return turn

    async def _update_profile(
        self,
        db: AsyncSession,
        llm: LLMClient,
        user: User,
        turn: ChatTurn,
        history: list[ChatMessage],
    ) -> bool:
        updated = await profile_manager.check_for_update(
            llm,
            user.profile_description,
            turn.user_message.content,
            [(m.sender.value, m.content) for m in history],
        )
        if not updated or updated == user.profile_description:
            return False
        user.profile_description = updated
        try:
            await db.commit()
        except Exception:
            logger.exception("Failed to save profile update for user id=%s", user.id)
            await self._recover(db, turn, user)
            await db.refresh(turn.ai_message)
            return False
        logger.info("Profile updated from chat for user id=%s", user.id)
        return True


# Singleton instance
chat_service = ChatService()
