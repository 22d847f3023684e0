"""Pydantic schemas for chat operations."""

from datetime import datetime

from pydantic import Field

from app.db.models import MessageSender
from app.schemas.base import BaseSchema, IDMixin, TimestampMixin
from app.schemas.uploads import AttachmentRecord


# Request schemas
class ChatSessionCreate(BaseSchema):
    """Request to create a new chat session."""

    title: str | None = Field(None, max_length=255)


class ChatSessionUpdate(BaseSchema):
    """Request to rename a chat session."""

    title: str = Field(..., min_length=1, max_length=255)


class SendMessageRequest(BaseSchema):
    """Request to send a chat message."""

    content: str = Field(..., min_length=1, max_length=10000)
    attachments: list[AttachmentRecord] = Field(default_factory=list)
    share_with_advisor_ids: list[int] = Field(default_factory=list)
    use_web_search: bool = False
    extend_thinking: bool = False


class RetryReplyRequest(BaseSchema):
    use_web_search: bool = False
    extend_thinking: bool = False


# Response schemas
class ChatMessageRead(BaseSchema, IDMixin):
    """Chat message response."""

    session_id: int
    content: str
    sender: MessageSender
    attachments: list[AttachmentRecord]
    created_at: datetime


class ChatSessionRead(BaseSchema, IDMixin, TimestampMixin):
    """Chat session response."""

    user_id: int
    title: str
    auto_title: bool


class SendMessageResponse(BaseSchema):
    """
    Outcome of a chat turn.

    On AI failure `ai_message` is null and `error` explains why; the user
    message is persisted either way.
    """

    session_id: int
    user_message: ChatMessageRead
    ai_message: ChatMessageRead | None = None
    profile_updated: bool = False
    search_queries: list[str] | None = None
    error: str | None = None
