"""Advisor and share-link schemas."""

from uuid import UUID

from pydantic import Field

from app.db.models import AdvisorType
from app.schemas.base import BaseSchema, IDMixin, TimestampMixin
from app.schemas.chat import ChatSessionRead
from app.schemas.colleges import CollegeRead
from app.schemas.recommendations import RecommendationRead


class AdvisorCreate(BaseSchema):
    """The share token is always generated server-side."""

    name: str = Field(..., min_length=1, max_length=255)
    type: AdvisorType


class AdvisorStatusUpdate(BaseSchema):
    is_active: bool = Field(..., strict=True)


class AdvisorRead(BaseSchema, IDMixin, TimestampMixin):
    user_id: int
    name: str
    type: AdvisorType
    share_token: UUID
    is_active: bool


class ShareChatsRequest(BaseSchema):
    session_ids: list[int]


class ShareChatsResponse(BaseSchema):
    success: bool = True
    shared_session_ids: list[int]


# Read-only view served to advisors through the share link


class SharedAdvisorInfo(BaseSchema):
    name: str
    type: AdvisorType


class SharedUserInfo(BaseSchema):
    username: str
    profile_description: str | None


class SharedProfileRead(BaseSchema):
    advisor: SharedAdvisorInfo
    user: SharedUserInfo
    colleges: list[CollegeRead]
    recommendations: list[RecommendationRead]
    shared_chat_sessions: list[ChatSessionRead]
