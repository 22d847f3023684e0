"""Message feedback schemas."""

from datetime import datetime

from pydantic import Field

from app.schemas.base import BaseSchema, IDMixin


class FeedbackCreate(BaseSchema):
    message_id: int
    message_content: str = Field(..., max_length=50000)
    is_positive: bool = Field(..., strict=True)


class FeedbackRead(BaseSchema, IDMixin):
    user_id: int
    message_id: int
    message_content: str
    is_positive: bool
    created_at: datetime


class FeedbackResponse(BaseSchema):
    success: bool = True
    feedback: FeedbackRead
