"""Attachment schemas."""

from pydantic import Field

from app.schemas.base import BaseSchema


class AttachmentRecord(BaseSchema):
    """Uploaded file as referenced from a chat message."""

    filename: str = Field(..., min_length=1, max_length=255)
    url: str = Field(..., min_length=1, max_length=1024)
    content_type: str = Field(..., min_length=1, max_length=255)
    size: int = Field(..., ge=0)
