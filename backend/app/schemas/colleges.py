"""College kanban schemas."""

from pydantic import Field

from app.db.models import CollegeStatus
from app.schemas.base import BaseSchema, IDMixin, TimestampMixin


class CollegeCreate(BaseSchema):
    """Schema for adding a college. Position defaults to the end of the column."""

    name: str = Field(..., min_length=1, max_length=255)
    status: CollegeStatus = CollegeStatus.RESEARCHING
    position: int | None = Field(None, ge=0, strict=True)


class CollegeStatusUpdate(BaseSchema):
    status: CollegeStatus


class CollegePositionUpdate(BaseSchema):
    position: int = Field(..., ge=0, strict=True)


class CollegeRead(BaseSchema, IDMixin, TimestampMixin):
    """Schema for reading college data."""

    user_id: int
    name: str
    status: CollegeStatus
    position: int
