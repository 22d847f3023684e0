"""College recommendation schemas."""

from pydantic import Field

from app.db.models import CollegeStatus
from app.schemas.base import BaseSchema, IDMixin, TimestampMixin


class RecommendationRead(BaseSchema, IDMixin, TimestampMixin):
    user_id: int
    name: str
    description: str
    reason: str
    acceptance_rate: int | None
    recommended_by: str | None
    advisor_notes: str | None


class GenerateRecommendationsRequest(BaseSchema):
    """Optional free-text steer for the generator (e.g. "small schools in the Midwest")."""

    preference: str | None = Field(None, max_length=2000)


class ConvertRecommendationRequest(BaseSchema):
    status: CollegeStatus


class AdvisorRecommendationCreate(BaseSchema):
    """Recommendation submitted through an advisor share link."""

    name: str = Field(..., max_length=255)
    advisor_notes: str | None = Field(None, max_length=5000)
