"""College recommendation routes."""

from fastapi import APIRouter

from app.api.deps import LLM, CurrentUser, DbSession
from app.schemas.base import SuccessResponse
from app.schemas.colleges import CollegeRead
from app.schemas.recommendations import (
    ConvertRecommendationRequest,
    GenerateRecommendationsRequest,
    RecommendationRead,
)
from app.services import recommendations as recommendation_service

router = APIRouter(prefix="/recommendations", tags=["recommendations"])


@router.get("", response_model=list[RecommendationRead])
async def list_recommendations(current_user: CurrentUser, db: DbSession) -> list[RecommendationRead]:
    recommendations = await recommendation_service.list_recommendations(db, current_user.id)
    return [RecommendationRead.model_validate(r) for r in recommendations]


@router.post("/generate", response_model=list[RecommendationRead])
async def generate_recommendations(
    current_user: CurrentUser,
    db: DbSession,
    llm: LLM,
    data: GenerateRecommendationsRequest | None = None,
) -> list[RecommendationRead]:
    """Generate up to three new AI recommendations, skipping colleges already listed."""
    preference = data.preference if data else None
    recommendations = await recommendation_service.generate_recommendations(
        db, llm, current_user, preference
    )
    return [RecommendationRead.model_validate(r) for r in recommendations]


@router.delete("/{recommendation_id}", response_model=SuccessResponse)
async def delete_recommendation(
    recommendation_id: int,
    current_user: CurrentUser,
    db: DbSession,
) -> SuccessResponse:
    deleted = await recommendation_service.delete_recommendation(db, current_user.id, recommendation_id)
    return SuccessResponse(success=deleted)


@router.post("/{recommendation_id}/convert", response_model=CollegeRead)
async def convert_recommendation(
    recommendation_id: int,
    data: ConvertRecommendationRequest,
    current_user: CurrentUser,
    db: DbSession,
) -> CollegeRead:
    """Turn a recommendation into a college in the given column and remove the recommendation."""
    college = await recommendation_service.convert_to_college(
        db, current_user.id, recommendation_id, data.status
    )
    return CollegeRead.model_validate(college)
