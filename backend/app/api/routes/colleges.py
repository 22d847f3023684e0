"""College kanban routes."""

from fastapi import APIRouter, status

from app.api.deps import CurrentUser, DbSession
from app.schemas.base import SuccessResponse
from app.schemas.colleges import CollegeCreate, CollegePositionUpdate, CollegeRead, CollegeStatusUpdate
from app.services import colleges as college_service

router = APIRouter(prefix="/colleges", tags=["colleges"])


@router.get("", response_model=list[CollegeRead])
async def list_colleges(current_user: CurrentUser, db: DbSession) -> list[CollegeRead]:
    """List all of the user's colleges ordered by status, then position."""
    colleges = await college_service.list_colleges(db, current_user.id)
    return [CollegeRead.model_validate(c) for c in colleges]


@router.get("/status/{college_status}", response_model=list[CollegeRead])
async def list_colleges_by_status(
    college_status: str,
    current_user: CurrentUser,
    db: DbSession,
) -> list[CollegeRead]:
    """List one kanban column. Unknown statuses are a 400."""
    colleges = await college_service.list_colleges_by_status(db, current_user.id, college_status)
    return [CollegeRead.model_validate(c) for c in colleges]


@router.post("", response_model=CollegeRead, status_code=status.HTTP_201_CREATED)
async def create_college(data: CollegeCreate, current_user: CurrentUser, db: DbSession) -> CollegeRead:
    """Add a college. Without a position it goes to the end of its column."""
    college = await college_service.add_college(
        db,
        current_user.id,  # From auth, NEVER from request
        data.name,
        data.status,
        data.position,
    )
    return CollegeRead.model_validate(college)


@router.patch("/{college_id}/status", response_model=CollegeRead)
async def update_college_status(
    college_id: int,
    data: CollegeStatusUpdate,
    current_user: CurrentUser,
    db: DbSession,
) -> CollegeRead:
    """Move a college to another column; it is appended to the end."""
    college = await college_service.update_status(db, current_user.id, college_id, data.status)
    return CollegeRead.model_validate(college)


@router.patch("/{college_id}/position", response_model=CollegeRead)
async def update_college_position(
    college_id: int,
    data: CollegePositionUpdate,
    current_user: CurrentUser,
    db: DbSession,
) -> CollegeRead:
    college = await college_service.update_position(db, current_user.id, college_id, data.position)
    return CollegeRead.model_validate(college)


@router.delete("/{college_id}", response_model=SuccessResponse)
async def delete_college(college_id: int, current_user: CurrentUser, db: DbSession) -> SuccessResponse:
    """Delete a college. A missing id reports success=false rather than an error."""
    deleted = await college_service.delete_college(db, current_user.id, college_id)
    return SuccessResponse(success=deleted)
