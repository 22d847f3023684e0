"""Advisor management and chat-sharing routes."""

from fastapi import APIRouter, status

from app.api.deps import CurrentUser, DbSession
from app.schemas.advisors import (
    AdvisorCreate,
    AdvisorRead,
    AdvisorStatusUpdate,
    ShareChatsRequest,
    ShareChatsResponse,
)
from app.schemas.base import SuccessResponse
from app.services import advisors as advisor_service

router = APIRouter(prefix="/advisors", tags=["advisors"])


@router.get("", response_model=list[AdvisorRead])
async def list_advisors(current_user: CurrentUser, db: DbSession) -> list[AdvisorRead]:
    """List advisors, newest first."""
    advisors = await advisor_service.list_advisors(db, current_user.id)
    return [AdvisorRead.model_validate(a) for a in advisors]


@router.post("", response_model=AdvisorRead, status_code=status.HTTP_201_CREATED)
async def create_advisor(data: AdvisorCreate, current_user: CurrentUser, db: DbSession) -> AdvisorRead:
    """Create an advisor with a fresh share token."""
    advisor = await advisor_service.create_advisor(db, current_user.id, data.name, data.type)
    return AdvisorRead.model_validate(advisor)


@router.patch("/{advisor_id}/status", response_model=AdvisorRead)
async def update_advisor_status(
    advisor_id: int,
    data: AdvisorStatusUpdate,
    current_user: CurrentUser,
    db: DbSession,
) -> AdvisorRead:
    """Activate or deactivate the advisor's share link."""
    advisor = await advisor_service.set_active(db, current_user.id, advisor_id, data.is_active)
    return AdvisorRead.model_validate(advisor)


@router.delete("/{advisor_id}", response_model=SuccessResponse)
async def delete_advisor(advisor_id: int, current_user: CurrentUser, db: DbSession) -> SuccessResponse:
    deleted = await advisor_service.delete_advisor(db, current_user.id, advisor_id)
    return SuccessResponse(success=deleted)


@router.post("/{advisor_id}/share-chats", response_model=ShareChatsResponse)
async def share_chats(
    advisor_id: int,
    data: ShareChatsRequest,
    current_user: CurrentUser,
    db: DbSession,
) -> ShareChatsResponse:
    shared = await advisor_service.share_sessions(db, current_user.id, advisor_id, data.session_ids)
    return ShareChatsResponse(shared_session_ids=shared)


@router.post("/{advisor_id}/unshare-chats", response_model=ShareChatsResponse)
async def unshare_chats(
    advisor_id: int,
    data: ShareChatsRequest,
    current_user: CurrentUser,
    db: DbSession,
) -> ShareChatsResponse:
    shared = await advisor_service.unshare_sessions(db, current_user.id, advisor_id, data.session_ids)
    return ShareChatsResponse(shared_session_ids=shared)


@router.get("/{advisor_id}/shared-chats", response_model=list[int])
async def list_shared_chats(advisor_id: int, current_user: CurrentUser, db: DbSession) -> list[int]:
    """Ids of the sessions currently shared with this advisor."""
    return await advisor_service.list_shared_session_ids(db, current_user.id, advisor_id)
