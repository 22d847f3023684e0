"""Ownership checks shared by the domain services."""

from typing import TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import ForbiddenError, NotFoundError

ModelT = TypeVar("ModelT")


async def get_owned_or_raise(
    db: AsyncSession,
    model: type[ModelT],
    resource_id: int,
    user_id: int,
    *,
    label: str = "Resource",
) -> ModelT:
    """
    Fetch a resource by id and verify the user owns it.

    Raises NotFoundError when the id does not exist and ForbiddenError when
    it belongs to another user. Use `get_user_resource_or_none` where a
    foreign resource should look missing instead.
    """
    result = await db.execute(select(model).where(model.id == resource_id))
    resource = result.scalar_one_or_none()

    if resource is None:
        raise NotFoundError(f"{label} not found")
    if resource.user_id != user_id:
        raise ForbiddenError()
    return resource


async def get_user_resource_or_none(
    db: AsyncSession,
    model: type[ModelT],
    resource_id: int,
    user_id: int,
) -> ModelT | None:
    """Fetch a user-owned resource, scoping by user_id at the SQL level."""
    result = await db.execute(
        select(model).where(model.id == resource_id, model.user_id == user_id)
    )
    return result.scalar_one_or_none()
