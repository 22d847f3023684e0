"""College kanban service."""

import logging

from sqlalchemy import String, cast, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models import College, CollegeStatus
from app.errors import ForbiddenError, ValidationError
from app.services.ownership import get_owned_or_raise

logger = logging.getLogger(__name__)


def parse_status(value: str | CollegeStatus) -> CollegeStatus:
    """Coerce a status string, raising ValidationError for anything unknown."""
    try:
        return CollegeStatus(value)
    except ValueError:
        valid = ", ".join(s.value for s in CollegeStatus)
        raise ValidationError(f"Invalid status '{value}'. Must be one of: {valid}") from None


async def next_position(db: AsyncSession, user_id: int, status: CollegeStatus) -> int:
    """One past the highest position in the column, or 1 for an empty column."""
    result = await db.execute(
        select(func.max(College.position)).where(
            College.user_id == user_id, College.status == status
        )
    )
    current_max = result.scalar()
    return 1 if current_max is None else current_max + 1


async def list_colleges(db: AsyncSession, user_id: int) -> list[College]:
    result = await db.execute(
        select(College)
        .where(College.user_id == user_id)
        .order_by(cast(College.status, String), College.position, College.id)
    )
    return list(result.scalars())


async def list_colleges_by_status(
    db: AsyncSession, user_id: int, status: str | CollegeStatus
) -> list[College]:
    status = parse_status(status)
    result = await db.execute(
        select(College)
        .where(College.user_id == user_id, College.status == status)
        .order_by(College.position, College.id)
    )
    return list(result.scalars())


def build_college(user_id: int, name: str, status: CollegeStatus, position: int) -> College:
    name = name.strip()
    if not name:
        raise ValidationError("College name is required")
    return College(user_id=user_id, name=name, status=status, position=position)


async def add_college(
    db: AsyncSession,
    user_id: int,
    name: str,
    status: str | CollegeStatus = CollegeStatus.RESEARCHING,
    position: int | None = None,
) -> College:
    status = parse_status(status)
    if position is not None and position < 0:
        raise ValidationError("Position must be a non-negative integer")
    if position is None:
        position = await next_position(db, user_id, status)

    college = build_college(user_id, name, status, position)
    db.add(college)
    await db.commit()
    await db.refresh(college)
    return college


async def update_status(
    db: AsyncSession, user_id: int, college_id: int, status: str | CollegeStatus
) -> College:
    """Move a college to another column, appending it to the end. Siblings keep their positions."""
    status = parse_status(status)
    college = await get_owned_or_raise(db, College, college_id, user_id, label="College")

    college.position = await next_position(db, user_id, status)
    college.status = status
    await db.commit()
    await db.refresh(college)
    return college


async def update_position(
    db: AsyncSession, user_id: int, college_id: int, position: int
) -> College:
    if isinstance(position, bool) or not isinstance(position, int) or position < 0:
        raise ValidationError("Position must be a non-negative integer")
    college = await get_owned_or_raise(db, College, college_id, user_id, label="College")

    college.position = position
    await db.commit()
    await db.refresh(college)
    return college


async def delete_college(db: AsyncSession, user_id: int, college_id: int) -> bool:
    """Delete a college. Returns False when the id does not exist."""
    college = await db.get(College, college_id)
    if college is None:
        return False
    if college.user_id != user_id:
        raise ForbiddenError()

    await db.delete(college)
    await db.commit()
    logger.info("Deleted college id=%s for user id=%s", college_id, user_id)
    return True
