"""AI college recommendations and conversion to kanban entries."""

import json
import logging
import re
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models import College, CollegeRecommendation, CollegeStatus, User
from app.errors import NotFoundError, UpstreamError
from app.services import prompts
from app.services.colleges import build_college, list_colleges_by_status, next_position, parse_status
from app.services.llm_client import LLMClient
from app.services.ownership import get_user_resource_or_none

logger = logging.getLogger(__name__)

MAX_RECOMMENDATIONS = 3

_FENCED_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)```")
_PERCENT_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*%?\s*$")

PARSE_ERROR_MESSAGE = "Failed to parse recommendations. The AI didn't return valid JSON."


# =============================================================================
# PARSING
# =============================================================================


def _strip_code_fence(text: str) -> str:
    match = _FENCED_RE.search(text)
    return match.group(1).strip() if match else text.strip()


def coerce_acceptance_rate(value: Any) -> int | None:
    """Normalize an acceptance rate to an integer percentage in 0-100, or None."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, str):
        match = _PERCENT_RE.match(value)
        if not match:
            return None
        value = float(match.group(1))
    if not isinstance(value, (int, float)):
        return None
    rate = round(value)
    return rate if 0 <= rate <= 100 else None


def parse_recommendations(text: str) -> list[dict[str, Any]]:
    """
    Parse the model's JSON array of recommendations.

    Items without a name are skipped.

    Raises:
        UpstreamError: If the text does not contain a JSON array
    """
    cleaned = _strip_code_fence(text)
    if not cleaned.startswith("["):
        start, end = cleaned.find("["), cleaned.rfind("]")
        if start == -1 or end <= start:
            logger.error("Recommendation reply had no JSON array: %.200s", text)
            raise UpstreamError(PARSE_ERROR_MESSAGE)
        cleaned = cleaned[start:end + 1]

    try:
        items = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.error("Recommendation reply was not valid JSON: %.200s", text)
        raise UpstreamError(PARSE_ERROR_MESSAGE) from e
    if not isinstance(items, list):
        raise UpstreamError(PARSE_ERROR_MESSAGE)

    parsed = []
    for item in items:
        if not isinstance(item, dict):
            continue
        name = str(item.get("name") or "").strip()
        if not name:
            continue
        parsed.append({
            "name": name,
            "description": str(item.get("description") or "").strip(),
            "reason": str(item.get("reason") or "").strip(),
            "acceptance_rate": coerce_acceptance_rate(item.get("acceptanceRate")),
        })
    return parsed


def parse_college_info(text: str) -> dict[str, Any]:
    """Parse the single-college JSON object used for advisor recommendations."""
    cleaned = _strip_code_fence(text)
    start, end = cleaned.find("{"), cleaned.rfind("}")
    if start == -1 or end <= start:
        raise UpstreamError("No JSON object found in AI reply")
    try:
        info = json.loads(cleaned[start:end + 1])
    except json.JSONDecodeError as e:
        raise UpstreamError("AI reply was not valid JSON") from e
    if not isinstance(info, dict):
        raise UpstreamError("AI reply was not a JSON object")
    return {
        "description": str(info.get("description") or "").strip(),
        "reason": str(info.get("reason") or "").strip(),
        "acceptance_rate": coerce_acceptance_rate(info.get("acceptanceRate")),
    }


# =============================================================================
# OPERATIONS
# =============================================================================


async def list_recommendations(db: AsyncSession, user_id: int) -> list[CollegeRecommendation]:
    result = await db.execute(
        select(CollegeRecommendation)
        .where(CollegeRecommendation.user_id == user_id)
        .order_by(CollegeRecommendation.created_at.desc(), CollegeRecommendation.id.desc())
    )
    return list(result.scalars())


async def generate_recommendations(
    db: AsyncSession,
    llm: LLMClient,
    user: User,
    preference: str | None = None,
) -> list[CollegeRecommendation]:
    """
    Ask the AI for new suggestions and persist up to three.

    Names already on the board or already recommended are dropped
    (case-insensitive), as are duplicates within the reply.
    """
    by_status = {
        status: [c.name for c in await list_colleges_by_status(db, user.id, status)]
        for status in CollegeStatus
    }
    existing_recs = [r.name for r in await list_recommendations(db, user.id)]

    prompt = prompts.recommendation_prompt(
        user.profile_description,
        preference,
        by_status[CollegeStatus.APPLYING],
        by_status[CollegeStatus.RESEARCHING],
        by_status[CollegeStatus.NOT_APPLYING],
        existing_recs,
    )
    suggestions = parse_recommendations(await llm.complete(prompt))

    taken = {name.casefold() for names in by_status.values() for name in names}
    taken.update(name.casefold() for name in existing_recs)

    saved = []
    for suggestion in suggestions:
        key = suggestion["name"].casefold()
        if key in taken:
            logger.info("Dropping duplicate recommendation %r", suggestion["name"])
            continue
        taken.add(key)
        recommendation = CollegeRecommendation(
            user_id=user.id,
            name=suggestion["name"],
            description=suggestion["description"],
            reason=suggestion["reason"],
            acceptance_rate=suggestion["acceptance_rate"],
        )
        db.add(recommendation)
        saved.append(recommendation)
        if len(saved) == MAX_RECOMMENDATIONS:
            break

    await db.commit()
    for recommendation in saved:
        await db.refresh(recommendation)
    logger.info("Saved %d recommendation(s) for user id=%s", len(saved), user.id)
    return saved


async def delete_recommendation(db: AsyncSession, user_id: int, recommendation_id: int) -> bool:
    recommendation = await get_user_resource_or_none(
        db, CollegeRecommendation, recommendation_id, user_id
    )
    if recommendation is None:
        return False
    await db.delete(recommendation)
    await db.commit()
    return True


async def convert_to_college(
    db: AsyncSession,
    user_id: int,
    recommendation_id: int,
    status: str | CollegeStatus,
) -> College:
    """Move a recommendation onto the board. Creation and deletion commit together."""
    status = parse_status(status)
    recommendation = await get_user_resource_or_none(
        db, CollegeRecommendation, recommendation_id, user_id
    )
    if recommendation is None:
        raise NotFoundError("Recommendation not found")

    position = await next_position(db, user_id, status)
    college = build_college(user_id, recommendation.name, status, position)
    db.add(college)
    await db.delete(recommendation)
    await db.commit()
    await db.refresh(college)
    return college
