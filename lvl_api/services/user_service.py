import uuid

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from lvl_api.config import settings
from lvl_api.core.ranking import ScoreProfile
from lvl_api.core.relationship import RelationshipState
from lvl_api.errors import NotFound
from lvl_api.models.user import User
from lvl_api.services import relationship_service

# Search label for each state seen from the searcher's side
SEARCH_STATUS_FRIEND = "friend"
SEARCH_STATUS_PENDING = "pending"
SEARCH_STATUS_SENT = "sent"
SEARCH_STATUS_NONE = "none"


def to_score_profile(user: User) -> ScoreProfile:
    return ScoreProfile(
        user_id=user.id,
        xp=user.xp,
        level=user.level,
        tasks_completed=user.tasks_completed,
        display_name=user.display_name,
        avatar_url=user.avatar_url,
    )


async def get_user(db: AsyncSession, user_id: uuid.UUID) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise NotFound()
    return user


async def get_score_profiles(db: AsyncSession, user_ids: list[uuid.UUID]) -> list[ScoreProfile]:
    """Snapshot of score profiles for the given users."""
    result = await db.execute(select(User).where(User.id.in_(user_ids)))
    return [to_score_profile(u) for u in result.scalars().all()]


async def get_top_score_profiles(db: AsyncSession, limit: int) -> list[ScoreProfile]:
    """The first ``limit`` users in leaderboard order."""
    result = await db.execute(
        select(User)
        .order_by(User.xp.desc(), User.level.desc(), User.id)
        .limit(limit)
    )
    return [to_score_profile(u) for u in result.scalars().all()]


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


async def search_users(db: AsyncSession, user_id: uuid.UUID, query: str) -> list[dict]:
    """Find users by name or email and label how each relates to the caller.

    Users in a blocked pair with the caller, in either direction, are left out.
    """
    query = query.strip()
    if len(query) < settings.SEARCH_MIN_QUERY_LENGTH:
        raise ValueError(
            f"Search query must be at least {settings.SEARCH_MIN_QUERY_LENGTH} characters"
        )

    pattern = f"%{_escape_like(query.lower())}%"
    result = await db.execute(
        select(User)
        .where(
            User.id != user_id,
            or_(
                func.lower(User.display_name).like(pattern, escape="\\"),
                func.lower(User.email).like(pattern, escape="\\"),
            ),
        )
        .order_by(User.display_name, User.id)
        .limit(settings.SEARCH_MAX_RESULTS)
    )
    candidates = list(result.scalars().all())

    relationships = await relationship_service.get_relationships_with(
        db, user_id, [c.id for c in candidates]
    )

    matches = []
    for candidate in candidates:
        status = classify(relationships[candidate.id], user_id)
        if status is None:
            continue
        matches.append({
            "id": candidate.id,
            "display_name": candidate.display_name,
            "avatar_url": candidate.avatar_url,
            "level": candidate.level,
            "xp": candidate.xp,
            "status": status,
        })
    return matches


def classify(relationship, user_id: uuid.UUID) -> str | None:
    """Search label for a relationship as seen by ``user_id``; None when blocked."""
    if relationship.state is RelationshipState.BLOCKED:
        return None
    if relationship.state is RelationshipState.FRIENDS:
        return SEARCH_STATUS_FRIEND
    if relationship.state is RelationshipState.PENDING:
        return SEARCH_STATUS_SENT if relationship.requester == user_id else SEARCH_STATUS_PENDING
    return SEARCH_STATUS_NONE
