import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from lvl_api.core import ranking
from lvl_api.models.user import User
from lvl_api.services import relationship_service, user_service


def _serialize(board: ranking.Leaderboard, limit: int) -> dict:
    return {
        "entries": [
            {
                "rank": entry.rank,
                "position": entry.position,
                "user": {
                    "id": entry.profile.user_id,
                    "display_name": entry.profile.display_name,
                    "avatar_url": entry.profile.avatar_url,
                },
                "level": entry.profile.level,
                "xp": entry.profile.xp,
                "tasks_completed": entry.profile.tasks_completed,
                "is_current_user": entry.is_subject,
            }
            for entry in board.top(limit)
        ],
        "current_user_rank": board.subject_rank,
        "current_user_percentile": board.subject_percentile,
        "total_users": board.total_count,
    }


async def get_global_leaderboard(db: AsyncSession, user_id: uuid.UUID, limit: int) -> dict:
    """Top users by XP across the whole site, plus the caller's rank.

    Reads only the top ``limit`` rows; the caller's rank and the field size
    come from counts, so the cost does not grow with the user table.
    """
    caller = await user_service.get_user(db, user_id)
    top = await user_service.get_top_score_profiles(db, limit)
    greater = await db.scalar(select(func.count()).select_from(User).where(User.xp > caller.xp))
    total = await db.scalar(select(func.count()).select_from(User))

    board = ranking.Leaderboard(
        entries=ranking.rank_entries(top, user_id),
        subject_rank=1 + greater,
        total_count=total,
    )
    return _serialize(board, limit)


async def get_friends_leaderboard(db: AsyncSession, user_id: uuid.UUID, limit: int) -> dict:
    """Same ranking, restricted to the caller and their friends."""
    friend_ids = await relationship_service.get_friend_ids(db, user_id)
    profiles = await user_service.get_score_profiles(db, [user_id, *friend_ids])
    return _serialize(ranking.rank(profiles, user_id), limit)
