from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from lvl_api.config import settings
from lvl_api.database import get_db
from lvl_api.dependencies import get_current_user
from lvl_api.models.user import User
from lvl_api.schemas.leaderboard import LeaderboardResponse
from lvl_api.services import leaderboard_service

router = APIRouter(prefix="/leaderboard", tags=["leaderboard"])

LimitQuery = Query(
    settings.LEADERBOARD_DEFAULT_LIMIT, ge=1, le=settings.LEADERBOARD_MAX_LIMIT
)


@router.get("", response_model=LeaderboardResponse)
async def global_leaderboard(
    limit: int = LimitQuery,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await leaderboard_service.get_global_leaderboard(db, user.id, limit)


@router.get("/friends", response_model=LeaderboardResponse)
async def friends_leaderboard(
    limit: int = LimitQuery,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await leaderboard_service.get_friends_leaderboard(db, user.id, limit)
