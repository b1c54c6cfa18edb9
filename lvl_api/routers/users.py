from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from lvl_api.database import get_db
from lvl_api.dependencies import get_current_user
from lvl_api.models.user import User
from lvl_api.schemas.user import SearchResult, UserSummary
from lvl_api.services import user_service

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserSummary)
async def me(user: User = Depends(get_current_user)):
    return user


@router.get("/search", response_model=list[SearchResult])
async def search_users(
    q: str = Query(..., max_length=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await user_service.search_users(db, user.id, q)
