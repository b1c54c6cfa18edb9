import uuid

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from lvl_api.database import get_db
from lvl_api.dependencies import get_current_user
from lvl_api.models.user import User
from lvl_api.schemas.relationship import ActionResponse, RelationshipResponse
from lvl_api.schemas.user import UserSummary
from lvl_api.services import relationship_service

router = APIRouter(prefix="/friends", tags=["friends"])


@router.get("", response_model=list[UserSummary])
async def list_friends(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await relationship_service.list_friends(db, user.id)


@router.get("/requests/pending", response_model=list[UserSummary])
async def list_pending_requests(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await relationship_service.list_pending(db, user.id)


@router.get("/requests/sent", response_model=list[UserSummary])
async def list_sent_requests(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await relationship_service.list_sent(db, user.id)


@router.get("/blocked", response_model=list[UserSummary])
async def list_blocked_users(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await relationship_service.list_blocked(db, user.id)


@router.get("/{user_id}/status", response_model=RelationshipResponse)
async def relationship_status(
    user_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    rel = await relationship_service.get_relationship_state(db, user.id, user_id)
    return {
        "user_id": user_id,
        "state": rel.state,
        "requester_id": rel.requester,
        "blocker_id": rel.blocker,
    }


@router.post("/{user_id}/request", response_model=ActionResponse, status_code=201)
async def send_friend_request(
    user_id: uuid.UUID,
    req: Request,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    redis_client = getattr(req.app.state, "redis", None)
    rel = await relationship_service.send_request(db, user.id, user_id, redis_client)
    return {"status": rel.state}


@router.delete("/{user_id}/request", response_model=ActionResponse)
async def cancel_friend_request(
    user_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    rel = await relationship_service.cancel_request(db, user.id, user_id)
    return {"status": rel.state}


@router.post("/{user_id}/accept", response_model=ActionResponse)
async def accept_friend_request(
    user_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    rel = await relationship_service.accept_request(db, user.id, user_id)
    return {"status": rel.state}


@router.post("/{user_id}/decline", response_model=ActionResponse)
async def decline_friend_request(
    user_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    rel = await relationship_service.decline_request(db, user.id, user_id)
    return {"status": rel.state}


@router.delete("/{user_id}", response_model=ActionResponse)
async def remove_friend(
    user_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    rel = await relationship_service.remove_friend(db, user.id, user_id)
    return {"status": rel.state}


@router.post("/{user_id}/block", response_model=ActionResponse)
async def block_user(
    user_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    rel = await relationship_service.block_user(db, user.id, user_id)
    return {"status": rel.state}


@router.delete("/{user_id}/block", response_model=ActionResponse)
async def unblock_user(
    user_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    rel = await relationship_service.unblock_user(db, user.id, user_id)
    return {"status": rel.state}
