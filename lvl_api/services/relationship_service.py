import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import and_, delete, or_, select, update
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from lvl_api.config import settings
from lvl_api.core.relationship import (
    Action,
    Relationship,
    RelationshipState,
    canonical_pair,
    transition,
)
from lvl_api.errors import ConcurrentModification, NotFound, RateLimited, StorageUnavailable
from lvl_api.models.relationship import RelationshipEdge
from lvl_api.models.user import User

logger = logging.getLogger(__name__)


def _to_relationship(edge: RelationshipEdge | None) -> Relationship:
    if edge is None:
        return Relationship.none()
    return Relationship(RelationshipState(edge.status), edge.actor_id)


def _pair_clause(uid1: uuid.UUID, uid2: uuid.UUID):
    return and_(RelationshipEdge.user_id_1 == uid1, RelationshipEdge.user_id_2 == uid2)


async def _load_edge(
    db: AsyncSession, uid1: uuid.UUID, uid2: uuid.UUID
) -> RelationshipEdge | None:
    result = await db.execute(
        select(RelationshipEdge)
        .where(_pair_clause(uid1, uid2))
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def _commit_transition(
    db: AsyncSession,
    uid1: uuid.UUID,
    uid2: uuid.UUID,
    expected: Relationship,
    new: Relationship,
) -> bool:
    """Write ``new`` only if the pair still holds ``expected``.

    Returns False when another writer got there first.
    """
    if new == expected:
        return True

    if expected.state is RelationshipState.NONE:
        db.add(
            RelationshipEdge(
                user_id_1=uid1,
                user_id_2=uid2,
                status=new.state.value,
                actor_id=new.actor_id,
            )
        )
        try:
            await db.flush()
        except IntegrityError as e:
            # A concurrent insert for the same pair won; the session is unusable now
            raise ConcurrentModification() from e
        return True

    guard = and_(
        _pair_clause(uid1, uid2),
        RelationshipEdge.status == expected.state.value,
        RelationshipEdge.actor_id == expected.actor_id,
    )
    if new.state is RelationshipState.NONE:
        stmt = delete(RelationshipEdge).where(guard)
    else:
        stmt = (
            update(RelationshipEdge)
            .where(guard)
            .values(
                status=new.state.value,
                actor_id=new.actor_id,
                updated_at=datetime.now(timezone.utc),
            )
        )
    result = await db.execute(stmt.execution_options(synchronize_session=False))
    return result.rowcount == 1


async def _ensure_user(db: AsyncSession, user_id: uuid.UUID) -> None:
    if await db.get(User, user_id) is None:
        raise NotFound()


async def _apply(
    db: AsyncSession, action: Action, user_id: uuid.UUID, other_id: uuid.UUID
) -> Relationship:
    """Run one state machine step for the pair as a compare-and-swap.

    Re-reads and re-applies when the pair changed between read and write.
    Commits before returning, so a returned state is a stored state.
    """
    uid1, uid2 = canonical_pair(user_id, other_id)
    await _ensure_user(db, other_id)

    try:
        for attempt in range(settings.RELATIONSHIP_MAX_RETRIES):
            current = _to_relationship(await _load_edge(db, uid1, uid2))
            new = transition(current, action, user_id, other_id)
            if await _commit_transition(db, uid1, uid2, current, new):
                await db.commit()
                logger.info(
                    "%s: %s -> %s (%s -> %s)",
                    action.value, user_id, other_id, current.state.value, new.state.value,
                )
                return new
            logger.warning(
                "Lost race on %s for pair %s/%s (attempt %d)",
                action.value, uid1, uid2, attempt + 1,
            )
    except OperationalError as e:
        await db.rollback()
        raise StorageUnavailable() from e
    except ConcurrentModification:
        await db.rollback()
        raise

    raise ConcurrentModification()


async def _reserve_request_quota(user_id: uuid.UUID, redis_client) -> str | None:
    """Take one unit of today's request quota, or raise RateLimited."""
    if redis_client is None:
        return None
    today_key = f"friend_requests:{user_id}:{datetime.now(timezone.utc).date()}"
    count = await redis_client.incr(today_key)
    if count == 1:
        await redis_client.expire(today_key, 86400)
    if count > settings.FRIEND_REQUEST_DAILY_LIMIT:
        await redis_client.decr(today_key)
        raise RateLimited(
            f"Daily friend request limit reached ({settings.FRIEND_REQUEST_DAILY_LIMIT}/day)"
        )
    return today_key


async def send_request(
    db: AsyncSession, user_id: uuid.UUID, other_id: uuid.UUID, redis_client=None
) -> Relationship:
    """Send a friend request. A request crossing one from the other side makes them friends.

    Only requests left pending count toward the daily quota.
    """
    today_key = await _reserve_request_quota(user_id, redis_client)

    try:
        result = await _apply(db, Action.SEND_REQUEST, user_id, other_id)
    except Exception:
        if today_key is not None:
            await redis_client.decr(today_key)
        raise

    if today_key is not None and result.state is not RelationshipState.PENDING:
        await redis_client.decr(today_key)
    return result


async def accept_request(
    db: AsyncSession, user_id: uuid.UUID, other_id: uuid.UUID
) -> Relationship:
    return await _apply(db, Action.ACCEPT_REQUEST, user_id, other_id)


async def decline_request(
    db: AsyncSession, user_id: uuid.UUID, other_id: uuid.UUID
) -> Relationship:
    return await _apply(db, Action.DECLINE_REQUEST, user_id, other_id)


async def cancel_request(
    db: AsyncSession, user_id: uuid.UUID, other_id: uuid.UUID
) -> Relationship:
    """Withdraw a request the caller sent."""
    return await _apply(db, Action.CANCEL_REQUEST, user_id, other_id)


async def remove_friend(
    db: AsyncSession, user_id: uuid.UUID, other_id: uuid.UUID
) -> Relationship:
    return await _apply(db, Action.REMOVE_FRIEND, user_id, other_id)


async def block_user(
    db: AsyncSession, user_id: uuid.UUID, other_id: uuid.UUID
) -> Relationship:
    """Block from any state. Drops any pending request or friendship."""
    return await _apply(db, Action.BLOCK, user_id, other_id)


async def unblock_user(
    db: AsyncSession, user_id: uuid.UUID, other_id: uuid.UUID
) -> Relationship:
    return await _apply(db, Action.UNBLOCK, user_id, other_id)


async def get_relationship_state(
    db: AsyncSession, user_id: uuid.UUID, other_id: uuid.UUID
) -> Relationship:
    """Current state of the pair. Identical whichever side asks."""
    uid1, uid2 = canonical_pair(user_id, other_id)
    return _to_relationship(await _load_edge(db, uid1, uid2))


async def _list_counterparts(db: AsyncSession, user_id: uuid.UUID, *criteria) -> list[User]:
    as_first = select(RelationshipEdge.user_id_2).where(
        RelationshipEdge.user_id_1 == user_id, *criteria
    )
    as_second = select(RelationshipEdge.user_id_1).where(
        RelationshipEdge.user_id_2 == user_id, *criteria
    )
    result = await db.execute(
        select(User)
        .where(or_(User.id.in_(as_first), User.id.in_(as_second)))
        .order_by(User.display_name, User.id)
    )
    return list(result.scalars().all())


async def list_friends(db: AsyncSession, user_id: uuid.UUID) -> list[User]:
    return await _list_counterparts(
        db, user_id, RelationshipEdge.status == RelationshipState.FRIENDS.value
    )


async def list_pending(db: AsyncSession, user_id: uuid.UUID) -> list[User]:
    """Users who sent the caller a request still awaiting an answer."""
    return await _list_counterparts(
        db,
        user_id,
        RelationshipEdge.status == RelationshipState.PENDING.value,
        RelationshipEdge.actor_id != user_id,
    )


async def list_sent(db: AsyncSession, user_id: uuid.UUID) -> list[User]:
    """Users the caller sent a request to that are still unanswered."""
    return await _list_counterparts(
        db,
        user_id,
        RelationshipEdge.status == RelationshipState.PENDING.value,
        RelationshipEdge.actor_id == user_id,
    )


async def list_blocked(db: AsyncSession, user_id: uuid.UUID) -> list[User]:
    """Users the caller has blocked. Blocks imposed on the caller are not listed."""
    return await _list_counterparts(
        db,
        user_id,
        RelationshipEdge.status == RelationshipState.BLOCKED.value,
        RelationshipEdge.actor_id == user_id,
    )


async def get_friend_ids(db: AsyncSession, user_id: uuid.UUID) -> list[uuid.UUID]:
    """Get all friend user IDs for a user."""
    result = await db.execute(
        select(RelationshipEdge).where(
            or_(
                RelationshipEdge.user_id_1 == user_id,
                RelationshipEdge.user_id_2 == user_id,
            ),
            RelationshipEdge.status == RelationshipState.FRIENDS.value,
        )
    )
    edges = result.scalars().all()
    return [e.user_id_2 if e.user_id_1 == user_id else e.user_id_1 for e in edges]


async def get_relationships_with(
    db: AsyncSession, user_id: uuid.UUID, other_ids: list[uuid.UUID]
) -> dict[uuid.UUID, Relationship]:
    """Relationship of ``user_id`` with each of ``other_ids``, in one query."""
    if not other_ids:
        return {}
    result = await db.execute(
        select(RelationshipEdge).where(
            or_(
                and_(
                    RelationshipEdge.user_id_1 == user_id,
                    RelationshipEdge.user_id_2.in_(other_ids),
                ),
                and_(
                    RelationshipEdge.user_id_2 == user_id,
                    RelationshipEdge.user_id_1.in_(other_ids),
                ),
            )
        )
    )
    by_other = {}
    for edge in result.scalars().all():
        other = edge.user_id_2 if edge.user_id_1 == user_id else edge.user_id_1
        by_other[other] = _to_relationship(edge)
    return {oid: by_other.get(oid, Relationship.none()) for oid in other_ids}
