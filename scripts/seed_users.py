"""Seed demo users for trying out friends and leaderboards.

Run:
    python scripts/seed_users.py

Removes any earlier demo users, creates them again with scores, then makes
every demo user friends with every other one.
"""
import asyncio
import itertools
import logging
import uuid

from sqlalchemy import delete

from lvl_api.core.relationship import Relationship, canonical_pair
from lvl_api.database import async_session, engine
from lvl_api.models.relationship import RelationshipEdge
from lvl_api.models.user import User

logger = logging.getLogger("seed_users")

DEMO_USERS = [
    ("Alice Johnson", "alice@test.com", 5, 450, 25),
    ("Bob Smith", "bob@test.com", 3, 280, 15),
    ("Charlie Brown", "charlie@test.com", 7, 720, 42),
    ("Diana Ross", "diana@test.com", 2, 150, 8),
    ("Edward King", "edward@test.com", 10, 1200, 75),
    ("Fiona Green", "fiona@test.com", 4, 380, 20),
    ("George Wilson", "george@test.com", 6, 550, 32),
    ("Hannah Davis", "hannah@test.com", 1, 50, 3),
]


async def seed() -> None:
    async with async_session() as session:
        emails = [email for _, email, *_ in DEMO_USERS]
        result = await session.execute(delete(User).where(User.email.in_(emails)))
        logger.info("Deleted %d existing demo users", result.rowcount)

        users = []
        for name, email, level, xp, tasks in DEMO_USERS:
            user = User(
                id=uuid.uuid4(),
                email=email,
                display_name=name,
                level=level,
                xp=xp,
                tasks_completed=tasks,
            )
            session.add(user)
            users.append(user)
            logger.info("Created %s (%s) - level %d, %d XP", name, email, level, xp)

        for a, b in itertools.combinations(users, 2):
            uid1, uid2 = canonical_pair(a.id, b.id)
            friends = Relationship.friends(a.id)
            session.add(
                RelationshipEdge(
                    user_id_1=uid1,
                    user_id_2=uid2,
                    status=friends.state.value,
                    actor_id=friends.actor_id,
                )
            )

        await session.commit()
        logger.info("Made all %d demo users friends with each other", len(users))

    await engine.dispose()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    asyncio.run(seed())
