import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from lvl_api.models.base import Base


class RelationshipEdge(Base):
    """One row per unordered pair of users. No row means no relationship."""

    __tablename__ = "relationships"

    # Canonical ordering: user_id_1 < user_id_2 so each pair has a single row
    user_id_1: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id_2: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(String(20), nullable=False)  # pending, friends, blocked
    # Requester while pending, blocker while blocked
    actor_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        UniqueConstraint("user_id_1", "user_id_2", name="uq_relationships_pair"),
        CheckConstraint("user_id_1 < user_id_2", name="canonical_order"),
        CheckConstraint("status IN ('pending', 'friends', 'blocked')", name="status"),
    )
