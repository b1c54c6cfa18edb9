"""Leaderboard ranking over a snapshot of score profiles.

Pure functions only: callers load the snapshot, these order and rank it.
"""
import math
import uuid
from collections.abc import Iterable
from dataclasses import dataclass

from lvl_api.errors import NotFound


@dataclass(frozen=True)
class ScoreProfile:
    user_id: uuid.UUID
    xp: int
    level: int
    tasks_completed: int = 0
    display_name: str | None = None
    avatar_url: str | None = None


@dataclass(frozen=True)
class RankedEntry:
    rank: int
    position: int
    profile: ScoreProfile
    is_subject: bool


@dataclass(frozen=True)
class Leaderboard:
    entries: list[RankedEntry]
    subject_rank: int
    total_count: int

    @property
    def subject_percentile(self) -> int:
        return percentile(self.subject_rank, self.total_count)

    def top(self, limit: int) -> list[RankedEntry]:
        return self.entries[:limit]


def sort_key(profile: ScoreProfile) -> tuple:
    # xp desc, level desc, then identity so equal scores always list the same way
    return (-profile.xp, -profile.level, str(profile.user_id))


def rank_entries(
    entities: Iterable[ScoreProfile], subject_id: uuid.UUID | None = None
) -> list[RankedEntry]:
    """Order ``entities`` and give each a competition rank and a list position.

    Rank is ``1 + number of entities with strictly more xp``, so users tied on
    xp share a rank even though their list positions differ. Only valid as a
    full-field rank when ``entities`` is the whole field or a top slice of it.
    """
    entries = []
    current_rank = 0
    previous_xp = None
    for index, profile in enumerate(sorted(entities, key=sort_key)):
        # Sorted by xp first, so the first index holding an xp value equals
        # the count of strictly greater entries.
        if profile.xp != previous_xp:
            current_rank = index + 1
            previous_xp = profile.xp
        entries.append(
            RankedEntry(
                rank=current_rank,
                position=index + 1,
                profile=profile,
                is_subject=profile.user_id == subject_id,
            )
        )
    return entries


def rank(entities: Iterable[ScoreProfile], subject_id: uuid.UUID) -> Leaderboard:
    """Rank every entry of ``entities``, which must include the subject."""
    entries = rank_entries(entities, subject_id)

    subject = next((e.profile for e in entries if e.is_subject), None)
    if subject is None:
        raise NotFound("User not on this leaderboard")

    return Leaderboard(
        entries=entries,
        subject_rank=rank_of((e.profile for e in entries), subject.xp),
        total_count=len(entries),
    )


def rank_of(entities: Iterable[ScoreProfile], xp: int) -> int:
    return 1 + sum(1 for p in entities if p.xp > xp)


def percentile(rank_value: int, total: int) -> int:
    """Rank as a percentage of the field, rounded half up (1 is the top)."""
    if total <= 0:
        return 0
    return math.floor(rank_value / total * 100 + 0.5)
