import uuid

from pydantic import BaseModel


class LeaderboardUser(BaseModel):
    id: uuid.UUID
    display_name: str | None
    avatar_url: str | None = None


class LeaderboardEntry(BaseModel):
    rank: int
    position: int
    user: LeaderboardUser
    level: int
    xp: int
    tasks_completed: int
    is_current_user: bool


class LeaderboardResponse(BaseModel):
    entries: list[LeaderboardEntry]
    current_user_rank: int
    current_user_percentile: int
    total_users: int
