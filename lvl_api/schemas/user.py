import uuid
from typing import Literal

from pydantic import BaseModel


class UserSummary(BaseModel):
    id: uuid.UUID
    display_name: str
    avatar_url: str | None = None
    level: int
    xp: int
    tasks_completed: int

    model_config = {"from_attributes": True}


class SearchResult(BaseModel):
    id: uuid.UUID
    display_name: str
    avatar_url: str | None = None
    level: int
    xp: int
    status: Literal["friend", "pending", "sent", "none"]
