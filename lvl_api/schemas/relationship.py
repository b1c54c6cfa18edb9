import uuid

from pydantic import BaseModel

from lvl_api.core.relationship import RelationshipState


class RelationshipResponse(BaseModel):
    user_id: uuid.UUID
    state: RelationshipState
    requester_id: uuid.UUID | None = None
    blocker_id: uuid.UUID | None = None


class ActionResponse(BaseModel):
    status: RelationshipState
