from lvl_api.models.base import Base
from lvl_api.models.relationship import RelationshipEdge
from lvl_api.models.user import User

__all__ = [
    "Base",
    "RelationshipEdge",
    "User",
]
