"""Friend relationship state machine.

A pair of users is always in exactly one state. Directional roles
(requester, blocker) are carried by the state itself, so combinations such as
"friends and blocked" cannot be expressed.

    NONE     --request-->            PENDING{requester}
    PENDING  --accept or mirror-->   FRIENDS
    PENDING  --decline or cancel-->  NONE
    FRIENDS  --remove-->             NONE
    any      --block-->              BLOCKED{blocker}
    BLOCKED  --unblock by blocker--> NONE
"""
import enum
import uuid
from dataclasses import dataclass

from lvl_api.errors import Forbidden, InvalidTransition, SelfReference


class RelationshipState(str, enum.Enum):
    NONE = "none"
    PENDING = "pending"
    FRIENDS = "friends"
    BLOCKED = "blocked"


class Action(str, enum.Enum):
    SEND_REQUEST = "send_request"
    ACCEPT_REQUEST = "accept_request"
    DECLINE_REQUEST = "decline_request"
    CANCEL_REQUEST = "cancel_request"
    REMOVE_FRIEND = "remove_friend"
    BLOCK = "block"
    UNBLOCK = "unblock"


@dataclass(frozen=True)
class Relationship:
    state: RelationshipState
    actor_id: uuid.UUID | None = None

    @classmethod
    def none(cls) -> "Relationship":
        return cls(RelationshipState.NONE)

    @classmethod
    def pending(cls, requester: uuid.UUID) -> "Relationship":
        return cls(RelationshipState.PENDING, requester)

    @classmethod
    def friends(cls, since_requested_by: uuid.UUID) -> "Relationship":
        return cls(RelationshipState.FRIENDS, since_requested_by)

    @classmethod
    def blocked(cls, blocker: uuid.UUID) -> "Relationship":
        return cls(RelationshipState.BLOCKED, blocker)

    @property
    def requester(self) -> uuid.UUID | None:
        return self.actor_id if self.state is RelationshipState.PENDING else None

    @property
    def blocker(self) -> uuid.UUID | None:
        return self.actor_id if self.state is RelationshipState.BLOCKED else None


def canonical_pair(a: uuid.UUID, b: uuid.UUID) -> tuple[uuid.UUID, uuid.UUID]:
    """Order two identities the way relationship rows are keyed."""
    if a == b:
        raise SelfReference()
    return (min(a, b), max(a, b))


def transition(
    current: Relationship,
    action: Action,
    actor: uuid.UUID,
    target: uuid.UUID,
) -> Relationship:
    """Return the state the pair moves to when ``actor`` performs ``action``.

    Raises InvalidTransition when the action is illegal from ``current`` and
    Forbidden when the actor lacks the role the action needs.
    """
    if actor == target:
        raise SelfReference()

    state = current.state

    if action is Action.BLOCK:
        return Relationship.blocked(actor)

    if state is RelationshipState.BLOCKED:
        if action is Action.UNBLOCK:
            if current.blocker != actor:
                raise Forbidden("Only the user who blocked can unblock")
            return Relationship.none()
        raise InvalidTransition("This user is blocked")

    if action is Action.UNBLOCK:
        raise InvalidTransition("This user is not blocked")

    if action is Action.SEND_REQUEST:
        if state is RelationshipState.NONE:
            return Relationship.pending(actor)
        if state is RelationshipState.FRIENDS:
            raise InvalidTransition("Already friends")
        if current.requester == actor:
            raise InvalidTransition("Friend request already sent")
        # Both sides asked: mutual consent
        return Relationship.friends(current.requester)

    if action in (Action.ACCEPT_REQUEST, Action.DECLINE_REQUEST):
        if state is not RelationshipState.PENDING or current.requester != target:
            raise InvalidTransition("No pending friend request from this user")
        if action is Action.ACCEPT_REQUEST:
            return Relationship.friends(target)
        return Relationship.none()

    if action is Action.CANCEL_REQUEST:
        if state is not RelationshipState.PENDING or current.requester != actor:
            raise InvalidTransition("No pending friend request to this user")
        return Relationship.none()

    if action is Action.REMOVE_FRIEND:
        if state is not RelationshipState.FRIENDS:
            raise InvalidTransition("Not friends with this user")
        return Relationship.none()

    raise InvalidTransition(f"Unsupported action: {action}")
