import uuid

import pytest

from lvl_api.core.relationship import (
    Action,
    Relationship,
    RelationshipState,
    canonical_pair,
    transition,
)
from lvl_api.errors import Forbidden, InvalidTransition, SelfReference

A = uuid.UUID("00000000-0000-0000-0000-00000000000a")
B = uuid.UUID("00000000-0000-0000-0000-00000000000b")


def test_canonical_pair_orders_ids():
    assert canonical_pair(B, A) == (A, B)
    assert canonical_pair(A, B) == (A, B)


def test_canonical_pair_rejects_self():
    with pytest.raises(SelfReference):
        canonical_pair(A, A)


def test_self_target_rejected_for_every_action():
    for action in Action:
        with pytest.raises(SelfReference):
            transition(Relationship.none(), action, A, A)


def test_send_request_from_none():
    new = transition(Relationship.none(), Action.SEND_REQUEST, A, B)
    assert new.state is RelationshipState.PENDING
    assert new.requester == A
    assert new.blocker is None


def test_duplicate_request_rejected():
    with pytest.raises(InvalidTransition):
        transition(Relationship.pending(A), Action.SEND_REQUEST, A, B)


def test_mirror_request_collapses_to_friends():
    new = transition(Relationship.pending(B), Action.SEND_REQUEST, A, B)
    assert new.state is RelationshipState.FRIENDS


def test_request_to_friend_rejected():
    with pytest.raises(InvalidTransition):
        transition(Relationship.friends(A), Action.SEND_REQUEST, A, B)


@pytest.mark.parametrize("blocker", [A, B])
def test_request_while_blocked_rejected(blocker):
    with pytest.raises(InvalidTransition):
        transition(Relationship.blocked(blocker), Action.SEND_REQUEST, A, B)


def test_recipient_accepts():
    new = transition(Relationship.pending(A), Action.ACCEPT_REQUEST, B, A)
    assert new.state is RelationshipState.FRIENDS
    # Requester is still recorded, but only exposed while pending
    assert new.requester is None


def test_requester_cannot_accept_own_request():
    with pytest.raises(InvalidTransition):
        transition(Relationship.pending(A), Action.ACCEPT_REQUEST, A, B)


def test_accept_without_request_rejected():
    with pytest.raises(InvalidTransition):
        transition(Relationship.none(), Action.ACCEPT_REQUEST, B, A)


def test_decline_and_cancel_return_to_none():
    assert transition(Relationship.pending(A), Action.DECLINE_REQUEST, B, A) == Relationship.none()
    assert transition(Relationship.pending(A), Action.CANCEL_REQUEST, A, B) == Relationship.none()


def test_cancel_by_recipient_rejected():
    with pytest.raises(InvalidTransition):
        transition(Relationship.pending(A), Action.CANCEL_REQUEST, B, A)


def test_decline_by_requester_rejected():
    with pytest.raises(InvalidTransition):
        transition(Relationship.pending(A), Action.DECLINE_REQUEST, A, B)


def test_remove_friend():
    assert transition(Relationship.friends(A), Action.REMOVE_FRIEND, B, A) == Relationship.none()


def test_remove_non_friend_rejected():
    with pytest.raises(InvalidTransition):
        transition(Relationship.pending(A), Action.REMOVE_FRIEND, A, B)
    with pytest.raises(InvalidTransition):
        transition(Relationship.none(), Action.REMOVE_FRIEND, A, B)


@pytest.mark.parametrize(
    "current",
    [
        Relationship.none(),
        Relationship.pending(A),
        Relationship.pending(B),
        Relationship.friends(A),
        Relationship.blocked(A),
        Relationship.blocked(B),
    ],
)
def test_block_wins_from_any_state(current):
    new = transition(current, Action.BLOCK, A, B)
    assert new.state is RelationshipState.BLOCKED
    assert new.blocker == A


def test_reblock_is_idempotent():
    once = transition(Relationship.none(), Action.BLOCK, A, B)
    twice = transition(once, Action.BLOCK, A, B)
    assert once == twice


def test_only_blocker_can_unblock():
    with pytest.raises(Forbidden):
        transition(Relationship.blocked(A), Action.UNBLOCK, B, A)
    assert transition(Relationship.blocked(A), Action.UNBLOCK, A, B) == Relationship.none()


def test_unblock_when_not_blocked_rejected():
    with pytest.raises(InvalidTransition):
        transition(Relationship.friends(A), Action.UNBLOCK, A, B)


@pytest.mark.parametrize(
    "action",
    [Action.ACCEPT_REQUEST, Action.DECLINE_REQUEST, Action.CANCEL_REQUEST, Action.REMOVE_FRIEND],
)
def test_blocked_pair_rejects_everything_but_block_and_unblock(action):
    with pytest.raises(InvalidTransition):
        transition(Relationship.blocked(A), action, B, A)
