"""Unit tests for relationship classification over in-memory stores."""
from __future__ import annotations

import threading
import time
from typing import Iterable
from uuid import UUID

import pytest

from winejournal.services.access_policy import VisibilityEngine
from winejournal.services.friend_graph import FriendEdge, RelationshipLookupFailed, accepted_friend_ids
from winejournal.services.relationship_service import RelationshipResolver
from winejournal.services.visibility import RelationshipClass


def _resolver(graph, **kwargs) -> RelationshipResolver:
    return RelationshipResolver(graph, graph, **kwargs)


def test_accepted_friend_ids_ignore_direction_and_pending(graph) -> None:
    alice, bob, carol, dave = (graph.user() for _ in range(4))
    graph.befriend(alice, bob)
    graph.befriend(carol, alice)
    graph.befriend(alice, dave, status="pending")

    assert accepted_friend_ids(graph, alice) == {bob, carol}
    assert accepted_friend_ids(graph, dave) == set()


def test_friendship_is_symmetric(graph) -> None:
    users = [graph.user() for _ in range(5)]
    graph.befriend(users[0], users[1])
    graph.befriend(users[2], users[0])
    graph.befriend(users[3], users[4])

    for user in users:
        for friend in accepted_friend_ids(graph, user):
            assert user in accepted_friend_ids(graph, friend)


def test_self_loop_edges_never_list_the_user(graph) -> None:
    alice = graph.user()
    graph.edges.append(FriendEdge(id=None, requester_id=alice, recipient_id=alice, status="accepted"))
    assert accepted_friend_ids(graph, alice) == set()


def test_classify_same_user_is_self_without_reads(graph) -> None:
    alice = graph.user()
    assert _resolver(graph).classify(alice, alice) is RelationshipClass.SELF
    assert graph.reads == []


def test_classify_by_hop_distance(graph) -> None:
    users = graph.chain(5)
    resolver = _resolver(graph)

    assert resolver.classify(users[0], users[1]) is RelationshipClass.DIRECT_FRIEND
    assert resolver.classify(users[0], users[2]) is RelationshipClass.FRIEND_OF_FRIEND
    assert resolver.classify(users[0], users[3]) is RelationshipClass.STRANGER
    assert resolver.classify(users[0], users[4]) is RelationshipClass.STRANGER


def test_classify_is_symmetric(graph) -> None:
    users = graph.chain(4)
    outsider = graph.user()
    graph.block(users[3], users[2])
    resolver = _resolver(graph)

    for first in users + [outsider]:
        for second in users + [outsider]:
            assert resolver.classify(first, second) is resolver.classify(second, first)


def test_direct_friend_with_mutual_friend_stays_direct(graph) -> None:
    viewer, mutual, owner = graph.chain(3)
    graph.befriend(viewer, owner)
    assert _resolver(graph).classify(viewer, owner) is RelationshipClass.DIRECT_FRIEND


@pytest.mark.parametrize("direction", ["viewer_blocks", "owner_blocks"])
def test_block_dominates_stale_friend_edge(graph, direction: str) -> None:
    viewer, owner = graph.user(), graph.user()
    graph.befriend(viewer, owner)
    if direction == "viewer_blocks":
        graph.block(viewer, owner)
    else:
        graph.block(owner, viewer)

    resolver = _resolver(graph)
    assert resolver.classify(viewer, owner) is RelationshipClass.BLOCKED
    assert resolver.is_blocked_between(viewer, owner)
    assert resolver.is_blocked_between(owner, viewer)


def test_block_between_friends_of_friends_is_blocked(graph) -> None:
    viewer, _mutual, owner = graph.chain(3)
    graph.block(owner, viewer)
    assert _resolver(graph).classify(viewer, owner) is RelationshipClass.BLOCKED


def test_friends_of_friends_excludes_viewer_and_direct_friends(graph) -> None:
    viewer = graph.user()
    first, second, far = graph.user(), graph.user(), graph.user()
    graph.befriend(viewer, first)
    graph.befriend(viewer, second)
    graph.befriend(first, second)
    graph.befriend(second, far)

    resolver = _resolver(graph)
    direct = resolver.accepted_friend_ids(viewer)
    assert resolver.friends_of_friends(viewer, direct) == {far}


def test_friends_of_friends_reads_each_direct_friend_once(graph) -> None:
    viewer = graph.user()
    friends = [graph.user() for _ in range(6)]
    for friend in friends:
        graph.befriend(viewer, friend)

    resolver = _resolver(graph, max_workers=3)
    assert resolver.friends_of_friends(viewer, set(friends)) == set()
    assert sorted(graph.reads, key=str) == sorted(friends, key=str)


def test_friends_of_friends_with_no_direct_friends_skips_reads(graph) -> None:
    viewer = graph.user()
    assert _resolver(graph).friends_of_friends(viewer, set()) == set()
    assert graph.reads == []


class _FailingFriendStore:
    def __init__(self, failing: set[UUID] | None = None, delegate=None) -> None:
        self.failing = failing
        self.delegate = delegate

    def accepted_edges_for(self, user_id: UUID) -> Iterable[FriendEdge]:
        if self.failing is None or user_id in self.failing:
            raise ConnectionError("database went away")
        return self.delegate.accepted_edges_for(user_id)


def test_store_failure_propagates_from_classify(graph) -> None:
    viewer, owner = graph.user(), graph.user()
    resolver = RelationshipResolver(_FailingFriendStore(), graph)
    with pytest.raises(RelationshipLookupFailed):
        resolver.classify(viewer, owner)


def test_single_failed_branch_fails_friends_of_friends(graph) -> None:
    viewer = graph.user()
    friends = [graph.user() for _ in range(4)]
    for friend in friends:
        graph.befriend(viewer, friend)

    store = _FailingFriendStore(failing={friends[2]}, delegate=graph)
    resolver = RelationshipResolver(store, graph)
    with pytest.raises(RelationshipLookupFailed):
        resolver.friends_of_friends(viewer, set(friends))


class _BlockingFriendStore:
    def __init__(self, release: threading.Event) -> None:
        self.release = release

    def accepted_edges_for(self, user_id: UUID) -> Iterable[FriendEdge]:
        self.release.wait(timeout=5)
        return []


def test_deadline_overrun_raises_lookup_failed(graph) -> None:
    release = threading.Event()
    resolver = RelationshipResolver(
        _BlockingFriendStore(release),
        graph,
        deadline=time.monotonic() + 0.05,
    )
    try:
        started = time.monotonic()
        with pytest.raises(RelationshipLookupFailed):
            resolver.classify(graph.user(), graph.user())
        assert time.monotonic() - started < 2
    finally:
        release.set()


def test_expired_deadline_fails_before_reading(graph) -> None:
    resolver = _resolver(graph, deadline=time.monotonic() - 1)
    with pytest.raises(RelationshipLookupFailed):
        resolver.classify(graph.user(), graph.user())
    assert graph.reads == []


def test_max_workers_must_be_positive(graph) -> None:
    with pytest.raises(ValueError):
        _resolver(graph, max_workers=0)


class _SlowFriendStore:
    """Answers from ``delegate`` only after ``release`` is set."""

    def __init__(self, delegate, release: threading.Event) -> None:
        self.delegate = delegate
        self.release = release

    def accepted_edges_for(self, user_id: UUID) -> Iterable[FriendEdge]:
        self.release.wait(timeout=5)
        return self.delegate.accepted_edges_for(user_id)


def test_single_friend_fan_out_is_bounded_by_deadline(graph) -> None:
    viewer, only_friend = graph.chain(2)
    release = threading.Event()
    resolver = RelationshipResolver(
        _SlowFriendStore(graph, release),
        graph,
        deadline=time.monotonic() + 0.1,
    )
    try:
        started = time.monotonic()
        with pytest.raises(RelationshipLookupFailed):
            resolver.friends_of_friends(viewer, {only_friend})
        assert time.monotonic() - started < 2
    finally:
        release.set()


def test_single_reads_are_bounded_by_deadline(graph) -> None:
    viewer, _friend = graph.chain(2)
    release = threading.Event()
    resolver = RelationshipResolver(
        _SlowFriendStore(graph, release),
        graph,
        deadline=time.monotonic() + 0.1,
    )
    try:
        started = time.monotonic()
        with pytest.raises(RelationshipLookupFailed):
            resolver.accepted_friend_ids(viewer)
        assert time.monotonic() - started < 2
    finally:
        release.set()


def test_feed_audience_is_bounded_by_deadline(graph) -> None:
    viewer, _friend = graph.chain(2)
    release = threading.Event()
    policy = VisibilityEngine(_SlowFriendStore(graph, release), graph, deadline=time.monotonic() + 0.1)
    try:
        with pytest.raises(RelationshipLookupFailed):
            policy.feed_audience(viewer)
    finally:
        release.set()
