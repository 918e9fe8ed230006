"""Tests for the call-site policies exposed by VisibilityEngine."""
from __future__ import annotations

from types import SimpleNamespace
from uuid import UUID

import pytest

from winejournal.services.access_policy import VisibilityEngine
from winejournal.services.visibility import InvalidTier, PrivacyTier, RelationshipClass


def _engine(graph, **kwargs) -> VisibilityEngine:
    return VisibilityEngine(graph, graph, **kwargs)


def _entry(owner_id: UUID, entry_privacy: str = "public", **fields: object) -> SimpleNamespace:
    base = {
        "owner_id": owner_id,
        "entry_privacy": entry_privacy,
        "comments_privacy": None,
        "comments_scope": None,
        "reaction_privacy": None,
    }
    base.update(fields)
    return SimpleNamespace(**base)


@pytest.fixture
def trio(graph):
    """Viewer and owner sharing exactly one mutual friend."""
    viewer, mutual, owner = graph.chain(3)
    return SimpleNamespace(viewer=viewer, mutual=mutual, owner=owner)


def test_mutual_friend_sees_friends_of_friends_entry_but_cannot_react(graph, trio) -> None:
    engine = _engine(graph)
    assert engine.classify(trio.viewer, trio.owner) is RelationshipClass.FRIEND_OF_FRIEND
    assert engine.can_view_entry(trio.viewer, trio.owner, "friends_of_friends") is True
    assert engine.can_react(trio.viewer, trio.owner, "friends_of_friends") is False


def test_mutual_friend_cannot_see_friends_entry(graph, trio) -> None:
    assert _engine(graph).can_view_entry(trio.viewer, trio.owner, "friends") is False


def test_friend_of_friend_on_public_entry_views_but_cannot_react(graph, trio) -> None:
    engine = _engine(graph)
    assert engine.can_view_entry(trio.viewer, trio.owner, PrivacyTier.PUBLIC) is True
    assert engine.can_react(trio.viewer, trio.owner, PrivacyTier.PUBLIC) is False


@pytest.mark.parametrize("tier", list(PrivacyTier))
def test_block_hides_every_tier_despite_stale_friend_edge(graph, tier: PrivacyTier) -> None:
    viewer, owner = graph.user(), graph.user()
    graph.befriend(viewer, owner)
    graph.block(owner, viewer)

    engine = _engine(graph)
    assert engine.can_view_entry(viewer, owner, tier) is False
    assert engine.can_react(viewer, owner, tier) is False
    assert engine.can_access_comments(viewer, _entry(owner, tier.value)) is False


@pytest.mark.parametrize("tier", list(PrivacyTier))
def test_owner_sees_every_tier(graph, tier: PrivacyTier) -> None:
    owner = graph.user()
    assert _engine(graph).can_view_entry(owner, owner, tier) is True


def test_owner_cannot_react_to_own_entry(graph) -> None:
    owner = graph.user()
    assert _engine(graph).can_react(owner, owner, "public") is False


def test_direct_friend_reacts_unless_private(graph) -> None:
    viewer, owner = graph.chain(2)
    engine = _engine(graph)
    assert engine.can_react(viewer, owner, "public") is True
    assert engine.can_react(viewer, owner, "friends") is True
    assert engine.can_react(viewer, owner, "private") is False


def test_stranger_cannot_react_to_public_entry(graph) -> None:
    assert _engine(graph).can_react(graph.user(), graph.user(), "public") is False


def test_invalid_tier_raises_instead_of_denying(graph) -> None:
    viewer, owner = graph.chain(2)
    engine = _engine(graph)
    with pytest.raises(InvalidTier):
        engine.can_view_entry(viewer, owner, "everyone")
    with pytest.raises(InvalidTier):
        engine.can_react(viewer, owner, None)  # type: ignore[arg-type]


def test_comments_need_both_entry_and_comments_tiers(graph, trio) -> None:
    engine = _engine(graph)
    assert engine.can_access_comments(trio.viewer, _entry(trio.owner, "public")) is True
    assert engine.can_access_comments(trio.viewer, _entry(trio.owner, "public", comments_privacy="friends")) is False
    # A wider comments tier does not open a narrower entry.
    assert engine.can_access_comments(trio.viewer, _entry(trio.owner, "friends", comments_privacy="public")) is False


def test_legacy_scope_narrows_comments_only_when_enabled(graph, trio) -> None:
    entry = _entry(trio.owner, "public", comments_scope="friends")
    assert _engine(graph).can_access_comments(trio.viewer, entry) is False
    assert _engine(graph, legacy_comments_scope=False).can_access_comments(trio.viewer, entry) is True


def test_reaction_visibility_falls_back_to_entry_tier(graph, trio) -> None:
    engine = _engine(graph)
    assert engine.can_view_reactions(trio.viewer, _entry(trio.owner, "friends_of_friends")) is True
    assert engine.can_view_reactions(trio.viewer, _entry(trio.owner, "public", reaction_privacy="friends")) is False
    assert engine.can_view_reactions(trio.owner, _entry(trio.owner, "public", reaction_privacy="private")) is True


def test_feed_audience_splits_degrees_and_drops_blocked(graph) -> None:
    viewer = graph.user()
    friend, other_friend = graph.user(), graph.user()
    second, blocked_second = graph.user(), graph.user()
    graph.befriend(viewer, friend)
    graph.befriend(other_friend, viewer)
    graph.befriend(friend, second)
    graph.befriend(other_friend, blocked_second)
    graph.block(blocked_second, viewer)

    audience = _engine(graph).feed_audience(viewer)
    assert audience.direct_friend_ids == {friend, other_friend}
    assert audience.friend_of_friend_ids == {second}
    assert audience.blocked_ids == {blocked_second}
    assert not audience.is_empty


def test_feed_audience_for_loner_is_empty(graph) -> None:
    assert _engine(graph).feed_audience(graph.user()).is_empty


def test_entry_access_resolves_every_gate_from_one_classification(graph, trio) -> None:
    engine = _engine(graph)
    access = engine.entry_access(trio.viewer, _entry(trio.owner, "public", comments_scope="friends"))
    assert access.relationship is RelationshipClass.FRIEND_OF_FRIEND
    assert access.comments_privacy is PrivacyTier.FRIENDS
    assert access.reaction_privacy is PrivacyTier.PUBLIC
    assert (access.can_view, access.can_comment, access.can_view_reactions, access.can_react) == (
        True,
        False,
        True,
        False,
    )
    # One classification reads each side's friend list once.
    assert sorted(graph.reads, key=str) == sorted([trio.viewer, trio.owner], key=str)


def test_entry_access_with_given_relationship_skips_reads(graph, trio) -> None:
    engine = _engine(graph)
    access = engine.entry_access(
        trio.viewer, _entry(trio.owner, "friends"), relationship=RelationshipClass.DIRECT_FRIEND
    )
    assert graph.reads == []
    assert access.can_view and access.can_comment and access.can_react


def test_hidden_entry_closes_every_gate(graph, trio) -> None:
    access = _engine(graph).entry_access(trio.viewer, _entry(trio.owner, "friends", comments_privacy="public"))
    assert not (access.can_view or access.can_comment or access.can_view_reactions or access.can_react)


def test_feed_audience_relationship_matches_classify(graph) -> None:
    viewer = graph.user()
    friend, second, stranger, blocker = (graph.user() for _ in range(4))
    graph.befriend(viewer, friend)
    graph.befriend(friend, second)
    graph.befriend(friend, blocker)
    graph.block(blocker, viewer)

    engine = _engine(graph)
    audience = engine.feed_audience(viewer)
    for owner in (viewer, friend, second, stranger, blocker):
        assert audience.relationship_to(owner) is engine.classify(viewer, owner)
