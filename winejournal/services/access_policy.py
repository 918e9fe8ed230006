"""Call-site policies built on the relationship resolver and the decision table.

Handlers ask one question per action (may this viewer see the entry, use its
comments, react to it) and the engine answers with a single classification
plus :func:`~winejournal.services.visibility.can_view`. Lookup failures are
raised as :class:`RelationshipLookupFailed`, never turned into allow/deny.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable
from uuid import UUID

from sqlalchemy.orm import Session

from ..config import Settings, get_settings
from ..database import create_session
from .friend_graph import BlockEdgeStore, FriendEdgeStore, SqlBlockEdgeStore, SqlFriendEdgeStore
from .relationship_service import DEFAULT_MAX_WORKERS, RelationshipResolver
from .visibility import (
    EntryPrivacyFields,
    PrivacyTier,
    RelationshipClass,
    can_view,
    may_react,
    resolve_comments_privacy,
    resolve_reaction_privacy,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FeedAudience:
    """Who a viewer's friends feed draws from, computed once per request."""

    viewer_id: UUID
    direct_friend_ids: frozenset[UUID] = field(default_factory=frozenset)
    friend_of_friend_ids: frozenset[UUID] = field(default_factory=frozenset)
    blocked_ids: frozenset[UUID] = field(default_factory=frozenset)

    @property
    def is_empty(self) -> bool:
        return not self.direct_friend_ids and not self.friend_of_friend_ids

    def relationship_to(self, owner_id: UUID) -> RelationshipClass:
        """Classify ``owner_id`` from the precomputed sets, blocks first."""

        if owner_id == self.viewer_id:
            return RelationshipClass.SELF
        if owner_id in self.blocked_ids:
            return RelationshipClass.BLOCKED
        if owner_id in self.direct_friend_ids:
            return RelationshipClass.DIRECT_FRIEND
        if owner_id in self.friend_of_friend_ids:
            return RelationshipClass.FRIEND_OF_FRIEND
        return RelationshipClass.STRANGER


@dataclass(frozen=True, slots=True)
class EntryAccess:
    """Every gate for one viewer and one entry, from a single classification."""

    relationship: RelationshipClass
    entry_privacy: PrivacyTier
    comments_privacy: PrivacyTier
    reaction_privacy: PrivacyTier
    can_view: bool
    can_comment: bool
    can_view_reactions: bool
    can_react: bool


class VisibilityEngine:
    """Entry points used by handlers and feed assembly.

    One instance serves one request; it holds no state beyond its stores and
    the resolver's deadline.
    """

    def __init__(
        self,
        friend_store: FriendEdgeStore,
        block_store: BlockEdgeStore,
        *,
        max_workers: int = DEFAULT_MAX_WORKERS,
        deadline: float | None = None,
        legacy_comments_scope: bool = True,
    ) -> None:
        self._resolver = RelationshipResolver(
            friend_store,
            block_store,
            max_workers=max_workers,
            deadline=deadline,
        )
        self._legacy_comments_scope = legacy_comments_scope

    def accepted_friend_ids(self, user_id: UUID) -> set[UUID]:
        return self._resolver.accepted_friend_ids(user_id)

    def friends_of_friend_ids(self, user_id: UUID) -> set[UUID]:
        direct = self._resolver.accepted_friend_ids(user_id)
        return self._resolver.friends_of_friends(user_id, direct)

    def classify(self, viewer_id: UUID, owner_id: UUID) -> RelationshipClass:
        return self._resolver.classify(viewer_id, owner_id)

    def is_blocked_between(self, first_id: UUID, second_id: UUID) -> bool:
        return self._resolver.is_blocked_between(first_id, second_id)

    def blocked_user_ids(self, user_id: UUID) -> set[UUID]:
        return self._resolver.blocked_user_ids(user_id)

    def can_view_entry(self, viewer_id: UUID, owner_id: UUID, entry_privacy: PrivacyTier | str) -> bool:
        tier = PrivacyTier.parse(entry_privacy)
        return can_view(self.classify(viewer_id, owner_id), tier)

    def comments_privacy(self, entry: EntryPrivacyFields) -> PrivacyTier:
        return resolve_comments_privacy(entry, legacy_scope=self._legacy_comments_scope)

    def entry_access(
        self,
        viewer_id: UUID,
        entry: Any,
        *,
        relationship: RelationshipClass | None = None,
    ) -> EntryAccess:
        """Resolve every gate on ``entry``.

        Tiers are parsed before any lookup so corrupt rows raise
        :class:`InvalidTier` instead of being denied. Pass ``relationship``
        when it is already known, e.g. from :meth:`FeedAudience.relationship_to`.
        """

        entry_tier = PrivacyTier.parse(entry.entry_privacy)
        comments_tier = self.comments_privacy(entry)
        reaction_tier = resolve_reaction_privacy(entry)
        if relationship is None:
            relationship = self.classify(viewer_id, entry.owner_id)

        visible = can_view(relationship, entry_tier)
        return EntryAccess(
            relationship=relationship,
            entry_privacy=entry_tier,
            comments_privacy=comments_tier,
            reaction_privacy=reaction_tier,
            can_view=visible,
            can_comment=visible and can_view(relationship, comments_tier),
            can_view_reactions=visible and can_view(relationship, reaction_tier),
            can_react=may_react(relationship, entry_tier),
        )

    def can_access_comments(self, viewer_id: UUID, entry: Any) -> bool:
        """Both the entry tier and the comments tier must admit the viewer."""

        return self.entry_access(viewer_id, entry).can_comment

    def can_view_reactions(self, viewer_id: UUID, entry: Any) -> bool:
        return self.entry_access(viewer_id, entry).can_view_reactions

    def can_react(self, viewer_id: UUID, owner_id: UUID, entry_privacy: PrivacyTier | str) -> bool:
        tier = PrivacyTier.parse(entry_privacy)
        if viewer_id == owner_id:
            return False
        return may_react(self.classify(viewer_id, owner_id), tier)

    def feed_audience(self, viewer_id: UUID) -> FeedAudience:
        direct = self._resolver.accepted_friend_ids(viewer_id)
        second_degree = self._resolver.friends_of_friends(viewer_id, direct)
        blocked = self._resolver.blocked_user_ids(viewer_id)
        logger.debug(
            "Feed audience for %s: %d direct, %d second-degree, %d blocked",
            viewer_id,
            len(direct),
            len(second_degree),
            len(blocked),
        )
        return FeedAudience(
            viewer_id=viewer_id,
            direct_friend_ids=frozenset(direct - blocked),
            friend_of_friend_ids=frozenset(second_degree - blocked),
            blocked_ids=frozenset(blocked),
        )


def build_visibility_engine(
    session_factory: Callable[[], Session],
    *,
    settings: Settings | None = None,
) -> VisibilityEngine:
    """Wire SQL-backed stores into an engine whose deadline starts now."""

    resolved = settings or get_settings()
    return VisibilityEngine(
        SqlFriendEdgeStore(session_factory),
        SqlBlockEdgeStore(session_factory),
        max_workers=resolved.relationship_lookup_workers,
        deadline=time.monotonic() + resolved.relationship_lookup_timeout,
        legacy_comments_scope=resolved.legacy_comments_scope,
    )


def get_visibility_engine() -> VisibilityEngine:
    """FastAPI dependency returning a request-scoped engine."""

    return build_visibility_engine(create_session)


__all__ = [
    "EntryAccess",
    "FeedAudience",
    "VisibilityEngine",
    "build_visibility_engine",
    "get_visibility_engine",
]
