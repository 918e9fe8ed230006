"""Privacy tiers, relationship classes and the decision table joining them.

Everything in this module is pure: no store access and no side effects. The
table in :data:`_DECISION_TABLE` is the only place that says which
relationship may see which tier; the policy adapters in
:mod:`winejournal.services.access_policy` must go through :func:`can_view`.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Protocol

from ..constants import PRIVACY_LEVELS


class InvalidTier(ValueError):
    """Raised when a value outside the four privacy tiers reaches the decision table."""

    def __init__(self, value: Any) -> None:
        super().__init__(f"Unknown privacy tier: {value!r}")
        self.value = value


class PrivacyTier(str, Enum):
    PUBLIC = "public"
    FRIENDS_OF_FRIENDS = "friends_of_friends"
    FRIENDS = "friends"
    PRIVATE = "private"

    @classmethod
    def parse(cls, value: Any) -> "PrivacyTier":
        """Return the tier for ``value`` or raise :class:`InvalidTier`.

        Accepts enum members and their exact string values. ``None``, blank
        strings and differently-cased values are rejected rather than
        defaulted.
        """

        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError as exc:
            raise InvalidTier(value) from exc


class RelationshipClass(str, Enum):
    SELF = "self"
    DIRECT_FRIEND = "direct_friend"
    FRIEND_OF_FRIEND = "friend_of_friend"
    STRANGER = "stranger"
    BLOCKED = "blocked"


# Most open first.
TIERS_BY_OPENNESS: tuple[PrivacyTier, ...] = tuple(PrivacyTier(value) for value in PRIVACY_LEVELS)

_DECISION_TABLE: dict[PrivacyTier, frozenset[RelationshipClass]] = {
    PrivacyTier.PUBLIC: frozenset(
        {
            RelationshipClass.SELF,
            RelationshipClass.DIRECT_FRIEND,
            RelationshipClass.FRIEND_OF_FRIEND,
            RelationshipClass.STRANGER,
        }
    ),
    PrivacyTier.FRIENDS_OF_FRIENDS: frozenset(
        {
            RelationshipClass.SELF,
            RelationshipClass.DIRECT_FRIEND,
            RelationshipClass.FRIEND_OF_FRIEND,
        }
    ),
    PrivacyTier.FRIENDS: frozenset({RelationshipClass.SELF, RelationshipClass.DIRECT_FRIEND}),
    PrivacyTier.PRIVATE: frozenset({RelationshipClass.SELF}),
}


def can_view(relationship: RelationshipClass | str, tier: PrivacyTier | str) -> bool:
    """Return whether ``relationship`` is authorized for content at ``tier``."""

    parsed_tier = PrivacyTier.parse(tier)
    return RelationshipClass(relationship) in _DECISION_TABLE[parsed_tier]


def visible_tiers(relationship: RelationshipClass | str) -> tuple[PrivacyTier, ...]:
    """Return every tier ``relationship`` may view, most open first.

    List endpoints filter their queries with this instead of checking rows
    one at a time. A blocked relationship yields an empty tuple.
    """

    rel = RelationshipClass(relationship)
    return tuple(tier for tier in TIERS_BY_OPENNESS if rel in _DECISION_TABLE[tier])


def may_react(relationship: RelationshipClass | str, tier: PrivacyTier | str) -> bool:
    """Reactions need a direct friendship on a non-private entry.

    Seeing an entry is not enough, and owners never react to their own.
    """

    parsed_tier = PrivacyTier.parse(tier)
    if parsed_tier is PrivacyTier.PRIVATE:
        return False
    return RelationshipClass(relationship) is RelationshipClass.DIRECT_FRIEND


class EntryPrivacyFields(Protocol):
    entry_privacy: Any
    comments_privacy: Any
    comments_scope: Any
    reaction_privacy: Any


def resolve_comments_privacy(entry: EntryPrivacyFields, *, legacy_scope: bool = True) -> PrivacyTier:
    """Return the tier that governs comments on ``entry``.

    An explicit ``comments_privacy`` wins. Rows written before that column
    existed fall back to the two-valued ``comments_scope``: ``friends`` narrows
    comments to direct friends unless the entry is already private, anything
    else inherits the entry tier. With ``legacy_scope`` off the scope column is
    ignored. Stored data is never modified here.
    """

    entry_tier = PrivacyTier.parse(entry.entry_privacy)
    explicit = getattr(entry, "comments_privacy", None)
    if explicit is not None:
        return PrivacyTier.parse(explicit)

    if legacy_scope and getattr(entry, "comments_scope", None) == "friends" and entry_tier is not PrivacyTier.PRIVATE:
        return PrivacyTier.FRIENDS
    return entry_tier


def resolve_reaction_privacy(entry: EntryPrivacyFields) -> PrivacyTier:
    """Return the tier that governs who may see reactions on ``entry``."""

    explicit = getattr(entry, "reaction_privacy", None)
    if explicit is not None:
        return PrivacyTier.parse(explicit)
    return PrivacyTier.parse(entry.entry_privacy)


__all__ = [
    "EntryPrivacyFields",
    "InvalidTier",
    "PrivacyTier",
    "RelationshipClass",
    "TIERS_BY_OPENNESS",
    "can_view",
    "may_react",
    "resolve_comments_privacy",
    "resolve_reaction_privacy",
    "visible_tiers",
]
