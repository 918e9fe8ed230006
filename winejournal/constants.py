"""Project-wide constant values."""
from __future__ import annotations

# Most open first. Stored as the ``privacy_level`` enum.
PRIVACY_LEVELS = ("public", "friends_of_friends", "friends", "private")

# Pre-``comments_privacy`` rows only carry this two-valued scope.
COMMENTS_SCOPES = ("viewers", "friends")

FRIEND_REQUEST_STATUSES = ("pending", "accepted")

REACTION_EMOJIS = ("🍷", "🔥", "❤️", "👀", "🤝")

COMMENT_MAX_LENGTH = 1000

__all__ = [
    "PRIVACY_LEVELS",
    "COMMENTS_SCOPES",
    "FRIEND_REQUEST_STATUSES",
    "REACTION_EMOJIS",
    "COMMENT_MAX_LENGTH",
]
