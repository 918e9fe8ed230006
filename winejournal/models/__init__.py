"""Convenience exports for ORM models."""
from .entry import EntryComment, EntryReaction, WineEntry
from .friend_request import FriendRequest
from .user import User
from .user_block import UserBlock

__all__ = [
    "EntryComment",
    "EntryReaction",
    "FriendRequest",
    "User",
    "UserBlock",
    "WineEntry",
]
