"""Aggregate router exports."""
from .entries import router as entries_router
from .feed import router as feed_router
from .friends import router as friends_router
from .users import router as users_router

__all__ = [
    "entries_router",
    "feed_router",
    "friends_router",
    "users_router",
]
