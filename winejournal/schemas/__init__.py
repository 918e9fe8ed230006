"""Pydantic schemas exposed by the API."""
from .entries import (
    EntryCommentCreate,
    EntryCommentListResponse,
    EntryCommentResponse,
    EntryListResponse,
    EntryReactionCreate,
    EntryReactionSummary,
    EntryResponse,
)
from .friends import (
    FriendRequestCountResponse,
    FriendRequestPayload,
    FriendRequestResponse,
    FriendsOverviewResponse,
    FriendSuggestionsResponse,
    FriendSummary,
)
from .users import BlockStateResponse, RelationshipResponse

__all__ = [
    "EntryCommentCreate",
    "EntryCommentListResponse",
    "EntryCommentResponse",
    "EntryListResponse",
    "EntryReactionCreate",
    "EntryReactionSummary",
    "EntryResponse",
    "FriendRequestCountResponse",
    "FriendRequestPayload",
    "FriendRequestResponse",
    "FriendsOverviewResponse",
    "FriendSuggestionsResponse",
    "FriendSummary",
    "BlockStateResponse",
    "RelationshipResponse",
]
