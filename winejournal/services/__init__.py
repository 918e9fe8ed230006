"""Convenience exports for service layer."""
from .access_policy import EntryAccess, FeedAudience, VisibilityEngine, build_visibility_engine, get_visibility_engine
from .auth_service import create_access_token, decode_access_token, get_current_user
from .block_service import block_user, is_blocking, unblock_user
from .entry_service import (
    add_entry_reaction,
    create_entry_comment,
    delete_entry_comment,
    get_entry_detail,
    list_entry_comments,
    list_entry_reactions,
    list_feed_entries,
    list_user_entries,
    remove_entry_reaction,
)
from .friend_graph import (
    FriendEdge,
    RelationshipLookupFailed,
    SqlBlockEdgeStore,
    SqlFriendEdgeStore,
    accepted_friend_ids,
)
from .friendship_service import (
    count_unseen_requests,
    get_request_state,
    list_friend_requests,
    list_friends,
    mark_requests_seen,
    remove_friend_request,
    remove_friendship,
    respond_to_request,
    send_friend_request,
    suggest_friends,
)
from .relationship_service import RelationshipResolver
from .visibility import (
    InvalidTier,
    PrivacyTier,
    RelationshipClass,
    can_view,
    may_react,
    resolve_comments_privacy,
    resolve_reaction_privacy,
    visible_tiers,
)

__all__ = [
    "EntryAccess",
    "FeedAudience",
    "VisibilityEngine",
    "build_visibility_engine",
    "get_visibility_engine",
    "create_access_token",
    "decode_access_token",
    "get_current_user",
    "block_user",
    "is_blocking",
    "unblock_user",
    "add_entry_reaction",
    "create_entry_comment",
    "delete_entry_comment",
    "get_entry_detail",
    "list_entry_comments",
    "list_entry_reactions",
    "list_feed_entries",
    "list_user_entries",
    "remove_entry_reaction",
    "FriendEdge",
    "RelationshipLookupFailed",
    "SqlBlockEdgeStore",
    "SqlFriendEdgeStore",
    "accepted_friend_ids",
    "count_unseen_requests",
    "get_request_state",
    "list_friend_requests",
    "list_friends",
    "mark_requests_seen",
    "remove_friend_request",
    "remove_friendship",
    "respond_to_request",
    "send_friend_request",
    "suggest_friends",
    "RelationshipResolver",
    "InvalidTier",
    "PrivacyTier",
    "RelationshipClass",
    "can_view",
    "may_react",
    "resolve_comments_privacy",
    "resolve_reaction_privacy",
    "visible_tiers",
]
