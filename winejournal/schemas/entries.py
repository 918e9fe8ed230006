"""Pydantic schemas for tasting entries, comments and reactions."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from ..constants import COMMENT_MAX_LENGTH


class EntryResponse(BaseModel):
    """Tasting entry as seen by an authorized viewer.

    Privacy fields carry the tiers actually enforced, legacy fallbacks
    included, and the ``can_*`` flags are the viewer's own gates.
    """

    id: UUID
    user_id: UUID
    wine_name: str | None = None
    producer: str | None = None
    vintage: int | None = None
    notes: str | None = None
    rating: Decimal | None = None
    entry_privacy: str
    comments_privacy: str
    reaction_privacy: str
    created_at: datetime
    can_comment: bool
    can_view_reactions: bool
    can_react: bool
    comment_count: int = 0
    reaction_counts: dict[str, int] = Field(default_factory=dict)
    my_reactions: list[str] = Field(default_factory=list)


class EntryListResponse(BaseModel):
    items: list[EntryResponse]
    next_cursor: datetime | None = None
    has_more: bool = False


class EntryCommentCreate(BaseModel):
    body: str = Field(..., min_length=1, max_length=COMMENT_MAX_LENGTH)
    parent_comment_id: UUID | None = None


class EntryCommentResponse(BaseModel):
    id: UUID
    entry_id: UUID
    user_id: UUID
    username: str | None = None
    avatar_url: str | None = None
    body: str
    parent_comment_id: UUID | None = None
    created_at: datetime
    is_deleted: bool = False
    replies: list["EntryCommentResponse"] = Field(default_factory=list)


class EntryCommentListResponse(BaseModel):
    items: list[EntryCommentResponse]


class EntryReactionCreate(BaseModel):
    emoji: str = Field(..., min_length=1, max_length=16)


class EntryReactionSummary(BaseModel):
    entry_id: UUID
    counts: dict[str, int]
    viewer_reactions: list[str]


EntryCommentResponse.model_rebuild()

__all__ = [
    "EntryResponse",
    "EntryListResponse",
    "EntryCommentCreate",
    "EntryCommentResponse",
    "EntryCommentListResponse",
    "EntryReactionCreate",
    "EntryReactionSummary",
]
