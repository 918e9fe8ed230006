"""Schemas for friend requests and friend listings."""
from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class FriendSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(..., description="Friend user ID")
    username: str
    display_name: str | None = None
    avatar_url: str | None = None


class FriendRequestPayload(BaseModel):
    user_id: UUID


class FriendRequestResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    requester_id: UUID
    recipient_id: UUID
    status: Literal["pending", "accepted"]
    created_at: datetime
    seen_at: datetime | None = None


class FriendsOverviewResponse(BaseModel):
    friends: list[FriendSummary]
    incoming_requests: list[FriendRequestResponse]
    outgoing_requests: list[FriendRequestResponse]


class FriendRequestCountResponse(BaseModel):
    unseen: int


class FriendSuggestionsResponse(BaseModel):
    suggestions: list[FriendSummary]


__all__ = [
    "FriendSummary",
    "FriendRequestPayload",
    "FriendRequestResponse",
    "FriendsOverviewResponse",
    "FriendRequestCountResponse",
    "FriendSuggestionsResponse",
]
