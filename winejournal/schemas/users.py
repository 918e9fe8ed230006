"""Schemas describing how the viewer relates to another user."""
from __future__ import annotations

from typing import Literal
from uuid import UUID

from pydantic import BaseModel


class RelationshipResponse(BaseModel):
    user_id: UUID
    relationship: Literal["self", "direct_friend", "friend_of_friend", "stranger", "blocked"]
    friend_status: Literal["none", "request_sent", "request_received", "friends"]
    friend_request_id: UUID | None = None
    visible_tiers: list[str]
    can_react: bool


class BlockStateResponse(BaseModel):
    user_id: UUID
    blocked: bool


__all__ = ["RelationshipResponse", "BlockStateResponse"]
