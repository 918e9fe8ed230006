"""Per-user routes: relationship lookup, blocking and entry listings."""
from __future__ import annotations

from datetime import datetime
from typing import cast
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from ..database import get_session
from ..models import User
from ..schemas.entries import EntryListResponse
from ..schemas.users import BlockStateResponse, RelationshipResponse
from ..services import (
    VisibilityEngine,
    block_user,
    get_current_user,
    get_request_state,
    get_visibility_engine,
    is_blocking,
    list_user_entries,
    unblock_user,
)
from ..services.visibility import PrivacyTier, may_react, visible_tiers

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/{user_id}/relationship", response_model=RelationshipResponse)
def get_relationship(
    user_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
    engine: VisibilityEngine = Depends(get_visibility_engine),
) -> RelationshipResponse:
    if db.get(User, user_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    viewer_id = cast(UUID, current_user.id)
    relationship = engine.classify(viewer_id, user_id)
    request_state = get_request_state(db, viewer_id=viewer_id, target_id=user_id)
    return RelationshipResponse(
        user_id=user_id,
        relationship=relationship.value,
        friend_status=request_state.status,
        friend_request_id=request_state.request_id,
        visible_tiers=[tier.value for tier in visible_tiers(relationship)],
        can_react=may_react(relationship, PrivacyTier.FRIENDS),
    )


@router.get("/{user_id}/block", response_model=BlockStateResponse)
async def get_block_state(
    user_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> BlockStateResponse:
    blocked = is_blocking(db, blocker_id=cast(UUID, current_user.id), blocked_id=user_id)
    return BlockStateResponse(user_id=user_id, blocked=blocked)


@router.post("/{user_id}/block", response_model=BlockStateResponse)
async def block_user_endpoint(
    user_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> BlockStateResponse:
    block_user(db, blocker=current_user, target_id=user_id)
    return BlockStateResponse(user_id=user_id, blocked=True)


@router.delete("/{user_id}/block", response_model=BlockStateResponse)
async def unblock_user_endpoint(
    user_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> BlockStateResponse:
    unblock_user(db, blocker=current_user, target_id=user_id)
    return BlockStateResponse(user_id=user_id, blocked=False)


@router.get("/{user_id}/entries", response_model=EntryListResponse)
def user_entries(
    user_id: UUID,
    limit: int | None = Query(None, ge=1),
    cursor: datetime | None = Query(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
    engine: VisibilityEngine = Depends(get_visibility_engine),
) -> EntryListResponse:
    page = list_user_entries(db, engine, viewer=current_user, owner_id=user_id, limit=limit, cursor=cursor)
    return EntryListResponse(**page)


__all__ = ["router"]
