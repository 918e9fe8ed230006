"""Tasting entry routes with comment and reaction sub-resources."""
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from ..database import get_session
from ..models import User
from ..schemas.entries import (
    EntryCommentCreate,
    EntryCommentListResponse,
    EntryCommentResponse,
    EntryReactionCreate,
    EntryReactionSummary,
    EntryResponse,
)
from ..services import (
    VisibilityEngine,
    add_entry_reaction,
    create_entry_comment,
    delete_entry_comment,
    get_current_user,
    get_entry_detail,
    get_visibility_engine,
    list_entry_comments,
    list_entry_reactions,
    remove_entry_reaction,
)

router = APIRouter(prefix="/entries", tags=["entries"])


@router.get("/{entry_id}", response_model=EntryResponse)
def get_entry(
    entry_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
    engine: VisibilityEngine = Depends(get_visibility_engine),
) -> EntryResponse:
    return EntryResponse(**get_entry_detail(db, engine, viewer=current_user, entry_id=entry_id))


@router.get("/{entry_id}/comments", response_model=EntryCommentListResponse)
def get_entry_comments(
    entry_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
    engine: VisibilityEngine = Depends(get_visibility_engine),
) -> EntryCommentListResponse:
    items = list_entry_comments(db, engine, viewer=current_user, entry_id=entry_id)
    return EntryCommentListResponse(items=[EntryCommentResponse.model_validate(item) for item in items])


@router.post("/{entry_id}/comments", response_model=EntryCommentResponse, status_code=status.HTTP_201_CREATED)
def add_entry_comment(
    entry_id: UUID,
    payload: EntryCommentCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
    engine: VisibilityEngine = Depends(get_visibility_engine),
) -> EntryCommentResponse:
    comment = create_entry_comment(
        db,
        engine,
        author=current_user,
        entry_id=entry_id,
        body=payload.body,
        parent_comment_id=payload.parent_comment_id,
    )
    return EntryCommentResponse.model_validate(comment)


@router.delete("/{entry_id}/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_entry_comment(
    entry_id: UUID,
    comment_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> Response:
    delete_entry_comment(db, user=current_user, entry_id=entry_id, comment_id=comment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{entry_id}/reactions", response_model=EntryReactionSummary)
def get_entry_reactions(
    entry_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
    engine: VisibilityEngine = Depends(get_visibility_engine),
) -> EntryReactionSummary:
    summary = list_entry_reactions(db, engine, viewer=current_user, entry_id=entry_id)
    return EntryReactionSummary(**summary)


@router.post("/{entry_id}/reactions", response_model=EntryReactionSummary, status_code=status.HTTP_201_CREATED)
def react_to_entry(
    entry_id: UUID,
    payload: EntryReactionCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
    engine: VisibilityEngine = Depends(get_visibility_engine),
) -> EntryReactionSummary:
    summary = add_entry_reaction(db, engine, user=current_user, entry_id=entry_id, emoji=payload.emoji)
    return EntryReactionSummary(**summary)


@router.delete("/{entry_id}/reactions", response_model=EntryReactionSummary)
async def unreact_to_entry(
    entry_id: UUID,
    emoji: str = Query(..., min_length=1, max_length=16),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> EntryReactionSummary:
    summary = remove_entry_reaction(db, user=current_user, entry_id=entry_id, emoji=emoji)
    return EntryReactionSummary(**summary)


__all__ = ["router"]
