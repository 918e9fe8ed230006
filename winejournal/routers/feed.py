"""Feed assembly route."""
from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..database import get_session
from ..models import User
from ..schemas.entries import EntryListResponse
from ..services import VisibilityEngine, get_current_user, get_visibility_engine, list_feed_entries
from ..services.entry_service import FeedScope

router = APIRouter(prefix="/feed", tags=["feed"])


@router.get("", response_model=EntryListResponse)
def get_feed(
    scope: FeedScope = Query("public"),
    limit: int | None = Query(None, ge=1),
    cursor: datetime | None = Query(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
    engine: VisibilityEngine = Depends(get_visibility_engine),
) -> EntryListResponse:
    page = list_feed_entries(db, engine, viewer=current_user, scope=scope, limit=limit, cursor=cursor)
    return EntryListResponse(**page)


__all__ = ["router"]
