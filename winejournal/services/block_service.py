"""Business logic for blocking users."""
from __future__ import annotations

import logging
from typing import cast
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import and_, delete, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import FriendRequest, User, UserBlock

logger = logging.getLogger(__name__)


def _get_user_or_404(db: Session, user_id: UUID) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


def _pair_clause(first: UUID, second: UUID):
    return or_(
        and_(FriendRequest.requester_id == first, FriendRequest.recipient_id == second),
        and_(FriendRequest.requester_id == second, FriendRequest.recipient_id == first),
    )


def is_blocking(db: Session, *, blocker_id: UUID, blocked_id: UUID) -> bool:
    stmt = select(UserBlock.blocker_id).where(UserBlock.blocker_id == blocker_id, UserBlock.blocked_id == blocked_id)
    return db.scalar(stmt.limit(1)) is not None


def block_user(db: Session, *, blocker: User, target_id: UUID) -> bool:
    """Block ``target_id`` and sever every friend edge between the pair.

    Returns ``True`` when a new block row was written. Blocking twice is a
    no-op.
    """

    blocker_id = cast(UUID, blocker.id)
    if target_id == blocker_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot block yourself")
    _get_user_or_404(db, target_id)

    created = False
    if not is_blocking(db, blocker_id=blocker_id, blocked_id=target_id):
        db.add(UserBlock(blocker_id=blocker_id, blocked_id=target_id))
        created = True

    # Pending and accepted edges go in the same transaction as the block.
    db.execute(delete(FriendRequest).where(_pair_clause(blocker_id, target_id)))

    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to block user %s for %s", target_id, blocker_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to block user") from exc
    return created


def unblock_user(db: Session, *, blocker: User, target_id: UUID) -> bool:
    blocker_id = cast(UUID, blocker.id)
    if target_id == blocker_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot unblock yourself")

    result = db.execute(
        delete(UserBlock).where(UserBlock.blocker_id == blocker_id, UserBlock.blocked_id == target_id)
    )
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to unblock user") from exc
    return bool(result.rowcount)


__all__ = ["block_user", "unblock_user", "is_blocking"]
