"""Business logic for friend requests and friendships.

A friendship is an accepted ``friend_requests`` row; the direction of the
original request carries no meaning once accepted. Declining, cancelling and
unfriending delete the row.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Literal, cast
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import and_, delete, func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import FriendRequest, User
from .access_policy import VisibilityEngine

logger = logging.getLogger(__name__)

FriendStatus = Literal["none", "request_sent", "request_received", "friends"]


@dataclass(frozen=True, slots=True)
class FriendRequestState:
    status: FriendStatus
    request_id: UUID | None = None


def _pair_clause(first: UUID, second: UUID):
    return or_(
        and_(FriendRequest.requester_id == first, FriendRequest.recipient_id == second),
        and_(FriendRequest.requester_id == second, FriendRequest.recipient_id == first),
    )


def _commit(db: Session, detail: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception(detail)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail) from exc


def _users_by_ids(db: Session, user_ids: set[UUID], *, limit: int | None = None) -> list[User]:
    if not user_ids:
        return []
    stmt = select(User).where(User.id.in_(list(user_ids))).order_by(User.username.asc())
    if limit is not None:
        stmt = stmt.limit(limit)
    return list(db.scalars(stmt))


def list_friends(db: Session, engine: VisibilityEngine, *, user: User) -> list[User]:
    return _users_by_ids(db, engine.accepted_friend_ids(cast(UUID, user.id)))


def list_friend_requests(db: Session, *, user: User) -> tuple[list[FriendRequest], list[FriendRequest]]:
    user_id = cast(UUID, user.id)
    incoming_stmt = (
        select(FriendRequest)
        .where(FriendRequest.recipient_id == user_id, FriendRequest.status == "pending")
        .order_by(FriendRequest.created_at.desc())
    )
    outgoing_stmt = (
        select(FriendRequest)
        .where(FriendRequest.requester_id == user_id, FriendRequest.status == "pending")
        .order_by(FriendRequest.created_at.desc())
    )
    return list(db.scalars(incoming_stmt)), list(db.scalars(outgoing_stmt))


def get_request_state(db: Session, *, viewer_id: UUID, target_id: UUID) -> FriendRequestState:
    if viewer_id == target_id:
        return FriendRequestState(status="none")
    rows = list(db.scalars(select(FriendRequest).where(_pair_clause(viewer_id, target_id))))
    for row in rows:
        if row.status == "accepted":
            return FriendRequestState(status="friends", request_id=row.id)
    for row in rows:
        if row.recipient_id == viewer_id:
            return FriendRequestState(status="request_received", request_id=row.id)
    if rows:
        return FriendRequestState(status="request_sent", request_id=rows[0].id)
    return FriendRequestState(status="none")


def send_friend_request(
    db: Session,
    engine: VisibilityEngine,
    *,
    requester: User,
    recipient_id: UUID,
) -> FriendRequest:
    """Create a pending request, or accept the recipient's own pending one."""

    requester_id = cast(UUID, requester.id)
    if recipient_id == requester_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot befriend yourself")
    if db.get(User, recipient_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    if engine.is_blocked_between(requester_id, recipient_id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Friend requests are unavailable for this user")

    existing = list(db.scalars(select(FriendRequest).where(_pair_clause(requester_id, recipient_id))))
    if any(row.status == "accepted" for row in existing):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Already friends")

    reverse = next((row for row in existing if row.requester_id == recipient_id), None)
    if reverse is not None:
        now = datetime.now(timezone.utc)
        reverse.status = "accepted"
        reverse.responded_at = now
        reverse.seen_at = reverse.seen_at or now
        _commit(db, "Failed to accept request")
        db.refresh(reverse)
        return reverse

    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Pending request already exists")

    request = FriendRequest(requester_id=requester_id, recipient_id=recipient_id)
    db.add(request)
    _commit(db, "Failed to send request")
    db.refresh(request)
    return request


def respond_to_request(db: Session, *, request_id: UUID, recipient: User, accept: bool) -> FriendRequest | None:
    """Accept or decline a pending request addressed to ``recipient``.

    Returns the accepted row, or ``None`` once a declined request is deleted.
    """

    request = db.get(FriendRequest, request_id)
    recipient_id = cast(UUID, recipient.id)
    if request is None or request.recipient_id != recipient_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Request not found")
    if request.status != "pending":
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Request already processed")

    if not accept:
        db.delete(request)
        _commit(db, "Failed to decline request")
        return None

    now = datetime.now(timezone.utc)
    request.status = "accepted"
    request.responded_at = now
    request.seen_at = request.seen_at or now
    _commit(db, "Failed to update request")
    db.refresh(request)
    return request


def remove_friend_request(db: Session, *, request_id: UUID, user: User) -> dict[str, Any]:
    """Cancel an outgoing request or end an accepted friendship.

    Returns a snapshot of the removed row.
    """

    request = db.get(FriendRequest, request_id)
    user_id = cast(UUID, user.id)
    if request is None or not request.involves(user_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Request not found")
    if request.status == "pending" and request.requester_id != user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Decline incoming requests instead")

    removed = {
        "id": request.id,
        "requester_id": request.requester_id,
        "recipient_id": request.recipient_id,
        "status": request.status,
        "created_at": request.created_at,
        "seen_at": request.seen_at,
    }
    db.execute(delete(FriendRequest).where(_pair_clause(request.requester_id, request.recipient_id)))
    _commit(db, "Failed to remove request")
    return removed


def remove_friendship(db: Session, *, user: User, friend_id: UUID) -> None:
    user_id = cast(UUID, user.id)
    result = db.execute(
        delete(FriendRequest).where(_pair_clause(user_id, friend_id), FriendRequest.status == "accepted")
    )
    if not result.rowcount:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Friendship not found")
    _commit(db, "Failed to remove friend")


def count_unseen_requests(db: Session, *, user: User) -> int:
    stmt = select(func.count(FriendRequest.id)).where(
        FriendRequest.recipient_id == cast(UUID, user.id),
        FriendRequest.status == "pending",
        FriendRequest.seen_at.is_(None),
    )
    return int(db.scalar(stmt) or 0)


def mark_requests_seen(db: Session, *, user: User) -> int:
    result = db.execute(
        update(FriendRequest)
        .where(
            FriendRequest.recipient_id == cast(UUID, user.id),
            FriendRequest.status == "pending",
            FriendRequest.seen_at.is_(None),
        )
        .values(seen_at=datetime.now(timezone.utc))
    )
    _commit(db, "Failed to mark requests seen")
    return int(result.rowcount or 0)


def suggest_friends(db: Session, engine: VisibilityEngine, *, user: User, limit: int = 20) -> list[User]:
    """Suggest friends of friends the user has no open request with."""

    user_id = cast(UUID, user.id)
    audience = engine.feed_audience(user_id)
    candidates = set(audience.friend_of_friend_ids)
    if not candidates:
        return []

    pending_stmt = select(FriendRequest.requester_id, FriendRequest.recipient_id).where(
        FriendRequest.status == "pending",
        or_(FriendRequest.requester_id == user_id, FriendRequest.recipient_id == user_id),
    )
    for requester_id, recipient_id in db.execute(pending_stmt).all():
        candidates.discard(recipient_id if requester_id == user_id else requester_id)
    return _users_by_ids(db, candidates, limit=limit)


__all__ = [
    "FriendRequestState",
    "FriendStatus",
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
]
