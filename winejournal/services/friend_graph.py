"""Read access to the friendship and block graphs.

The relationship engine never touches the ORM directly. It is handed a
:class:`FriendEdgeStore` and a :class:`BlockEdgeStore`; the SQL-backed
implementations below are what the API wires in, and tests use in-memory
ones.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Protocol
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import FriendRequest, UserBlock

logger = logging.getLogger(__name__)

ACCEPTED = "accepted"


class RelationshipLookupFailed(RuntimeError):
    """Raised when the store cannot answer a friendship or block query.

    Callers must not read this as "no relationship": it means the answer is
    unknown.
    """


@dataclass(frozen=True, slots=True)
class FriendEdge:
    """A friend request row as seen by the graph reader."""

    id: UUID | None
    requester_id: UUID
    recipient_id: UUID
    status: str


class FriendEdgeStore(Protocol):
    def accepted_edges_for(self, user_id: UUID) -> Iterable[FriendEdge]:
        """Return every accepted edge where ``user_id`` is either party."""
        ...


class BlockEdgeStore(Protocol):
    def exists(self, blocker_id: UUID, blocked_id: UUID) -> bool:
        """Return whether ``blocker_id`` has blocked ``blocked_id``."""
        ...

    def blocked_user_ids(self, user_id: UUID) -> set[UUID]:
        """Return users blocked by, or blocking, ``user_id``."""
        ...


SessionFactory = Callable[[], Session]


class SqlFriendEdgeStore:
    """Friend edges read from ``friend_requests``.

    Opens one short-lived session per read so concurrent reads never share a
    :class:`Session`.
    """

    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    def accepted_edges_for(self, user_id: UUID) -> list[FriendEdge]:
        stmt = select(
            FriendRequest.id,
            FriendRequest.requester_id,
            FriendRequest.recipient_id,
            FriendRequest.status,
        ).where(
            FriendRequest.status == ACCEPTED,
            or_(FriendRequest.requester_id == user_id, FriendRequest.recipient_id == user_id),
        )
        try:
            with self._session_factory() as session:
                rows = session.execute(stmt).all()
        except SQLAlchemyError as exc:
            logger.warning("Friend edge lookup failed for user %s", user_id)
            raise RelationshipLookupFailed("Unable to load friendships") from exc

        return [
            FriendEdge(id=row.id, requester_id=row.requester_id, recipient_id=row.recipient_id, status=row.status)
            for row in rows
        ]


class SqlBlockEdgeStore:
    """Block edges read from ``user_blocks``."""

    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    def exists(self, blocker_id: UUID, blocked_id: UUID) -> bool:
        stmt = (
            select(UserBlock.blocker_id)
            .where(UserBlock.blocker_id == blocker_id, UserBlock.blocked_id == blocked_id)
            .limit(1)
        )
        try:
            with self._session_factory() as session:
                found = session.scalar(stmt)
        except SQLAlchemyError as exc:
            logger.warning("Block lookup failed for %s -> %s", blocker_id, blocked_id)
            raise RelationshipLookupFailed("Unable to load blocks") from exc
        return found is not None

    def blocked_user_ids(self, user_id: UUID) -> set[UUID]:
        stmt = select(UserBlock.blocker_id, UserBlock.blocked_id).where(
            or_(UserBlock.blocker_id == user_id, UserBlock.blocked_id == user_id)
        )
        try:
            with self._session_factory() as session:
                rows = session.execute(stmt).all()
        except SQLAlchemyError as exc:
            logger.warning("Block list lookup failed for user %s", user_id)
            raise RelationshipLookupFailed("Unable to load blocks") from exc
        return {row.blocked_id if row.blocker_id == user_id else row.blocker_id for row in rows}


def accepted_friend_ids(store: FriendEdgeStore, user_id: UUID) -> set[UUID]:
    """Return the ids of everyone with an accepted friendship with ``user_id``.

    Both edge directions count as the same friendship. The result never
    contains ``user_id`` itself, and is empty rather than an error when the
    user has no friends. Any store failure surfaces as
    :class:`RelationshipLookupFailed`.
    """

    try:
        edges = list(store.accepted_edges_for(user_id))
    except RelationshipLookupFailed:
        raise
    except Exception as exc:
        raise RelationshipLookupFailed(f"Unable to load friendships for {user_id}") from exc

    friend_ids: set[UUID] = set()
    for edge in edges:
        if edge.status != ACCEPTED:
            continue
        if edge.requester_id == user_id:
            other = edge.recipient_id
        elif edge.recipient_id == user_id:
            other = edge.requester_id
        else:
            continue
        if other != user_id:
            friend_ids.add(other)
    return friend_ids


def block_exists(store: BlockEdgeStore, blocker_id: UUID, blocked_id: UUID) -> bool:
    try:
        return bool(store.exists(blocker_id, blocked_id))
    except RelationshipLookupFailed:
        raise
    except Exception as exc:
        raise RelationshipLookupFailed(f"Unable to load blocks for {blocker_id}") from exc


def blocked_user_ids(store: BlockEdgeStore, user_id: UUID) -> set[UUID]:
    try:
        found = set(store.blocked_user_ids(user_id))
    except RelationshipLookupFailed:
        raise
    except Exception as exc:
        raise RelationshipLookupFailed(f"Unable to load blocks for {user_id}") from exc
    found.discard(user_id)
    return found


__all__ = [
    "BlockEdgeStore",
    "FriendEdge",
    "FriendEdgeStore",
    "RelationshipLookupFailed",
    "SqlBlockEdgeStore",
    "SqlFriendEdgeStore",
    "accepted_friend_ids",
    "block_exists",
    "blocked_user_ids",
]
