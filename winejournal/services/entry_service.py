"""Read paths for tasting entries, their comments and their reactions.

Every function here asks :class:`VisibilityEngine` before touching content.
List endpoints resolve the allowed tiers once and push them into the query.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Callable, Literal, cast
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import and_, func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import get_settings
from ..constants import COMMENT_MAX_LENGTH, REACTION_EMOJIS
from ..models import EntryComment, EntryReaction, User, WineEntry
from .access_policy import EntryAccess, VisibilityEngine
from .visibility import RelationshipClass, visible_tiers

logger = logging.getLogger(__name__)

FeedScope = Literal["public", "friends"]

COMMENTS_FORBIDDEN = "You cannot view comments for this post."
REACTIONS_FORBIDDEN = "You cannot view reactions for this post."
REACT_FORBIDDEN = "Only mutual friends can react to this entry."


def _get_entry_or_404(db: Session, entry_id: UUID) -> WineEntry:
    entry = db.get(WineEntry, entry_id)
    if entry is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Entry not found")
    return entry


def _clamp_limit(limit: int | None) -> int:
    settings = get_settings()
    if limit is None:
        return settings.feed_default_limit
    return max(1, min(settings.feed_max_limit, limit))


def _tier_values(relationship: RelationshipClass) -> list[str]:
    return [tier.value for tier in visible_tiers(relationship)]


def _interaction_summaries(
    db: Session, *, entry_ids: list[UUID], viewer_id: UUID
) -> tuple[dict[UUID, int], dict[UUID, dict[str, int]], dict[UUID, set[str]]]:
    if not entry_ids:
        return {}, {}, {}

    comment_counts: dict[UUID, int] = {
        entry_id: int(total)
        for entry_id, total in db.execute(
            select(EntryComment.entry_id, func.count(EntryComment.id))
            .where(EntryComment.entry_id.in_(entry_ids), EntryComment.deleted_at.is_(None))
            .group_by(EntryComment.entry_id)
        ).all()
    }
    reaction_counts: dict[UUID, dict[str, int]] = defaultdict(dict)
    for entry_id, emoji, total in db.execute(
        select(EntryReaction.entry_id, EntryReaction.emoji, func.count(EntryReaction.id))
        .where(EntryReaction.entry_id.in_(entry_ids))
        .group_by(EntryReaction.entry_id, EntryReaction.emoji)
    ).all():
        reaction_counts[entry_id][emoji] = int(total)
    mine: dict[UUID, set[str]] = defaultdict(set)
    for entry_id, emoji in db.execute(
        select(EntryReaction.entry_id, EntryReaction.emoji).where(
            EntryReaction.entry_id.in_(entry_ids), EntryReaction.user_id == viewer_id
        )
    ).all():
        mine[entry_id].add(emoji)
    return comment_counts, reaction_counts, mine


def _describe_entries(
    db: Session, *, viewer_id: UUID, entries: list[WineEntry], accesses: list[EntryAccess]
) -> list[dict[str, Any]]:
    """Serialize entries with their resolved tiers and per-viewer gates.

    Comment and reaction figures are only reported where the matching gate
    admits the viewer.
    """

    comment_counts, reaction_counts, mine = _interaction_summaries(
        db, entry_ids=[entry.id for entry in entries], viewer_id=viewer_id
    )
    described: list[dict[str, Any]] = []
    for entry, access in zip(entries, accesses):
        counts = reaction_counts.get(entry.id, {}) if access.can_view_reactions else {}
        own = mine.get(entry.id, set()) if access.can_view_reactions else set()
        described.append(
            {
                "id": entry.id,
                "user_id": entry.user_id,
                "wine_name": entry.wine_name,
                "producer": entry.producer,
                "vintage": entry.vintage,
                "notes": entry.notes,
                "rating": entry.rating,
                "entry_privacy": access.entry_privacy.value,
                "comments_privacy": access.comments_privacy.value,
                "reaction_privacy": access.reaction_privacy.value,
                "created_at": entry.created_at,
                "can_comment": access.can_comment,
                "can_view_reactions": access.can_view_reactions,
                "can_react": access.can_react,
                "comment_count": comment_counts.get(entry.id, 0) if access.can_comment else 0,
                "reaction_counts": {emoji: counts[emoji] for emoji in REACTION_EMOJIS if emoji in counts},
                "my_reactions": [emoji for emoji in REACTION_EMOJIS if emoji in own],
            }
        )
    return described


def _entry_page(
    db: Session,
    engine: VisibilityEngine,
    *,
    viewer_id: UUID,
    rows: list[WineEntry],
    page_size: int,
    relationship_for: Callable[[UUID], RelationshipClass],
) -> dict[str, Any]:
    has_more = len(rows) > page_size
    entries = rows[:page_size]
    accesses = [
        engine.entry_access(viewer_id, entry, relationship=relationship_for(entry.owner_id)) for entry in entries
    ]
    return {
        "items": _describe_entries(db, viewer_id=viewer_id, entries=entries, accesses=accesses),
        "next_cursor": entries[-1].created_at if has_more else None,
        "has_more": has_more,
    }


def get_entry_detail(db: Session, engine: VisibilityEngine, *, viewer: User, entry_id: UUID) -> dict[str, Any]:
    """Return the described entry, or 404 when it is missing or hidden."""

    entry = _get_entry_or_404(db, entry_id)
    viewer_id = cast(UUID, viewer.id)
    access = engine.entry_access(viewer_id, entry)
    if not access.can_view:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Entry not found")
    return _describe_entries(db, viewer_id=viewer_id, entries=[entry], accesses=[access])[0]


def _empty_page() -> dict[str, Any]:
    return {"items": [], "next_cursor": None, "has_more": False}


def list_user_entries(
    db: Session,
    engine: VisibilityEngine,
    *,
    viewer: User,
    owner_id: UUID,
    limit: int | None = None,
    cursor: datetime | None = None,
) -> dict[str, Any]:
    if db.get(User, owner_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    viewer_id = cast(UUID, viewer.id)
    relationship = engine.classify(viewer_id, owner_id)
    tiers = _tier_values(relationship)
    if not tiers:
        return _empty_page()

    page_size = _clamp_limit(limit)
    stmt = select(WineEntry).where(WineEntry.user_id == owner_id, WineEntry.entry_privacy.in_(tiers))
    if cursor is not None:
        stmt = stmt.where(WineEntry.created_at < cursor)
    stmt = stmt.order_by(WineEntry.created_at.desc()).limit(page_size + 1)
    return _entry_page(
        db,
        engine,
        viewer_id=viewer_id,
        rows=list(db.scalars(stmt)),
        page_size=page_size,
        relationship_for=lambda _owner_id: relationship,
    )


def list_feed_entries(
    db: Session,
    engine: VisibilityEngine,
    *,
    viewer: User,
    scope: FeedScope = "public",
    limit: int | None = None,
    cursor: datetime | None = None,
) -> dict[str, Any]:
    """Return a page of feed entries, newest first.

    ``public`` lists public entries by anyone not blocked either way.
    ``friends`` lists what direct friends and friends of friends have shared
    at tiers their relationship allows. The viewer's audience is resolved
    once and reused to classify every entry on the page.
    """

    viewer_id = cast(UUID, viewer.id)
    audience = engine.feed_audience(viewer_id)
    stmt = select(WineEntry).where(WineEntry.user_id != viewer_id)

    if scope == "friends":
        if audience.is_empty:
            return _empty_page()
        clauses = []
        if audience.direct_friend_ids:
            clauses.append(
                and_(
                    WineEntry.user_id.in_(list(audience.direct_friend_ids)),
                    WineEntry.entry_privacy.in_(_tier_values(RelationshipClass.DIRECT_FRIEND)),
                )
            )
        if audience.friend_of_friend_ids:
            clauses.append(
                and_(
                    WineEntry.user_id.in_(list(audience.friend_of_friend_ids)),
                    WineEntry.entry_privacy.in_(_tier_values(RelationshipClass.FRIEND_OF_FRIEND)),
                )
            )
        stmt = stmt.where(or_(*clauses))
    else:
        stmt = stmt.where(WineEntry.entry_privacy.in_(_tier_values(RelationshipClass.STRANGER)))
        if audience.blocked_ids:
            stmt = stmt.where(WineEntry.user_id.not_in(list(audience.blocked_ids)))

    page_size = _clamp_limit(limit)
    if cursor is not None:
        stmt = stmt.where(WineEntry.created_at < cursor)
    stmt = stmt.order_by(WineEntry.created_at.desc()).limit(page_size + 1)
    return _entry_page(
        db,
        engine,
        viewer_id=viewer_id,
        rows=list(db.scalars(stmt)),
        page_size=page_size,
        relationship_for=audience.relationship_to,
    )


def _require_comment_access(db: Session, engine: VisibilityEngine, *, viewer: User, entry_id: UUID) -> WineEntry:
    entry = _get_entry_or_404(db, entry_id)
    access = engine.entry_access(cast(UUID, viewer.id), entry)
    if not access.can_view:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Entry not found")
    if not access.can_comment:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=COMMENTS_FORBIDDEN)
    return entry


def _comment_node(comment: EntryComment, username: str | None, avatar_url: str | None) -> dict[str, Any]:
    deleted = comment.deleted_at is not None
    return {
        "id": comment.id,
        "entry_id": comment.entry_id,
        "user_id": comment.user_id,
        "username": username,
        "avatar_url": avatar_url,
        "body": "" if deleted else comment.body,
        "parent_comment_id": comment.parent_comment_id,
        "created_at": comment.created_at,
        "is_deleted": deleted,
        "replies": [],
    }


def list_entry_comments(db: Session, engine: VisibilityEngine, *, viewer: User, entry_id: UUID) -> list[dict[str, Any]]:
    _require_comment_access(db, engine, viewer=viewer, entry_id=entry_id)
    stmt = (
        select(EntryComment, User.username, User.avatar_url)
        .join(User, EntryComment.user_id == User.id)
        .where(EntryComment.entry_id == entry_id)
        .order_by(EntryComment.created_at.asc())
    )

    rows = db.execute(stmt).all()
    nodes: dict[UUID, dict[str, Any]] = {
        comment.id: _comment_node(comment, username, avatar_url) for comment, username, avatar_url in rows
    }
    roots: list[dict[str, Any]] = []
    for comment, _username, _avatar_url in rows:
        parent = nodes.get(comment.parent_comment_id) if comment.parent_comment_id else None
        if parent is not None:
            parent["replies"].append(nodes[comment.id])
        else:
            roots.append(nodes[comment.id])
    return roots


def create_entry_comment(
    db: Session,
    engine: VisibilityEngine,
    *,
    author: User,
    entry_id: UUID,
    body: str,
    parent_comment_id: UUID | None = None,
) -> dict[str, Any]:
    entry = _require_comment_access(db, engine, viewer=author, entry_id=entry_id)
    text = (body or "").strip()
    if not text:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Comment cannot be empty.")
    if len(text) > COMMENT_MAX_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Comment cannot exceed {COMMENT_MAX_LENGTH} characters.",
        )

    if parent_comment_id is not None:
        parent = db.get(EntryComment, parent_comment_id)
        if parent is None or parent.entry_id != entry.id or parent.deleted_at is not None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid parent comment")

    comment = EntryComment(entry_id=entry.id, user_id=author.id, body=text, parent_comment_id=parent_comment_id)
    db.add(comment)
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to add comment") from exc

    db.refresh(comment)
    return _comment_node(comment, author.username, author.avatar_url)


def delete_entry_comment(db: Session, *, user: User, entry_id: UUID, comment_id: UUID) -> None:
    """Soft-delete a comment; allowed for its author and the entry owner."""

    entry = _get_entry_or_404(db, entry_id)
    comment = db.get(EntryComment, comment_id)
    if comment is None or comment.entry_id != entry.id or comment.deleted_at is not None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Comment not found")

    user_id = cast(UUID, user.id)
    if user_id not in {comment.user_id, entry.owner_id}:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You cannot delete this comment.")

    comment.deleted_at = datetime.now(timezone.utc)
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to delete comment") from exc


def _validate_emoji(emoji: str) -> str:
    value = (emoji or "").strip()
    if value not in REACTION_EMOJIS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid emoji. Use one of: {', '.join(REACTION_EMOJIS)}",
        )
    return value


def reaction_summary(db: Session, *, entry_id: UUID, viewer_id: UUID) -> dict[str, Any]:
    count_rows = db.execute(
        select(EntryReaction.emoji, func.count(EntryReaction.id))
        .where(EntryReaction.entry_id == entry_id)
        .group_by(EntryReaction.emoji)
    ).all()
    counts = {emoji: int(total) for emoji, total in count_rows}
    mine = db.scalars(
        select(EntryReaction.emoji).where(EntryReaction.entry_id == entry_id, EntryReaction.user_id == viewer_id)
    ).all()
    return {
        "entry_id": entry_id,
        "counts": {emoji: counts[emoji] for emoji in REACTION_EMOJIS if emoji in counts},
        "viewer_reactions": [emoji for emoji in REACTION_EMOJIS if emoji in set(mine)],
    }


def list_entry_reactions(db: Session, engine: VisibilityEngine, *, viewer: User, entry_id: UUID) -> dict[str, Any]:
    entry = _get_entry_or_404(db, entry_id)
    viewer_id = cast(UUID, viewer.id)
    access = engine.entry_access(viewer_id, entry)
    if not access.can_view:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Entry not found")
    if not access.can_view_reactions:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=REACTIONS_FORBIDDEN)
    return reaction_summary(db, entry_id=entry.id, viewer_id=viewer_id)


def add_entry_reaction(
    db: Session,
    engine: VisibilityEngine,
    *,
    user: User,
    entry_id: UUID,
    emoji: str,
) -> dict[str, Any]:
    value = _validate_emoji(emoji)
    entry = _get_entry_or_404(db, entry_id)
    user_id = cast(UUID, user.id)
    if not engine.can_react(user_id, entry.owner_id, entry.entry_privacy):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=REACT_FORBIDDEN)

    existing = db.scalar(
        select(EntryReaction.id).where(
            EntryReaction.entry_id == entry.id,
            EntryReaction.user_id == user_id,
            EntryReaction.emoji == value,
        )
    )
    if existing is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Already reacted with this emoji.")

    db.add(EntryReaction(entry_id=entry.id, user_id=user_id, emoji=value))
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Already reacted with this emoji.") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to add reaction to entry %s", entry.id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to add reaction") from exc
    return reaction_summary(db, entry_id=entry.id, viewer_id=user_id)


def remove_entry_reaction(db: Session, *, user: User, entry_id: UUID, emoji: str) -> dict[str, Any]:
    value = _validate_emoji(emoji)
    entry = _get_entry_or_404(db, entry_id)
    user_id = cast(UUID, user.id)
    reaction = db.scalar(
        select(EntryReaction).where(
            EntryReaction.entry_id == entry.id,
            EntryReaction.user_id == user_id,
            EntryReaction.emoji == value,
        )
    )
    if reaction is not None:
        db.delete(reaction)
        try:
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to remove reaction") from exc
    return reaction_summary(db, entry_id=entry.id, viewer_id=user_id)


__all__ = [
    "FeedScope",
    "add_entry_reaction",
    "create_entry_comment",
    "delete_entry_comment",
    "get_entry_detail",
    "list_entry_comments",
    "list_entry_reactions",
    "list_feed_entries",
    "list_user_entries",
    "reaction_summary",
    "remove_entry_reaction",
]
