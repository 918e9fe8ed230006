"""SQLAlchemy ORM models for tasting entries and their interactions."""
from __future__ import annotations

import uuid

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, Numeric, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship, synonym
from sqlalchemy.sql import func

from winejournal.constants import COMMENTS_SCOPES, PRIVACY_LEVELS
from winejournal.database import Base

# One enum type shared by the three privacy columns.
privacy_level = Enum(*PRIVACY_LEVELS, name="privacy_level")


class WineEntry(Base):
    __tablename__ = "wine_entries"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    wine_name = Column(String(255), nullable=True)
    producer = Column(String(255), nullable=True)
    vintage = Column(Integer, nullable=True)
    notes = Column(Text, nullable=True)
    rating = Column(Numeric(4, 1), nullable=True)
    entry_privacy = Column(privacy_level, nullable=False, default="public", index=True)
    reaction_privacy = Column(privacy_level, nullable=True)
    comments_privacy = Column(privacy_level, nullable=True)
    comments_scope = Column(Enum(*COMMENTS_SCOPES, name="comments_scope"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    owner_id = synonym("user_id")

    author = relationship("User", back_populates="entries")
    comments = relationship("EntryComment", back_populates="entry", cascade="all, delete-orphan")
    reactions = relationship("EntryReaction", back_populates="entry", cascade="all, delete-orphan")


class EntryComment(Base):
    __tablename__ = "entry_comments"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    entry_id = Column(UUID(as_uuid=True), ForeignKey("wine_entries.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    parent_comment_id = Column(UUID(as_uuid=True), ForeignKey("entry_comments.id", ondelete="CASCADE"), nullable=True)
    body = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    entry = relationship("WineEntry", back_populates="comments")
    author = relationship("User")


class EntryReaction(Base):
    __tablename__ = "entry_reactions"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    entry_id = Column(UUID(as_uuid=True), ForeignKey("wine_entries.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    emoji = Column(String(16), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    entry = relationship("WineEntry", back_populates="reactions")

    __table_args__ = (UniqueConstraint("entry_id", "user_id", "emoji", name="uq_entry_reactions_entry_user_emoji"),)


__all__ = ["WineEntry", "EntryComment", "EntryReaction", "privacy_level"]
