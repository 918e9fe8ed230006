"""create users, friend graph, blocks and tasting entry tables

Revision ID: 20250301_create_journal_schema
Revises:
Create Date: 2025-03-01
"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20250301_create_journal_schema"
down_revision = None
branch_labels = None
depends_on = None

PRIVACY_LEVELS = ("public", "friends_of_friends", "friends", "private")


def _uuid() -> sa.types.TypeEngine:
    return sa.dialects.postgresql.UUID(as_uuid=True)


def upgrade() -> None:
    privacy_level = sa.Enum(*PRIVACY_LEVELS, name="privacy_level")
    comments_scope = sa.Enum("viewers", "friends", name="comments_scope")
    friend_request_status = sa.Enum("pending", "accepted", name="friend_request_status")

    op.create_table(
        "users",
        sa.Column("id", _uuid(), primary_key=True, nullable=False),
        sa.Column("username", sa.String(length=150), nullable=False),
        sa.Column("display_name", sa.String(length=150)),
        sa.Column("avatar_url", sa.String(length=1024)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)

    op.create_table(
        "friend_requests",
        sa.Column("id", _uuid(), primary_key=True, nullable=False),
        sa.Column("requester_id", _uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("recipient_id", _uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("status", friend_request_status, nullable=False, server_default="pending"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("responded_at", sa.DateTime(timezone=True)),
        sa.Column("seen_at", sa.DateTime(timezone=True)),
        sa.UniqueConstraint("requester_id", "recipient_id", name="uq_friend_request_pair"),
    )
    op.create_index("ix_friend_requests_requester_id", "friend_requests", ["requester_id"])
    op.create_index("ix_friend_requests_recipient_id", "friend_requests", ["recipient_id"])
    op.create_index("ix_friend_requests_recipient_status", "friend_requests", ["recipient_id", "status"])
    op.create_index("ix_friend_requests_requester_status", "friend_requests", ["requester_id", "status"])

    op.create_table(
        "user_blocks",
        sa.Column("blocker_id", _uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("blocked_id", _uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("blocker_id <> blocked_id", name="ck_user_blocks_not_self"),
    )
    op.create_index("ix_user_blocks_blocked_id", "user_blocks", ["blocked_id"])

    op.create_table(
        "wine_entries",
        sa.Column("id", _uuid(), primary_key=True, nullable=False),
        sa.Column("user_id", _uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("wine_name", sa.String(length=255)),
        sa.Column("producer", sa.String(length=255)),
        sa.Column("vintage", sa.Integer()),
        sa.Column("notes", sa.Text()),
        sa.Column("rating", sa.Numeric(4, 1)),
        sa.Column("entry_privacy", privacy_level, nullable=False, server_default="public"),
        sa.Column("reaction_privacy", privacy_level),
        sa.Column("comments_privacy", privacy_level),
        sa.Column("comments_scope", comments_scope),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_wine_entries_user_id", "wine_entries", ["user_id"])
    op.create_index("ix_wine_entries_entry_privacy", "wine_entries", ["entry_privacy"])
    op.create_index("ix_wine_entries_created_at", "wine_entries", ["created_at"])

    op.create_table(
        "entry_comments",
        sa.Column("id", _uuid(), primary_key=True, nullable=False),
        sa.Column("entry_id", _uuid(), sa.ForeignKey("wine_entries.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", _uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("parent_comment_id", _uuid(), sa.ForeignKey("entry_comments.id", ondelete="CASCADE")),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True)),
    )
    op.create_index("ix_entry_comments_entry_id", "entry_comments", ["entry_id"])
    op.create_index("ix_entry_comments_user_id", "entry_comments", ["user_id"])

    op.create_table(
        "entry_reactions",
        sa.Column("id", _uuid(), primary_key=True, nullable=False),
        sa.Column("entry_id", _uuid(), sa.ForeignKey("wine_entries.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", _uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("emoji", sa.String(length=16), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("entry_id", "user_id", "emoji", name="uq_entry_reactions_entry_user_emoji"),
    )
    op.create_index("ix_entry_reactions_entry_id", "entry_reactions", ["entry_id"])
    op.create_index("ix_entry_reactions_user_id", "entry_reactions", ["user_id"])


def downgrade() -> None:
    op.drop_table("entry_reactions")
    op.drop_table("entry_comments")
    op.drop_table("wine_entries")
    op.drop_table("user_blocks")
    op.drop_table("friend_requests")
    op.drop_table("users")

    bind = op.get_bind()
    sa.Enum(name="comments_scope").drop(bind, checkfirst=True)
    sa.Enum(name="privacy_level").drop(bind, checkfirst=True)
    sa.Enum(name="friend_request_status").drop(bind, checkfirst=True)
