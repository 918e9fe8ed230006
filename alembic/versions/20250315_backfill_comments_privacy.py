"""backfill comments_privacy from the legacy comments_scope column

Rows written before ``comments_privacy`` existed only carry
``comments_scope``. Once this runs, ``LEGACY_COMMENTS_SCOPE`` can be turned
off.

Revision ID: 20250315_backfill_comments_privacy
Revises: 20250301_create_journal_schema
Create Date: 2025-03-15
"""
from __future__ import annotations

from alembic import op

# revision identifiers, used by Alembic.
revision = "20250315_backfill_comments_privacy"
down_revision = "20250301_create_journal_schema"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.execute(
        """
        UPDATE wine_entries
        SET comments_privacy = 'friends'
        WHERE comments_privacy IS NULL
          AND comments_scope = 'friends'
          AND entry_privacy <> 'private'
        """
    )
    op.execute(
        """
        UPDATE wine_entries
        SET comments_privacy = entry_privacy
        WHERE comments_privacy IS NULL
        """
    )


def downgrade() -> None:
    # Backfilled values cannot be told apart from ones users chose.
    pass
