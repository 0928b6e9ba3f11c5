"""create like, follow and comment tables

Revision ID: 20261016_engagement
Revises:
Create Date: 2026-10-16
"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261016_engagement"
down_revision = None
branch_labels = None
depends_on = None


def _engagement_key_columns() -> list[sa.Column]:
    return [
        sa.Column("subject_id", sa.String(length=128), primary_key=True, nullable=False),
        sa.Column("actor_id", sa.String(length=128), primary_key=True, nullable=False),
        sa.Column("actor_display_name", sa.String(length=150), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "likes",
        *_engagement_key_columns(),
        sa.Column("reaction_kind", sa.String(length=32), nullable=False, server_default="like"),
    )
    op.create_index("ix_likes_actor_id", "likes", ["actor_id"])

    op.create_table(
        "follows",
        *_engagement_key_columns(),
        sa.Column("actor_email", sa.String(length=255), nullable=True),
    )
    op.create_index("ix_follows_actor_id", "follows", ["actor_id"])

    op.create_table(
        "comments",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("subject_id", sa.String(length=128), nullable=False),
        sa.Column("actor_id", sa.String(length=128), nullable=False),
        sa.Column("actor_display_name", sa.String(length=150), nullable=False),
        sa.Column("actor_email", sa.String(length=255), nullable=True),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_comments_subject_id", "comments", ["subject_id"])
    op.create_index("ix_comments_actor_id", "comments", ["actor_id"])
    op.create_index("ix_comments_subject_created", "comments", ["subject_id", "created_at"])


def downgrade() -> None:
    op.drop_index("ix_comments_subject_created", table_name="comments")
    op.drop_index("ix_comments_actor_id", table_name="comments")
    op.drop_index("ix_comments_subject_id", table_name="comments")
    op.drop_table("comments")

    op.drop_index("ix_follows_actor_id", table_name="follows")
    op.drop_table("follows")

    op.drop_index("ix_likes_actor_id", table_name="likes")
    op.drop_table("likes")
