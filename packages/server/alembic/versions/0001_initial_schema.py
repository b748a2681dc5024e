"""Initial schema: users, boards, requests, votes, comments, subscriptions.

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-18 09:00:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "0001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps(updated: bool = True) -> list[sa.Column]:
    cols = [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    ]
    if updated:
        cols.append(
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()"))
        )
    return cols


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("email", sa.Text(), nullable=False, unique=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("password_hash", sa.Text(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "boards",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("slug", sa.Text(), nullable=False, unique=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        *_timestamps(updated=False),
    )
    op.create_index("ix_boards_user_id", "boards", ["user_id"])

    op.create_table(
        "requests",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "board_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("boards.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category", sa.Text(), nullable=False, server_default="feature"),
        sa.Column("status", sa.Text(), nullable=False, server_default="open"),
        sa.Column("votes_count", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
        sa.CheckConstraint("votes_count >= 0", name="ck_requests_votes_count_non_negative"),
        sa.CheckConstraint(
            "category IN ('feature', 'bug', 'improvement')", name="ck_requests_category"
        ),
        sa.CheckConstraint(
            "status IN ('open', 'planned', 'in_progress', 'completed', 'rejected')",
            name="ck_requests_status",
        ),
    )
    op.create_index("ix_requests_board_votes", "requests", ["board_id", sa.text("votes_count DESC")])
    op.create_index("ix_requests_board_created", "requests", ["board_id", "created_at"])

    op.create_table(
        "votes",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "request_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("requests.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("identity", sa.Text(), nullable=False),
        sa.Column("ip_address", sa.Text(), nullable=True),
        *_timestamps(updated=False),
        sa.UniqueConstraint("request_id", "identity", name="uq_votes_request_identity"),
    )
    op.create_index("ix_votes_request_id", "votes", ["request_id"])

    op.create_table(
        "comments",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "request_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("requests.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("author_name", sa.Text(), nullable=False),
        sa.Column("author_email", sa.Text(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        *_timestamps(updated=False),
    )
    op.create_index("ix_comments_request_created", "comments", ["request_id", "created_at"])

    op.create_table(
        "subscriptions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("tier", sa.Text(), nullable=False, server_default="free"),
        sa.Column("status", sa.Text(), nullable=False, server_default="active"),
        sa.Column("customer_id", sa.Text(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("tier IN ('free', 'pro', 'business')", name="ck_subscriptions_tier"),
        sa.CheckConstraint(
            "status IN ('active', 'inactive', 'canceled')", name="ck_subscriptions_status"
        ),
    )


def downgrade() -> None:
    op.drop_table("subscriptions")
    op.drop_table("comments")
    op.drop_table("votes")
    op.drop_table("requests")
    op.drop_table("boards")
    op.drop_table("users")
