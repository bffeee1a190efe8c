"""Initial schema — queue_entries, matches, sessions.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "queue_entries",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", sa.String(128), nullable=False, unique=True),
        sa.Column("category", sa.String(20), nullable=False),
        sa.Column("enqueued_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index(
        "ix_queue_entries_category_enqueued_at",
        "queue_entries", ["category", "enqueued_at", "id"],
    )

    op.create_table(
        "matches",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("participant_a_id", sa.String(128), nullable=False),
        sa.Column("participant_b_id", sa.String(128), nullable=False),
        sa.Column("participant_a_category", sa.String(20), nullable=False),
        sa.Column("participant_b_category", sa.String(20), nullable=False),
        sa.Column("entry_a_id", UUID(as_uuid=True), nullable=False, unique=True),
        sa.Column("entry_b_id", UUID(as_uuid=True), nullable=False, unique=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="matched"),
        sa.Column("session_id", UUID(as_uuid=True), nullable=True),
        sa.Column("matched_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "participant_a_id <> participant_b_id",
            name="ck_matches_distinct_participants",
        ),
        sa.CheckConstraint(
            "participant_a_category <> participant_b_category",
            name="ck_matches_opposite_categories",
        ),
    )
    op.create_index("ix_matches_participant_a_id", "matches", ["participant_a_id"])
    op.create_index("ix_matches_participant_b_id", "matches", ["participant_b_id"])

    op.create_table(
        "sessions",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("participants", sa.JSON, nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="true"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("last_activity_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("sessions")
    op.drop_index("ix_matches_participant_b_id", table_name="matches")
    op.drop_index("ix_matches_participant_a_id", table_name="matches")
    op.drop_table("matches")
    op.drop_index("ix_queue_entries_category_enqueued_at", table_name="queue_entries")
    op.drop_table("queue_entries")
