"""Initial schema: users, activities, void sessions and the bucket cache."""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op


revision = "20261019_000001"
down_revision = None
branch_labels = None
depends_on = None


def _index_names(inspector, table: str) -> set:
    if not inspector.has_table(table):
        return set()
    return {index["name"] for index in inspector.get_indexes(table)}


def upgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    if not inspector.has_table("users"):
        op.create_table(
            "users",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("nickname", sa.String(length=40), nullable=False, server_default=""),
            sa.Column("is_in_void", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("current_void_started_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        )

    if not inspector.has_table("activities"):
        op.create_table(
            "activities",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column(
                "user_id",
                sa.Integer(),
                sa.ForeignKey("users.id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column("name", sa.String(length=40), nullable=False),
            sa.Column("usage_count", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("last_used_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
            sa.UniqueConstraint("user_id", "name", name="uq_activities_user_name"),
        )
    if "ix_activities_user_id" not in _index_names(inspector, "activities"):
        op.create_index("ix_activities_user_id", "activities", ["user_id"])

    if not inspector.has_table("void_sessions"):
        op.create_table(
            "void_sessions",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column(
                "user_id",
                sa.Integer(),
                sa.ForeignKey("users.id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
            sa.Column("ended_at", sa.DateTime(timezone=True), nullable=False),
            sa.Column("duration_sec", sa.Integer(), nullable=False),
            sa.Column("target_day", sa.String(length=10), nullable=False),
            sa.Column("activities", sa.JSON(), nullable=False),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        )
    session_indexes = _index_names(inspector, "void_sessions")
    if "ix_void_sessions_user_id" not in session_indexes:
        op.create_index("ix_void_sessions_user_id", "void_sessions", ["user_id"])
    if "ix_void_sessions_target_day" not in session_indexes:
        op.create_index("ix_void_sessions_target_day", "void_sessions", ["target_day"])
    if "idx_void_sessions_user_day" not in session_indexes:
        op.create_index(
            "idx_void_sessions_user_day", "void_sessions", ["user_id", "target_day"]
        )

    if not inspector.has_table("void_stats_cache"):
        op.create_table(
            "void_stats_cache",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("target_day", sa.String(length=10), nullable=False),
            sa.Column("bucket", sa.String(length=16), nullable=False),
            sa.Column("count", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
            sa.UniqueConstraint(
                "target_day", "bucket", name="uq_void_stats_cache_day_bucket"
            ),
        )
    if "ix_void_stats_cache_target_day" not in _index_names(inspector, "void_stats_cache"):
        op.create_index("ix_void_stats_cache_target_day", "void_stats_cache", ["target_day"])


def downgrade() -> None:
    op.drop_index("ix_void_stats_cache_target_day", table_name="void_stats_cache")
    op.drop_table("void_stats_cache")
    op.drop_index("idx_void_sessions_user_day", table_name="void_sessions")
    op.drop_index("ix_void_sessions_target_day", table_name="void_sessions")
    op.drop_index("ix_void_sessions_user_id", table_name="void_sessions")
    op.drop_table("void_sessions")
    op.drop_index("ix_activities_user_id", table_name="activities")
    op.drop_table("activities")
    op.drop_table("users")
