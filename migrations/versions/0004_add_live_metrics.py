"""add units, live counters and history snapshots"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "0004_add_live_metrics"
down_revision = "0003_add_structured_fields"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.add_column(
        "todos",
        sa.Column("unit", sa.String(length=50), nullable=False, server_default="units"),
    )
    op.add_column(
        "todos",
        sa.Column("active_counter", sa.Integer(), nullable=False, server_default="0"),
    )
    op.add_column(
        "todos",
        sa.Column("active_timer", sa.Integer(), nullable=False, server_default="0"),
    )
    op.add_column(
        "todo_history",
        sa.Column("snapshot_counter", sa.Integer(), nullable=False, server_default="0"),
    )
    op.add_column(
        "todo_history",
        sa.Column("snapshot_timer", sa.Integer(), nullable=False, server_default="0"),
    )


def downgrade() -> None:
    op.drop_column("todo_history", "snapshot_timer")
    op.drop_column("todo_history", "snapshot_counter")
    op.drop_column("todos", "active_timer")
    op.drop_column("todos", "active_counter")
    op.drop_column("todos", "unit")
