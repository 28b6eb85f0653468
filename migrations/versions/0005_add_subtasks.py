"""add subtasks column"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "0005_add_subtasks"
down_revision = "0004_add_live_metrics"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.add_column(
        "todos",
        sa.Column("subtasks", sa.JSON(), nullable=False, server_default=sa.text("'[]'")),
    )


def downgrade() -> None:
    op.drop_column("todos", "subtasks")
