"""add required items and procedure"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "0003_add_structured_fields"
down_revision = "0002_add_todo_history"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.add_column(
        "todos",
        sa.Column("required_items", sa.JSON(), nullable=False, server_default=sa.text("'[]'")),
    )
    op.add_column(
        "todos",
        sa.Column("procedure", sa.JSON(), nullable=False, server_default=sa.text("'[]'")),
    )


def downgrade() -> None:
    op.drop_column("todos", "procedure")
    op.drop_column("todos", "required_items")
