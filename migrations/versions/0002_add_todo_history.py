"""add todo history table"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "0002_add_todo_history"
down_revision = "0001_create_todos"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "todo_history",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "todo_id",
            sa.Integer(),
            sa.ForeignKey("todos.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("timestamp", sa.String(length=40), nullable=False),
        sa.Column("session_id", sa.String(length=64), nullable=False),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
    )
    op.create_index("ix_todo_history_todo_id", "todo_history", ["todo_id"], unique=False)
    op.create_index("ix_todo_history_session_id", "todo_history", ["session_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_todo_history_session_id", table_name="todo_history")
    op.drop_index("ix_todo_history_todo_id", table_name="todo_history")
    op.drop_table("todo_history")
