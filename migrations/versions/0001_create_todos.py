"""create todos table"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "0001_create_todos"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "todos",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("priority", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("category", sa.String(length=100), nullable=False, server_default=""),
    )
    op.create_index("ix_todos_priority", "todos", ["priority"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_todos_priority", table_name="todos")
    op.drop_table("todos")
