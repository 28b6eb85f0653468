from __future__ import annotations

from sqlalchemy import JSON, Boolean, Column, ForeignKey, Integer, String, Text

from tasklog.domain.sanitize import (
    DEFAULT_UNIT,
    MAX_CATEGORY_LENGTH,
    MAX_SESSION_ID_LENGTH,
    MAX_TIMESTAMP_LENGTH,
    MAX_UNIT_LENGTH,
)

from .db import Base


class TodoModel(Base):
    __tablename__ = "todos"

    id = Column(Integer, primary_key=True, autoincrement=True)
    text = Column(Text, nullable=False)
    priority = Column(Integer, nullable=False, default=0, index=True)
    completed = Column(Boolean, nullable=False, default=False)
    category = Column(String(MAX_CATEGORY_LENGTH), nullable=False, default="")
    unit = Column(String(MAX_UNIT_LENGTH), nullable=False, default=DEFAULT_UNIT)
    required_items = Column(JSON, nullable=False, default=list)
    procedure = Column(JSON, nullable=False, default=list)
    subtasks = Column(JSON, nullable=False, default=list)
    active_counter = Column(Integer, nullable=False, default=0)
    active_timer = Column(Integer, nullable=False, default=0)


class TodoHistoryModel(Base):
    __tablename__ = "todo_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    todo_id = Column(Integer, ForeignKey("todos.id", ondelete="CASCADE"), nullable=False, index=True)
    timestamp = Column(String(MAX_TIMESTAMP_LENGTH), nullable=False)
    session_id = Column(String(MAX_SESSION_ID_LENGTH), nullable=False, index=True)
    completed = Column(Boolean, nullable=False, default=False)
    snapshot_counter = Column(Integer, nullable=False, default=0)
    snapshot_timer = Column(Integer, nullable=False, default=0)
