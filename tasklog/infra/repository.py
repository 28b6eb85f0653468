from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Optional

from sqlalchemy import delete, func, select, text, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from tasklog.domain.entities import (
    HistoryEntryEntity,
    SessionSummary,
    SubtaskEntity,
    TodoEntity,
)
from tasklog.domain.errors import StorageFailure

from .db import SQLITE_BEGIN_OPTION, SessionLocal
from .models import TodoHistoryModel, TodoModel

logger = logging.getLogger(__name__)


def _to_entity(model: TodoModel) -> TodoEntity:
    return TodoEntity(
        id=model.id,
        text=model.text,
        priority=model.priority,
        completed=bool(model.completed),
        category=model.category or "",
        unit=model.unit,
        required_items=list(model.required_items or []),
        procedure=list(model.procedure or []),
        subtasks=[
            SubtaskEntity(id=item["id"], text=item["text"], completed=bool(item.get("completed")))
            for item in model.subtasks or []
        ],
        active_counter=model.active_counter,
        active_timer=model.active_timer,
    )


def _history_to_entity(model: TodoHistoryModel) -> HistoryEntryEntity:
    return HistoryEntryEntity(
        id=model.id,
        todo_id=model.todo_id,
        session_id=model.session_id,
        timestamp=model.timestamp,
        completed=bool(model.completed),
        snapshot_counter=model.snapshot_counter,
        snapshot_timer=model.snapshot_timer,
    )


def _lock_ordering(session: Session) -> None:
    # Serializes shift-then-write sequences across connections. On SQLite every
    # write transaction already starts with BEGIN IMMEDIATE (see _transaction).
    if session.get_bind().dialect.name == "postgresql":
        session.execute(text("LOCK TABLE todos IN SHARE ROW EXCLUSIVE MODE"))


def _shift_from(session: Session, slot: int, exclude_id: int | None = None) -> None:
    stmt = update(TodoModel).where(TodoModel.priority >= slot)
    if exclude_id is not None:
        stmt = stmt.where(TodoModel.id != exclude_id)
    session.execute(stmt.values(priority=TodoModel.priority + 1))


def _compact(session: Session) -> None:
    session.flush()
    todos = session.scalars(select(TodoModel)).all()
    for index, todo in enumerate(sorted(todos, key=lambda t: (t.priority, t.id))):
        if todo.priority != index:
            todo.priority = index
    session.flush()


def _sync_id_sequences(session: Session) -> None:
    if session.get_bind().dialect.name != "postgresql":
        return
    for table in ("todos", "todo_history"):
        session.execute(text(
            f"SELECT setval(pg_get_serial_sequence('{table}', 'id'), "
            f"COALESCE(MAX(id), 1), MAX(id) IS NOT NULL) FROM {table}"
        ))


class _SqlRepository:
    def __init__(self, session_factory: sessionmaker = SessionLocal) -> None:
        self._session_factory = session_factory

    @contextmanager
    def _transaction(self, operation: str) -> Iterator[Session]:
        with self._session_factory() as session:
            try:
                with session.begin():
                    session.connection(execution_options={SQLITE_BEGIN_OPTION: "IMMEDIATE"})
                    yield session
            except SQLAlchemyError as exc:
                logger.exception("%s failed", operation)
                raise StorageFailure(operation) from exc

    @contextmanager
    def _reading(self, operation: str) -> Iterator[Session]:
        with self._session_factory() as session:
            try:
                yield session
            except SQLAlchemyError as exc:
                logger.exception("%s failed", operation)
                raise StorageFailure(operation) from exc


class TodoRepository(_SqlRepository):
    def list_todos(self) -> list[TodoEntity]:
        with self._reading("fetch") as session:
            stmt = select(TodoModel).order_by(TodoModel.priority.asc(), TodoModel.id.asc())
            return [_to_entity(todo) for todo in session.scalars(stmt)]

    def get_todo(self, todo_id: int) -> Optional[TodoEntity]:
        with self._reading("fetch") as session:
            todo = session.get(TodoModel, todo_id)
            return _to_entity(todo) if todo else None

    def create_todo(self, data: dict) -> TodoEntity:
        data = dict(data)
        requested = data.pop("priority", None)
        with self._transaction("create") as session:
            _lock_ordering(session)
            if requested is None:
                data["priority"] = self._next_priority(session)
            else:
                _shift_from(session, requested)
                data["priority"] = requested
            todo = TodoModel(**data)
            session.add(todo)
            session.flush()
            if requested is not None:
                _compact(session)
            return _to_entity(todo)

    def update_todo(self, todo_id: int, data: dict) -> bool:
        data = dict(data)
        priority = data.pop("priority", None)
        with self._transaction("update") as session:
            if priority is not None:
                _lock_ordering(session)
            todo = session.get(TodoModel, todo_id)
            if not todo:
                return False

            if priority is not None:
                _shift_from(session, priority, exclude_id=todo_id)
                todo.priority = priority

            for key, value in data.items():
                setattr(todo, key, value)

            if priority is not None:
                _compact(session)
            return True

    def set_completed(self, todo_id: int, completed: bool) -> bool:
        with self._transaction("toggle") as session:
            result = session.execute(
                update(TodoModel).where(TodoModel.id == todo_id).values(completed=completed)
            )
            return result.rowcount > 0

    def delete_todo(self, todo_id: int) -> bool:
        with self._transaction("delete") as session:
            _lock_ordering(session)
            session.execute(delete(TodoHistoryModel).where(TodoHistoryModel.todo_id == todo_id))
            result = session.execute(delete(TodoModel).where(TodoModel.id == todo_id))
            _compact(session)
            return result.rowcount > 0

    @staticmethod
    def _next_priority(session: Session) -> int:
        max_priority = session.scalar(select(func.max(TodoModel.priority)))
        return 0 if max_priority is None else max_priority + 1


class HistoryRepository(_SqlRepository):
    def archive_session(self, session_id: str, timestamp: str) -> int:
        with self._transaction("reset") as session:
            _lock_ordering(session)
            todos = session.scalars(select(TodoModel)).all()
            if not todos:
                return 0

            session.add_all([
                TodoHistoryModel(
                    todo_id=todo.id,
                    timestamp=timestamp,
                    session_id=session_id,
                    completed=todo.completed,
                    snapshot_counter=todo.active_counter,
                    snapshot_timer=todo.active_timer,
                )
                for todo in todos
            ])
            session.flush()
            session.execute(
                update(TodoModel).values(completed=False, active_counter=0, active_timer=0)
            )
            return len(todos)

    def correct_entries(self, todo_id: int, session_id: str, data: dict) -> list[HistoryEntryEntity]:
        with self._transaction("history update") as session:
            rows = session.scalars(
                select(TodoHistoryModel)
                .where(
                    TodoHistoryModel.todo_id == todo_id,
                    TodoHistoryModel.session_id == session_id,
                )
                .order_by(TodoHistoryModel.id.asc())
            ).all()
            for row in rows:
                for key, value in data.items():
                    setattr(row, key, value)
            session.flush()
            return [_history_to_entity(row) for row in rows]

    def read_window(
        self, limit: int
    ) -> tuple[list[TodoEntity], list[SessionSummary], list[HistoryEntryEntity]]:
        with self._reading("fetch") as session:
            todos = [
                _to_entity(todo)
                for todo in session.scalars(
                    select(TodoModel).order_by(TodoModel.priority.asc(), TodoModel.id.asc())
                )
            ]

            latest = func.max(TodoHistoryModel.timestamp).label("latest_timestamp")
            session_rows = session.execute(
                select(TodoHistoryModel.session_id, latest)
                .group_by(TodoHistoryModel.session_id)
                .order_by(latest.desc(), TodoHistoryModel.session_id.asc())
                .limit(limit)
            ).all()
            sessions = [
                SessionSummary(session_id=row.session_id, timestamp=row.latest_timestamp)
                for row in session_rows
            ]
            if not sessions:
                return todos, [], []

            entries = session.scalars(
                select(TodoHistoryModel)
                .where(TodoHistoryModel.session_id.in_([s.session_id for s in sessions]))
                .order_by(TodoHistoryModel.id.asc())
            )
            return todos, sessions, [_history_to_entity(row) for row in entries]

    def list_for_todo(self, todo_id: int) -> list[HistoryEntryEntity]:
        with self._reading("fetch") as session:
            rows = session.scalars(
                select(TodoHistoryModel)
                .where(TodoHistoryModel.todo_id == todo_id)
                .order_by(TodoHistoryModel.timestamp.desc(), TodoHistoryModel.id.desc())
            )
            return [_history_to_entity(row) for row in rows]


class BackupRepository(_SqlRepository):
    def export_tables(self) -> tuple[list[TodoEntity], list[HistoryEntryEntity]]:
        with self._reading("export") as session:
            todos = session.scalars(
                select(TodoModel).order_by(TodoModel.priority.asc(), TodoModel.id.asc())
            )
            todo_entities = [_to_entity(todo) for todo in todos]
            history = session.scalars(select(TodoHistoryModel).order_by(TodoHistoryModel.id.asc()))
            return todo_entities, [_history_to_entity(row) for row in history]

    def replace_all(self, todos: list[dict], history: list[dict]) -> int:
        with self._transaction("import") as session:
            _lock_ordering(session)
            session.execute(delete(TodoHistoryModel))
            session.execute(delete(TodoModel))

            models = [TodoModel(**data) for data in todos]
            session.add_all(models)
            session.flush()

            known_ids = {model.id for model in models}
            kept = [row for row in history if row["todo_id"] in known_ids]
            if len(kept) != len(history):
                logger.warning(
                    "Dropped %d history rows that reference unknown todos",
                    len(history) - len(kept),
                )
            session.add_all([TodoHistoryModel(**row) for row in kept])
            session.flush()

            _compact(session)
            _sync_id_sequences(session)
            return len(models)
