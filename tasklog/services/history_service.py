from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from datetime import datetime, timezone

from tasklog.domain.entities import (
    HistoryEntryEntity,
    ResetResult,
    TodoBoard,
    TodoWithHistory,
)
from tasklog.domain.errors import NotFound
from tasklog.domain.sanitize import non_negative_int
from tasklog.infra.repository import HistoryRepository, TodoRepository

logger = logging.getLogger(__name__)

DEFAULT_WINDOW = 7


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision and a ``Z`` suffix.

    Every stored timestamp uses this shape so lexical order matches time order.
    """
    moment = moment.astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def new_session_id() -> str:
    return str(uuid.uuid4())


class HistoryService:
    def __init__(
        self,
        todo_repo: TodoRepository,
        history_repo: HistoryRepository,
        window: int = DEFAULT_WINDOW,
        clock: Callable[[], datetime] = utcnow,
        session_ids: Callable[[], str] = new_session_id,
    ) -> None:
        self._todo_repo = todo_repo
        self._history_repo = history_repo
        self._window = window
        self._clock = clock
        self._session_ids = session_ids

    def reset(self) -> ResetResult:
        session_id = self._session_ids()
        timestamp = format_timestamp(self._clock())
        archived = self._history_repo.archive_session(session_id, timestamp)
        if archived:
            logger.info("Archived %d todos into session %s", archived, session_id)
        else:
            logger.info("Reset skipped, no todos to archive")
        return ResetResult(session_id=session_id, timestamp=timestamp, archived=archived)

    def correct_history(self, todo_id: int, session_id: str, data: dict) -> list[HistoryEntryEntity]:
        changes: dict = {}
        for key, label in (("snapshot_counter", "snapshotCounter"), ("snapshot_timer", "snapshotTimer")):
            if data.get(key) is not None:
                changes[key] = non_negative_int(data[key], label)
        if data.get("completed") is not None:
            changes["completed"] = bool(data["completed"])
        if not changes:
            return []
        return self._history_repo.correct_entries(todo_id, session_id, changes)

    def list_board(self) -> TodoBoard:
        todos, sessions, entries = self._history_repo.read_window(self._window)

        rank = {summary.session_id: index for index, summary in enumerate(sessions)}
        by_todo: dict[int, list[HistoryEntryEntity]] = {}
        for entry in sorted(entries, key=lambda e: (rank[e.session_id], e.id)):
            by_todo.setdefault(entry.todo_id, []).append(entry)

        return TodoBoard(
            tasks=[TodoWithHistory(todo=todo, history=by_todo.get(todo.id, [])) for todo in todos],
            sessions=sessions,
        )

    def list_todo_history(self, todo_id: int) -> list[HistoryEntryEntity]:
        if not self._todo_repo.get_todo(todo_id):
            raise NotFound(f"Todo {todo_id} not found")
        return self._history_repo.list_for_todo(todo_id)
