from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class SubtaskEntity:
    id: str
    text: str
    completed: bool = False


@dataclass(frozen=True)
class TodoEntity:
    id: int | None
    text: str
    priority: int
    completed: bool
    category: str
    unit: str
    required_items: list[str] = field(default_factory=list)
    procedure: list[str] = field(default_factory=list)
    subtasks: list[SubtaskEntity] = field(default_factory=list)
    active_counter: int = 0
    active_timer: int = 0


@dataclass(frozen=True)
class HistoryEntryEntity:
    id: int | None
    todo_id: int
    session_id: str
    timestamp: str
    completed: bool
    snapshot_counter: int
    snapshot_timer: int


@dataclass(frozen=True)
class SessionSummary:
    session_id: str
    timestamp: str


@dataclass(frozen=True)
class TodoWithHistory:
    todo: TodoEntity
    history: list[HistoryEntryEntity]


@dataclass(frozen=True)
class TodoBoard:
    tasks: list[TodoWithHistory]
    sessions: list[SessionSummary]


@dataclass(frozen=True)
class ResetResult:
    session_id: str
    timestamp: str
    archived: int


@dataclass(frozen=True)
class BackupSnapshot:
    todos: list[TodoEntity]
    history: list[HistoryEntryEntity]
