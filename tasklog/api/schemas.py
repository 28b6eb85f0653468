"""
Request and response models for the todo API.

Wire names are camelCase; Python attributes stay snake_case.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from tasklog.domain.entities import (
    BackupSnapshot,
    HistoryEntryEntity,
    SessionSummary,
    TodoBoard,
    TodoEntity,
)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreateTodoRequest(CamelModel):
    text: Optional[str] = None
    priority: Optional[int] = None
    unit: Optional[str] = None
    category: Optional[str] = None
    required_items: Optional[list[Any]] = None
    procedure: Optional[list[Any]] = None
    subtasks: Optional[list[Any]] = None


class UpdateTodoRequest(CamelModel):
    text: Optional[str] = None
    priority: Optional[int] = None
    unit: Optional[str] = None
    category: Optional[str] = None
    active_counter: Optional[int] = Field(None, ge=0)
    active_timer: Optional[int] = Field(None, ge=0)
    required_items: Optional[list[Any]] = None
    procedure: Optional[list[Any]] = None
    subtasks: Optional[list[Any]] = None


class ToggleTodoRequest(CamelModel):
    completed: bool


class CorrectHistoryRequest(CamelModel):
    snapshot_counter: Optional[int] = Field(None, ge=0)
    snapshot_timer: Optional[int] = Field(None, ge=0)
    completed: Optional[bool] = None


class ImportRequest(CamelModel):
    todos: Any = None
    history: Any = None
    version: Optional[int] = None


class SubtaskResponse(CamelModel):
    id: str
    text: str
    completed: bool


class TodoResponse(CamelModel):
    id: int
    text: str
    priority: int
    completed: bool
    category: str
    unit: str
    required_items: list[str]
    procedure: list[str]
    subtasks: list[SubtaskResponse]
    active_counter: int
    active_timer: int

    @classmethod
    def from_entity(cls, todo: TodoEntity) -> "TodoResponse":
        return cls.model_validate(asdict(todo))


class HistoryEntryResponse(CamelModel):
    id: int
    todo_id: int
    session_id: str
    timestamp: str
    completed: bool
    snapshot_counter: int
    snapshot_timer: int

    @classmethod
    def from_entity(cls, entry: HistoryEntryEntity) -> "HistoryEntryResponse":
        return cls.model_validate(asdict(entry))


class TodoWithHistoryResponse(TodoResponse):
    history: list[HistoryEntryResponse]


class SessionResponse(CamelModel):
    session_id: str
    timestamp: str

    @classmethod
    def from_entity(cls, summary: SessionSummary) -> "SessionResponse":
        return cls.model_validate(asdict(summary))


class BoardResponse(CamelModel):
    tasks: list[TodoWithHistoryResponse]
    sessions: list[SessionResponse]

    @classmethod
    def from_entity(cls, board: TodoBoard) -> "BoardResponse":
        return cls(
            tasks=[
                TodoWithHistoryResponse.model_validate(
                    {**asdict(item.todo), "history": [asdict(entry) for entry in item.history]}
                )
                for item in board.tasks
            ],
            sessions=[SessionResponse.from_entity(summary) for summary in board.sessions],
        )


class TodoHistoryResponse(CamelModel):
    todo_id: int
    history: list[HistoryEntryResponse]


class ExportResponse(CamelModel):
    version: int
    todos: list[TodoResponse]
    history: list[HistoryEntryResponse]

    @classmethod
    def from_entity(cls, snapshot: BackupSnapshot, version: int) -> "ExportResponse":
        return cls(
            version=version,
            todos=[TodoResponse.from_entity(todo) for todo in snapshot.todos],
            history=[HistoryEntryResponse.from_entity(entry) for entry in snapshot.history],
        )


class SuccessResponse(CamelModel):
    success: bool = True


class ResetResponse(SuccessResponse):
    session_id: str
    timestamp: str
    archived: int


class CorrectHistoryResponse(SuccessResponse):
    updated: list[HistoryEntryResponse]


class ImportResponse(SuccessResponse):
    count: int
