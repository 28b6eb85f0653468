from __future__ import annotations

import logging

from tasklog.domain.entities import TodoEntity
from tasklog.domain.errors import NotFound, ValidationError
from tasklog.domain.sanitize import (
    DEFAULT_UNIT,
    clean_items,
    clean_subtasks,
    non_negative_int,
    normalize_category,
    normalize_unit,
)
from tasklog.infra.repository import TodoRepository

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = (
    "text",
    "unit",
    "category",
    "priority",
    "active_counter",
    "active_timer",
    "required_items",
    "procedure",
    "subtasks",
)


class TodoService:
    def __init__(self, repo: TodoRepository) -> None:
        self._repo = repo

    def list_todos(self) -> list[TodoEntity]:
        return self._repo.list_todos()

    def get_todo(self, todo_id: int) -> TodoEntity:
        todo = self._repo.get_todo(todo_id)
        if not todo:
            raise NotFound(f"Todo {todo_id} not found")
        return todo

    def create_todo(self, data: dict) -> TodoEntity:
        text = data.get("text")
        if not isinstance(text, str) or not text.strip():
            raise ValidationError("Text required")

        normalized = self._normalize_data({key: data.get(key) for key in UPDATABLE_FIELDS})
        normalized.setdefault("unit", DEFAULT_UNIT)
        normalized.update(completed=False, active_counter=0, active_timer=0)

        todo = self._repo.create_todo(normalized)
        logger.info("Created todo %s at priority %s", todo.id, todo.priority)
        return todo

    def update_todo(self, todo_id: int, data: dict) -> bool:
        normalized = self._normalize_data(
            {key: value for key, value in data.items() if key in UPDATABLE_FIELDS}
        )
        if not normalized:
            return True
        if not self._repo.update_todo(todo_id, normalized):
            raise NotFound(f"Todo {todo_id} not found")
        return True

    def toggle_todo(self, todo_id: int, completed: bool) -> bool:
        if not isinstance(completed, bool):
            raise ValidationError("completed must be a boolean")
        if not self._repo.set_completed(todo_id, completed):
            raise NotFound(f"Todo {todo_id} not found")
        return True

    def delete_todo(self, todo_id: int) -> None:
        if not self._repo.delete_todo(todo_id):
            logger.info("Delete of missing todo %s ignored", todo_id)

    def _normalize_data(self, data: dict) -> dict:
        normalized: dict = {}

        if data.get("text") is not None:
            text = data["text"]
            if not isinstance(text, str) or not text.strip():
                raise ValidationError("Text must not be empty")
            normalized["text"] = text.strip()

        if data.get("unit") is not None:
            normalized["unit"] = normalize_unit(data["unit"])

        if "category" in data:
            normalized["category"] = normalize_category(data["category"])

        if data.get("priority") is not None:
            try:
                normalized["priority"] = max(int(data["priority"]), 0)
            except (TypeError, ValueError):
                raise ValidationError("priority must be an integer") from None

        for key, label in (("active_counter", "activeCounter"), ("active_timer", "activeTimer")):
            if data.get(key) is not None:
                normalized[key] = non_negative_int(data[key], label)

        for key in ("required_items", "procedure"):
            if key in data:
                normalized[key] = clean_items(data[key])

        if "subtasks" in data:
            normalized["subtasks"] = clean_subtasks(data["subtasks"])

        return normalized
