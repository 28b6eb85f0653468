"""Backup export and restore of the todo and history tables.

Older exports stored ``requiredItems``, ``procedure`` and ``subtasks`` as
JSON-encoded text, booleans as 0/1 and ``category`` as a list. Those payloads
carry no ``version`` key and are read with the legacy decoder; current exports
carry ``version: 2`` and hold native lists.
"""
from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

from tasklog.domain.entities import BackupSnapshot
from tasklog.domain.enums import BackupFormat, StructuredField
from tasklog.domain.errors import ValidationError
from tasklog.domain.sanitize import (
    MAX_SESSION_ID_LENGTH,
    MAX_TIMESTAMP_LENGTH,
    clean_items,
    clean_subtasks,
    normalize_category,
    normalize_unit,
)
from tasklog.infra.repository import BackupRepository

logger = logging.getLogger(__name__)

CURRENT_FORMAT = BackupFormat.NATIVE


def _pick(record: Mapping, wire_name: str, column: str, default: Any = None) -> Any:
    if wire_name in record:
        return record[wire_name]
    return record.get(column, default)


def _decode_structured(value: Any, fmt: BackupFormat) -> list:
    if isinstance(value, list):
        return value
    if fmt is BackupFormat.LEGACY and isinstance(value, str):
        try:
            decoded = json.loads(value)
        except ValueError:
            return []
        return decoded if isinstance(decoded, list) else []
    return []


def _decode_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true")
    return bool(value)


def _decode_int(value: Any, default: int = 0) -> int:
    if value is None or isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _decode_category(value: Any, fmt: BackupFormat) -> str:
    if fmt is BackupFormat.LEGACY and isinstance(value, list):
        value = next((item for item in value if isinstance(item, str) and item.strip()), "")
    if not isinstance(value, str):
        return ""
    return normalize_category(value)


def resolve_format(version: Any) -> BackupFormat:
    if version is None:
        return BackupFormat.LEGACY
    try:
        return BackupFormat(int(version))
    except (TypeError, ValueError):
        raise ValidationError(f"Unsupported backup version: {version!r}") from None


def decode_todo(record: Any, index: int, fmt: BackupFormat) -> dict:
    if not isinstance(record, Mapping):
        raise ValidationError(f"todos[{index}] must be an object")

    text = record.get("text")
    if not isinstance(text, str) or not text.strip():
        raise ValidationError(f"todos[{index}] is missing text")

    decoded: dict = {
        "text": text.strip(),
        "priority": max(_decode_int(record.get("priority"), index), 0),
        "completed": _decode_bool(record.get("completed")),
        "category": _decode_category(record.get("category"), fmt),
        "unit": normalize_unit(record.get("unit")),
        "active_counter": max(_decode_int(_pick(record, "activeCounter", "active_counter")), 0),
        "active_timer": max(_decode_int(_pick(record, "activeTimer", "active_timer")), 0),
    }
    for field in StructuredField:
        raw = _decode_structured(_pick(record, field.wire_name, field.value), fmt)
        if field is StructuredField.SUBTASKS:
            decoded[field.value] = clean_subtasks(raw)
        else:
            decoded[field.value] = clean_items(raw)

    todo_id = record.get("id")
    if todo_id is not None:
        decoded["id"] = _decode_int(todo_id, -1)
        if decoded["id"] < 1:
            raise ValidationError(f"todos[{index}] has an invalid id")
    return decoded


def decode_history(record: Any, index: int, fmt: BackupFormat) -> dict:
    if not isinstance(record, Mapping):
        raise ValidationError(f"history[{index}] must be an object")

    todo_id = _decode_int(_pick(record, "todoId", "todo_id"), -1)
    session_id = _pick(record, "sessionId", "session_id")
    timestamp = record.get("timestamp")
    if todo_id < 1 or not session_id or not timestamp:
        raise ValidationError(f"history[{index}] needs todoId, sessionId and timestamp")
    if len(str(session_id)) > MAX_SESSION_ID_LENGTH or len(str(timestamp)) > MAX_TIMESTAMP_LENGTH:
        raise ValidationError(f"history[{index}] has an oversized sessionId or timestamp")

    decoded = {
        "todo_id": todo_id,
        "session_id": str(session_id),
        "timestamp": str(timestamp),
        "completed": _decode_bool(record.get("completed")),
        "snapshot_counter": _decode_int(_pick(record, "snapshotCounter", "snapshot_counter")),
        "snapshot_timer": _decode_int(_pick(record, "snapshotTimer", "snapshot_timer")),
    }
    if record.get("id") is not None:
        decoded["id"] = _decode_int(record["id"], -1)
        if decoded["id"] < 1:
            raise ValidationError(f"history[{index}] has an invalid id")
    return decoded


class TransferService:
    def __init__(self, repo: BackupRepository) -> None:
        self._repo = repo

    def export_backup(self) -> BackupSnapshot:
        todos, history = self._repo.export_tables()
        return BackupSnapshot(todos=todos, history=history)

    def import_backup(self, todos: Any, history: Any, version: Any = None) -> int:
        if not isinstance(todos, list) or not isinstance(history, list):
            raise ValidationError("Invalid backup format")

        fmt = resolve_format(version)
        decoded_todos = [decode_todo(record, index, fmt) for index, record in enumerate(todos)]
        decoded_history = [
            decode_history(record, index, fmt) for index, record in enumerate(history)
        ]

        ids = [todo["id"] for todo in decoded_todos if "id" in todo]
        if len(ids) != len(set(ids)):
            raise ValidationError("Duplicate todo ids in backup")
        history_ids = [row["id"] for row in decoded_history if "id" in row]
        if len(history_ids) != len(set(history_ids)):
            raise ValidationError("Duplicate history ids in backup")

        count = self._repo.replace_all(decoded_todos, decoded_history)
        logger.info(
            "Imported %d todos and %d history rows (format %s)",
            count,
            len(decoded_history),
            fmt.name.lower(),
        )
        return count
