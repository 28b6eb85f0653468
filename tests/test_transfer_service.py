from __future__ import annotations

import json
from dataclasses import asdict

import pytest

from tasklog.domain.errors import StorageFailure, ValidationError


def _wire_todo(todo) -> dict:
    return {
        "id": todo.id,
        "text": todo.text,
        "priority": todo.priority,
        "completed": todo.completed,
        "category": todo.category,
        "unit": todo.unit,
        "requiredItems": todo.required_items,
        "procedure": todo.procedure,
        "subtasks": [asdict(s) for s in todo.subtasks],
        "activeCounter": todo.active_counter,
        "activeTimer": todo.active_timer,
    }


def _wire_history(entry) -> dict:
    return {
        "id": entry.id,
        "todoId": entry.todo_id,
        "sessionId": entry.session_id,
        "timestamp": entry.timestamp,
        "completed": entry.completed,
        "snapshotCounter": entry.snapshot_counter,
        "snapshotTimer": entry.snapshot_timer,
    }


def test_export_then_import_reproduces_tables(todo_service, history_service, transfer_service) -> None:
    bake = todo_service.create_todo({"text": "Bake", "category": "food", "unit": "loaves"})
    todo_service.create_todo({"text": "Swim", "priority": 0})
    todo_service.update_todo(bake.id, {
        "required_items": ["flour"],
        "procedure": ["knead", "rest"],
        "subtasks": [{"id": "s1", "text": "buy yeast"}],
        "active_counter": 3,
    })
    history_service.reset()

    before = transfer_service.export_backup()
    count = transfer_service.import_backup(
        [_wire_todo(t) for t in before.todos],
        [_wire_history(h) for h in before.history],
        version=2,
    )
    after = transfer_service.export_backup()

    assert count == 2
    assert after.todos == before.todos
    assert after.history == before.history


def test_import_replaces_existing_rows(todo_service, history_service, transfer_service) -> None:
    todo_service.create_todo({"text": "Old"})
    history_service.reset()

    transfer_service.import_backup([{"id": 7, "text": "New", "priority": 0}], [])

    snapshot = transfer_service.export_backup()
    assert [(t.id, t.text) for t in snapshot.todos] == [(7, "New")]
    assert snapshot.history == []


def test_legacy_string_encoded_fields_are_decoded(transfer_service) -> None:
    legacy_todo = {
        "id": 3,
        "text": "Legacy",
        "priority": 0,
        "completed": 1,
        "category": ["errands"],
        "requiredItems": json.dumps(["bag", ""]),
        "procedure": "not json",
        "subtasks": json.dumps([{"id": "a", "text": "walk", "completed": 0}]),
    }
    legacy_history = {
        "todoId": 3,
        "sessionId": "s-1",
        "timestamp": "2025-05-01T10:00:00.000Z",
        "completed": 0,
    }

    transfer_service.import_backup([legacy_todo], [legacy_history])

    snapshot = transfer_service.export_backup()
    todo = snapshot.todos[0]
    assert todo.completed is True
    assert todo.category == "Errands"
    assert todo.unit == "units"
    assert todo.required_items == ["bag"]
    assert todo.procedure == []
    assert [(s.id, s.text, s.completed) for s in todo.subtasks] == [("a", "walk", False)]
    entry = snapshot.history[0]
    assert (entry.todo_id, entry.session_id, entry.snapshot_counter) == (3, "s-1", 0)


def test_native_format_does_not_parse_strings(transfer_service) -> None:
    transfer_service.import_backup(
        [{"id": 1, "text": "Native", "requiredItems": json.dumps(["x"])}], [], version=2
    )

    assert transfer_service.export_backup().todos[0].required_items == []


def test_import_compacts_priorities(transfer_service) -> None:
    transfer_service.import_backup(
        [
            {"id": 1, "text": "c", "priority": 9},
            {"id": 2, "text": "a", "priority": 2},
            {"id": 3, "text": "b", "priority": 5},
        ],
        [],
    )

    todos = transfer_service.export_backup().todos
    assert [(t.text, t.priority) for t in todos] == [("a", 0), ("b", 1), ("c", 2)]


def test_import_drops_history_for_unknown_todos(transfer_service) -> None:
    transfer_service.import_backup(
        [{"id": 1, "text": "Only"}],
        [
            {"todoId": 1, "sessionId": "s", "timestamp": "2025-01-01T00:00:00.000Z"},
            {"todoId": 2, "sessionId": "s", "timestamp": "2025-01-01T00:00:00.000Z"},
        ],
    )

    history = transfer_service.export_backup().history
    assert [h.todo_id for h in history] == [1]


@pytest.mark.parametrize(
    "todos, history",
    [
        (None, []),
        ([], {"rows": []}),
        ("[]", []),
        ([{"priority": 1}], []),
        (["not an object"], []),
        ([{"id": 1, "text": "a"}, {"id": 1, "text": "b"}], []),
        ([{"id": 1, "text": "a"}], [{"todoId": 1}]),
    ],
)
def test_import_rejects_malformed_payloads(todo_service, transfer_service, todos, history) -> None:
    todo_service.create_todo({"text": "Keep me"})

    with pytest.raises(ValidationError):
        transfer_service.import_backup(todos, history)

    assert [t.text for t in transfer_service.export_backup().todos] == ["Keep me"]


def test_import_of_empty_lists_clears_everything(todo_service, transfer_service) -> None:
    todo_service.create_todo({"text": "Gone"})

    assert transfer_service.import_backup([], []) == 0
    assert transfer_service.export_backup().todos == []


def test_failed_import_keeps_previous_tables(todo_service, history_service, transfer_service, request) -> None:
    todo_service.create_todo({"text": "Old"})
    history_service.reset()
    before = transfer_service.export_backup()

    request.getfixturevalue("failing_history_flush")
    with pytest.raises(StorageFailure) as excinfo:
        transfer_service.import_backup(
            [{"id": 7, "text": "New", "priority": 0}],
            [{"todoId": 7, "sessionId": "s1", "timestamp": "2026-01-01T08:00:00.000Z"}],
            version=2,
        )

    assert str(excinfo.value) == "Import failed"
    after = transfer_service.export_backup()
    assert after.todos == before.todos
    assert after.history == before.history


def test_import_rejects_oversized_history_keys(transfer_service) -> None:
    with pytest.raises(ValidationError):
        transfer_service.import_backup(
            [{"id": 1, "text": "Run"}],
            [{"todoId": 1, "sessionId": "s" * 65, "timestamp": "2026-01-01T08:00:00.000Z"}],
            version=2,
        )


def test_import_rejects_overlong_category(transfer_service) -> None:
    with pytest.raises(ValidationError):
        transfer_service.import_backup([{"text": "Run", "category": "x" * 101}], [], version=2)
