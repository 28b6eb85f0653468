from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from tasklog.api.auth import Identity, StaticTokenVerifier, Unauthorized


def _create(client: TestClient, **body) -> dict:
    response = client.post("/todos", json=body)
    assert response.status_code == 200, response.text
    return response.json()


def test_requests_without_token_are_rejected(client: TestClient) -> None:
    client.headers.pop("Authorization")

    response = client.get("/todos")

    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized: No token provided"}


def test_requests_with_unknown_token_are_rejected(client: TestClient) -> None:
    response = client.post(
        "/todos", json={"text": "x"}, headers={"Authorization": "Bearer nope"}
    )

    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized: Invalid token"}
    client.headers.pop("Authorization")
    assert client.get("/health").json() == {"status": "ok"}


def test_static_verifier_identifies_tokens_by_position() -> None:
    verifier = StaticTokenVerifier(["", "alpha", "beta"])

    assert verifier.verify("beta") == Identity(subject="token-1")
    with pytest.raises(Unauthorized):
        verifier.verify("gamma")


def test_create_requires_text(client: TestClient) -> None:
    response = client.post("/todos", json={"priority": 0})

    assert response.status_code == 400
    assert response.json() == {"error": "Text required"}


def test_create_returns_camel_case_todo(client: TestClient) -> None:
    todo = _create(client, text="Buy milk", category="groceries")

    assert todo == {
        "id": 1,
        "text": "Buy milk",
        "priority": 0,
        "completed": False,
        "category": "Groceries",
        "unit": "units",
        "requiredItems": [],
        "procedure": [],
        "subtasks": [],
        "activeCounter": 0,
        "activeTimer": 0,
    }


def test_list_update_toggle_and_delete(client: TestClient) -> None:
    milk = _create(client, text="Buy milk")
    bank = _create(client, text="Call bank", priority=0)
    assert (bank["id"], bank["priority"]) == (2, 0)

    board = client.get("/todos").json()
    assert [(t["id"], t["priority"]) for t in board["tasks"]] == [(2, 0), (1, 1)]
    assert board["sessions"] == []

    response = client.patch(f"/todos/{milk['id']}", json={"priority": 0, "activeCounter": 4})
    assert response.json() == {"success": True}
    response = client.patch(f"/todos/{milk['id']}/toggle", json={"completed": True})
    assert response.json() == {"success": True}

    stored = client.get(f"/todos/{milk['id']}").json()
    assert (stored["priority"], stored["activeCounter"], stored["completed"]) == (0, 4, True)

    assert client.delete(f"/todos/{bank['id']}").json() == {"success": True}
    assert client.delete(f"/todos/{bank['id']}").json() == {"success": True}
    assert client.get(f"/todos/{bank['id']}").status_code == 404


def test_update_with_no_known_fields_still_succeeds(client: TestClient) -> None:
    todo = _create(client, text="Read")

    response = client.patch(f"/todos/{todo['id']}", json={})

    assert response.status_code == 200
    assert response.json() == {"success": True}


def test_update_of_missing_todo_is_not_found(client: TestClient) -> None:
    response = client.patch("/todos/404", json={"text": "Ghost"})

    assert response.status_code == 404


def test_toggle_of_missing_todo_is_not_found(client: TestClient) -> None:
    response = client.patch("/todos/404/toggle", json={"completed": True})

    assert response.status_code == 404
    assert response.json() == {"error": "Todo 404 not found"}


def test_overlong_category_and_unit_are_client_errors(client: TestClient) -> None:
    todo = _create(client, text="Read")

    long_category = client.post("/todos", json={"text": "Run", "category": "x" * 101})
    long_unit = client.patch(f"/todos/{todo['id']}", json={"unit": "u" * 51})

    assert long_category.status_code == 400
    assert long_unit.status_code == 400
    assert client.get(f"/todos/{todo['id']}").json()["unit"] == "units"


def test_negative_counter_is_a_client_error(client: TestClient) -> None:
    todo = _create(client, text="Read")

    response = client.patch(f"/todos/{todo['id']}", json={"activeCounter": -2})

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid request body"


def test_reset_and_history_window(client: TestClient) -> None:
    run = _create(client, text="Run")
    _create(client, text="Read")
    client.patch(f"/todos/{run['id']}", json={"activeTimer": 600})

    first = client.post("/todos/reset").json()
    assert first["success"] is True
    assert first["archived"] == 2
    second = client.post("/todos/reset").json()

    board = client.get("/todos").json()
    assert [s["sessionId"] for s in board["sessions"]] == [second["sessionId"], first["sessionId"]]
    run_history = board["tasks"][0]["history"]
    assert [h["sessionId"] for h in run_history] == [second["sessionId"], first["sessionId"]]
    assert run_history[1]["snapshotTimer"] == 600
    assert board["tasks"][0]["activeTimer"] == 0

    per_todo = client.get(f"/todos/{run['id']}/history").json()
    assert per_todo["todoId"] == run["id"]
    assert len(per_todo["history"]) == 2


def test_history_correction(client: TestClient) -> None:
    run = _create(client, text="Run")
    session_id = client.post("/todos/reset").json()["sessionId"]

    response = client.patch(
        f"/todos/history/{run['id']}/{session_id}",
        json={"snapshotCounter": 12, "completed": True},
    )

    body = response.json()
    assert body["success"] is True
    assert len(body["updated"]) == 1
    assert body["updated"][0]["snapshotCounter"] == 12
    assert body["updated"][0]["completed"] is True

    missing = client.patch(f"/todos/history/{run['id']}/unknown", json={"snapshotTimer": 1})
    assert missing.json() == {"success": True, "updated": []}


def test_export_and_import_round_trip(client: TestClient) -> None:
    _create(client, text="Bake", requiredItems=["flour", " "], procedure=["mix"])
    _create(client, text="Swim", priority=0)
    client.post("/todos/reset")

    exported = client.get("/todos/export").json()
    assert exported["version"] == 2
    assert exported["todos"][1]["requiredItems"] == ["flour"]
    assert len(exported["history"]) == 2

    client.delete(f"/todos/{exported['todos'][0]['id']}")
    response = client.post("/todos/import", json=exported)
    assert response.json() == {"success": True, "count": 2}

    assert client.get("/todos/export").json() == exported


def test_import_rejects_malformed_body(client: TestClient) -> None:
    response = client.post("/todos/import", json={"todos": "nope", "history": []})
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid backup format"}

    response = client.post("/todos/import", json=["not", "an", "object"])
    assert response.status_code == 400


def test_failed_reset_reports_storage_error(client: TestClient, failing_history_flush) -> None:
    todo = _create(client, text="Run")
    client.patch(f"/todos/{todo['id']}/toggle", json={"completed": True})

    response = client.post("/todos/reset")

    assert response.status_code == 500
    assert response.json() == {"error": "Reset failed"}
    assert client.get(f"/todos/{todo['id']}").json()["completed"] is True
