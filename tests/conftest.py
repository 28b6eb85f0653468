from __future__ import annotations

import os

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from tasklog.api.app import create_app
from tasklog.config import Settings
from tasklog.infra import models  # noqa: F401
from tasklog.infra.db import Base
from tasklog.infra.repository import BackupRepository, HistoryRepository, TodoRepository
from tasklog.services.history_service import HistoryService
from tasklog.services.todo_service import TodoService
from tasklog.services.transfer_service import TransferService

API_TOKEN = "test-token"


class SteppingClock:
    def __init__(self, start: datetime | None = None, step: timedelta = timedelta(minutes=1)) -> None:
        self._current = start or datetime(2026, 1, 1, 8, 0, tzinfo=timezone.utc)
        self._step = step

    def __call__(self) -> datetime:
        value = self._current
        self._current += self._step
        return value


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine, autoflush=False, autocommit=False)
    engine.dispose()


@pytest.fixture
def failing_history_flush(session_factory):
    """Makes any flush that inserts history rows fail like a full disk would."""

    def _fail(session, flush_context, instances) -> None:
        if any(isinstance(obj, models.TodoHistoryModel) for obj in session.new):
            raise OperationalError("INSERT INTO todo_history", {}, Exception("disk full"))

    event.listen(session_factory, "before_flush", _fail)
    yield
    event.remove(session_factory, "before_flush", _fail)


@pytest.fixture
def todo_repo(session_factory) -> TodoRepository:
    return TodoRepository(session_factory)


@pytest.fixture
def history_repo(session_factory) -> HistoryRepository:
    return HistoryRepository(session_factory)


@pytest.fixture
def todo_service(todo_repo) -> TodoService:
    return TodoService(todo_repo)


@pytest.fixture
def history_service(todo_repo, history_repo) -> HistoryService:
    return HistoryService(todo_repo, history_repo, clock=SteppingClock())


@pytest.fixture
def transfer_service(session_factory) -> TransferService:
    return TransferService(BackupRepository(session_factory))


@pytest.fixture
def client(session_factory, history_service) -> TestClient:
    settings = Settings(database_url="sqlite+pysqlite://", api_tokens=(API_TOKEN,))
    app = create_app(settings=settings, session_factory=session_factory)
    app.state.history_service = history_service
    with TestClient(app) as test_client:
        test_client.headers.update({"Authorization": f"Bearer {API_TOKEN}"})
        yield test_client
