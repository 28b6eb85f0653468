from __future__ import annotations

from fastapi import Request

from tasklog.services.history_service import HistoryService
from tasklog.services.todo_service import TodoService
from tasklog.services.transfer_service import TransferService


def get_todo_service(request: Request) -> TodoService:
    return request.app.state.todo_service


def get_history_service(request: Request) -> HistoryService:
    return request.app.state.history_service


def get_transfer_service(request: Request) -> TransferService:
    return request.app.state.transfer_service
