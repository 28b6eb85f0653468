"""
Todo list, session history and backup routes.

Fixed paths (``/export``, ``/import``, ``/reset``, ``/history/...``) are
registered before the ``/{todo_id}`` routes so they are matched first.
"""

from fastapi import APIRouter, Depends

from tasklog.services.history_service import HistoryService
from tasklog.services.todo_service import TodoService
from tasklog.services.transfer_service import CURRENT_FORMAT, TransferService

from .auth import require_identity
from .dependencies import get_history_service, get_todo_service, get_transfer_service
from .schemas import (
    BoardResponse,
    CorrectHistoryRequest,
    CorrectHistoryResponse,
    CreateTodoRequest,
    ExportResponse,
    HistoryEntryResponse,
    ImportRequest,
    ImportResponse,
    ResetResponse,
    SuccessResponse,
    ToggleTodoRequest,
    TodoHistoryResponse,
    TodoResponse,
    UpdateTodoRequest,
)

router = APIRouter(prefix="/todos", tags=["todos"], dependencies=[Depends(require_identity)])


@router.get("", response_model=BoardResponse)
def list_todos(history_service: HistoryService = Depends(get_history_service)):
    """Todos in priority order, each joined with its history from the latest sessions."""
    return BoardResponse.from_entity(history_service.list_board())


@router.post("", response_model=TodoResponse)
def create_todo(
    request: CreateTodoRequest,
    todo_service: TodoService = Depends(get_todo_service),
):
    todo = todo_service.create_todo(request.model_dump())
    return TodoResponse.from_entity(todo)


@router.get("/export", response_model=ExportResponse)
def export_todos(transfer_service: TransferService = Depends(get_transfer_service)):
    snapshot = transfer_service.export_backup()
    return ExportResponse.from_entity(snapshot, version=int(CURRENT_FORMAT))


@router.post("/import", response_model=ImportResponse)
def import_todos(
    request: ImportRequest,
    transfer_service: TransferService = Depends(get_transfer_service),
):
    count = transfer_service.import_backup(request.todos, request.history, request.version)
    return ImportResponse(count=count)


@router.post("/reset", response_model=ResetResponse)
def reset_session(history_service: HistoryService = Depends(get_history_service)):
    result = history_service.reset()
    return ResetResponse(
        session_id=result.session_id,
        timestamp=result.timestamp,
        archived=result.archived,
    )


@router.patch("/history/{todo_id}/{session_id}", response_model=CorrectHistoryResponse)
def correct_history(
    todo_id: int,
    session_id: str,
    request: CorrectHistoryRequest,
    history_service: HistoryService = Depends(get_history_service),
):
    updated = history_service.correct_history(
        todo_id, session_id, request.model_dump(exclude_unset=True)
    )
    return CorrectHistoryResponse(
        updated=[HistoryEntryResponse.from_entity(entry) for entry in updated]
    )


@router.get("/{todo_id}", response_model=TodoResponse)
def get_todo(todo_id: int, todo_service: TodoService = Depends(get_todo_service)):
    return TodoResponse.from_entity(todo_service.get_todo(todo_id))


@router.get("/{todo_id}/history", response_model=TodoHistoryResponse)
def get_todo_history(
    todo_id: int,
    history_service: HistoryService = Depends(get_history_service),
):
    entries = history_service.list_todo_history(todo_id)
    return TodoHistoryResponse(
        todo_id=todo_id,
        history=[HistoryEntryResponse.from_entity(entry) for entry in entries],
    )


@router.patch("/{todo_id}", response_model=SuccessResponse)
def update_todo(
    todo_id: int,
    request: UpdateTodoRequest,
    todo_service: TodoService = Depends(get_todo_service),
):
    todo_service.update_todo(todo_id, request.model_dump(exclude_unset=True))
    return SuccessResponse()


@router.patch("/{todo_id}/toggle", response_model=SuccessResponse)
def toggle_todo(
    todo_id: int,
    request: ToggleTodoRequest,
    todo_service: TodoService = Depends(get_todo_service),
):
    todo_service.toggle_todo(todo_id, request.completed)
    return SuccessResponse()


@router.delete("/{todo_id}", response_model=SuccessResponse)
def delete_todo(todo_id: int, todo_service: TodoService = Depends(get_todo_service)):
    todo_service.delete_todo(todo_id)
    return SuccessResponse()
