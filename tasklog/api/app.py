from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import sessionmaker

from tasklog.config import SETTINGS, Settings
from tasklog.domain.errors import NotFound, StorageFailure, ValidationError
from tasklog.infra.db import SessionLocal
from tasklog.infra.repository import BackupRepository, HistoryRepository, TodoRepository
from tasklog.services.history_service import HistoryService
from tasklog.services.todo_service import TodoService
from tasklog.services.transfer_service import TransferService

from .auth import StaticTokenVerifier, TokenVerifier, Unauthorized
from .todos import router as todos_router

logger = logging.getLogger(__name__)


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ValidationError)
    async def _validation_error(request: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.exception_handler(RequestValidationError)
    async def _invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid request body", "detail": jsonable_errors(exc)},
        )

    @app.exception_handler(NotFound)
    async def _not_found(request: Request, exc: NotFound) -> JSONResponse:
        return JSONResponse(status_code=404, content={"error": str(exc)})

    @app.exception_handler(Unauthorized)
    async def _unauthorized(request: Request, exc: Unauthorized) -> JSONResponse:
        return JSONResponse(
            status_code=401,
            content={"error": f"Unauthorized: {exc}"},
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(StorageFailure)
    async def _storage_failure(request: Request, exc: StorageFailure) -> JSONResponse:
        return JSONResponse(status_code=500, content={"error": str(exc)})


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg", "")}
        for error in exc.errors()
    ]


def create_app(
    settings: Settings = SETTINGS,
    session_factory: sessionmaker = SessionLocal,
    verifier: Optional[TokenVerifier] = None,
) -> FastAPI:
    app = FastAPI(title="tasklog")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
        allow_headers=["Content-Type", "Authorization"],
    )

    if verifier is None:
        if not settings.api_tokens:
            logger.warning("API_TOKENS is empty; every /todos request will be rejected")
        verifier = StaticTokenVerifier(settings.api_tokens)
    app.state.token_verifier = verifier

    todo_repo = TodoRepository(session_factory)
    history_repo = HistoryRepository(session_factory)
    app.state.todo_service = TodoService(todo_repo)
    app.state.history_service = HistoryService(
        todo_repo, history_repo, window=settings.history_window
    )
    app.state.transfer_service = TransferService(BackupRepository(session_factory))

    _register_error_handlers(app)
    app.include_router(todos_router)

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    return app
