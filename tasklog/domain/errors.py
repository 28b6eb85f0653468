from __future__ import annotations


class TasklogError(Exception):
    """Base class for errors surfaced to callers of the todo services."""


class ValidationError(TasklogError):
    """Missing or malformed required input."""


class NotFound(TasklogError):
    """A referenced todo does not exist."""


class StorageFailure(TasklogError):
    """The underlying store rejected or failed an operation.

    Only the operation name is carried to the caller; the original database
    error stays attached as ``__cause__`` for logging.
    """

    def __init__(self, operation: str) -> None:
        super().__init__(f"{operation.capitalize()} failed")
        self.operation = operation
