from __future__ import annotations

from enum import IntEnum, StrEnum


class BackupFormat(IntEnum):
    LEGACY = 1
    NATIVE = 2


class StructuredField(StrEnum):
    REQUIRED_ITEMS = "required_items"
    PROCEDURE = "procedure"
    SUBTASKS = "subtasks"

    @property
    def wire_name(self) -> str:
        head, *rest = self.value.split("_")
        return head + "".join(part.capitalize() for part in rest)
