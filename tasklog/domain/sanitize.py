from __future__ import annotations

import uuid
from collections.abc import Mapping
from typing import Any

from .errors import ValidationError

DEFAULT_UNIT = "units"
MAX_CATEGORY_LENGTH = 100
MAX_UNIT_LENGTH = 50
MAX_SESSION_ID_LENGTH = 64
MAX_TIMESTAMP_LENGTH = 40


def normalize_category(value: Any) -> str:
    if value is None:
        return ""
    cleaned = str(value).strip()
    if not cleaned:
        return ""
    if len(cleaned) > MAX_CATEGORY_LENGTH:
        raise ValidationError(f"category must be at most {MAX_CATEGORY_LENGTH} characters")
    return cleaned[0].upper() + cleaned[1:].lower()


def normalize_unit(value: Any) -> str:
    cleaned = str(value if value is not None else "").strip()
    if len(cleaned) > MAX_UNIT_LENGTH:
        raise ValidationError(f"unit must be at most {MAX_UNIT_LENGTH} characters")
    return cleaned or DEFAULT_UNIT


def clean_items(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def clean_subtasks(value: Any) -> list[dict]:
    if not isinstance(value, list):
        return []
    cleaned = []
    for entry in value:
        if not isinstance(entry, Mapping):
            continue
        text = str(entry.get("text") or "").strip()
        if not text:
            continue
        cleaned.append({
            "id": str(entry.get("id") or uuid.uuid4()),
            "text": text,
            "completed": bool(entry.get("completed")),
        })
    return cleaned


def non_negative_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be an integer")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer") from None
    if number < 0:
        raise ValidationError(f"{field_name} must not be negative")
    return number
