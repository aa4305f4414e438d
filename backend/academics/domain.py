"""
Academic domain vocabulary and input normalisation helpers.

Why:
    Enum values travel through HTTP bodies, SQL rows and in-memory records.
    Keeping the allowed values and their parsing in one module avoids drift
    between the web adapter and the two repository implementations.
"""
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from backend.academics.errors import InvalidInputError


class AttendanceStatus(str, Enum):
    PRESENT = "PRESENT"
    ABSENT = "ABSENT"
    LATE = "LATE"
    EXCUSED = "EXCUSED"


class MaterialType(str, Enum):
    PDF = "PDF"
    PPT = "PPT"
    VIDEO = "VIDEO"
    LINK = "LINK"
    DOC = "DOC"


class ApprovalState(str, Enum):
    """Timetable approval workflow: PROPOSED -> APPROVED."""

    PROPOSED = "PROPOSED"
    APPROVED = "APPROVED"


class Weekday(str, Enum):
    MONDAY = "MONDAY"
    TUESDAY = "TUESDAY"
    WEDNESDAY = "WEDNESDAY"
    THURSDAY = "THURSDAY"
    FRIDAY = "FRIDAY"
    SATURDAY = "SATURDAY"
    SUNDAY = "SUNDAY"

    @property
    def index(self) -> int:
        return list(Weekday).index(self)


def _enum_value(enum_cls, value: object, code: str) -> str:
    if not isinstance(value, str):
        raise InvalidInputError(code)
    candidate = value.strip().upper()
    try:
        return enum_cls(candidate).value
    except ValueError as exc:
        raise InvalidInputError(code) from exc


def normalize_attendance_status(value: object) -> str:
    return _enum_value(AttendanceStatus, value, "invalid_status")


def normalize_material_type(value: object) -> str:
    return _enum_value(MaterialType, value, "invalid_material_type")


def normalize_day(value: object) -> str:
    return _enum_value(Weekday, value, "invalid_day")


def day_index(value: str) -> int:
    """Sort key for weekday names; unknown values sort last."""
    try:
        return Weekday(str(value).upper()).index
    except ValueError:
        return len(Weekday)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_instant(value: object, *, code: str, default: Optional[datetime] = None) -> datetime:
    """Parse an ISO 8601 date or datetime into an aware UTC datetime.

    Behavior:
        - `None` or empty string returns `default` (or raises when no default).
        - Date-only strings resolve to midnight UTC.
        - Naive datetimes are interpreted as UTC.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        if default is None:
            raise InvalidInputError(code)
        return default
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        raw = value.strip()
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError as exc:
            raise InvalidInputError(code) from exc
    else:
        raise InvalidInputError(code)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def normalize_title(value: object, *, max_length: int = 200) -> str:
    if not isinstance(value, str):
        raise InvalidInputError("invalid_title")
    trimmed = value.strip()
    if not trimmed or len(trimmed) > max_length:
        raise InvalidInputError("invalid_title")
    return trimmed


def require_id(value: object, code: str) -> str:
    if value is None:
        raise InvalidInputError(code)
    text = str(value).strip()
    if not text:
        raise InvalidInputError(code)
    return text


__all__ = [
    "AttendanceStatus",
    "MaterialType",
    "ApprovalState",
    "Weekday",
    "normalize_attendance_status",
    "normalize_material_type",
    "normalize_day",
    "day_index",
    "utcnow",
    "parse_instant",
    "normalize_title",
    "require_id",
]
