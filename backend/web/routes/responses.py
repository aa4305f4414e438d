"""
Response envelopes shared by the teacher and HOD routers.

Success: `{"message": str, "data": ...}`.
Failure: `{"error": kind, "detail": code, "message": text}`.

Every response carries `Cache-Control: private, no-store`; the payloads are
user- and role-scoped records.
"""
from __future__ import annotations

from typing import Any

from fastapi.responses import JSONResponse

from backend.academics.errors import (
    AcademicsError,
    ConflictError,
    ForbiddenError,
    InvalidInputError,
    MissingRoleError,
    NotFoundError,
    UnauthorizedError,
)
from backend.web.config import load_web_config

PRIVATE_HEADERS = {"Cache-Control": "private, no-store"}

FLAT_ERROR_STATUS = 422

TYPED_ERROR_STATUS = {
    MissingRoleError.kind: 403,
    ForbiddenError.kind: 403,
    NotFoundError.kind: 404,
    UnauthorizedError.kind: 403,
    InvalidInputError.kind: 400,
    ConflictError.kind: 409,
}


def error_status_for(kind: str, mode: str | None = None) -> int:
    mode = mode or load_web_config().error_status
    if mode == "typed":
        return TYPED_ERROR_STATUS.get(kind, 400)
    return FLAT_ERROR_STATUS


def ok(message: str, data: Any = None, *, status_code: int = 200) -> JSONResponse:
    return JSONResponse(
        content={"message": message, "data": data},
        status_code=status_code,
        headers=dict(PRIVATE_HEADERS),
    )


def private_error(payload: dict, *, status_code: int) -> JSONResponse:
    return JSONResponse(content=payload, status_code=status_code, headers=dict(PRIVATE_HEADERS))


def academics_error(exc: AcademicsError, *, mode: str | None = None) -> JSONResponse:
    """Render a taxonomy error as the failure envelope."""
    return private_error(
        {"error": exc.kind, "detail": exc.code, "message": exc.message},
        status_code=error_status_for(exc.kind, mode),
    )
