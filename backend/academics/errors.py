"""
Error taxonomy for the academics bounded context.

Why:
    The HTTP boundary historically reported every failure with the same status
    code. Services still need to tell "not found" from "not yours" from "bad
    input", so each failure carries a machine-readable `kind` and `code` and the
    web adapter decides how coarse the transport mapping is.

Design:
    Every class also derives from the builtin exception callers would expect
    (LookupError, PermissionError, ValueError) so generic handlers keep working.
"""
from __future__ import annotations


class AcademicsError(Exception):
    """Base class for terminal failures of an academic operation."""

    kind = "error"

    def __init__(self, code: str, message: str | None = None):
        super().__init__(code)
        self.code = code
        self.message = message or code.replace("_", " ")


class MissingRoleError(AcademicsError, PermissionError):
    """Authenticated principal carries no role claim."""

    kind = "missing_role"


class ForbiddenError(AcademicsError, PermissionError):
    """Role claim present but not admitted for this route class."""

    kind = "forbidden"


class NotFoundError(AcademicsError, LookupError):
    """Anchor or target resource does not exist."""

    kind = "not_found"


class UnauthorizedError(AcademicsError, PermissionError):
    """Principal is authenticated but does not own the resource."""

    kind = "unauthorized"


class InvalidInputError(AcademicsError, ValueError):
    kind = "invalid_input"


class ConflictError(AcademicsError):
    """Opt-in uniqueness/overlap rule rejected the write."""

    kind = "conflict"


__all__ = [
    "AcademicsError",
    "MissingRoleError",
    "ForbiddenError",
    "NotFoundError",
    "UnauthorizedError",
    "InvalidInputError",
    "ConflictError",
]
