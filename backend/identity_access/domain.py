"""
Identity domain constants and simple helpers.

Why:
- Centralize allowed roles to avoid drift between the guard, the directory
  adapter and the HOD listings.
- Keep terms aligned with the GLOSSARY (principal, role claim).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Role(str, Enum):
    ADMIN = "ADMIN"
    HOD = "HOD"
    TEACHER = "TEACHER"
    STUDENT = "STUDENT"


# Keep roles minimal and explicit. Immutable to prevent accidental mutation.
ALLOWED_ROLES = frozenset(r.value for r in Role)


def normalize_role_claim(value: object) -> Optional[str]:
    """Return an upper-cased role claim or None when absent/blank.

    Unknown role names are kept verbatim (upper-cased) so the guard can reject
    them as forbidden instead of treating them as missing.
    """
    if value is None:
        return None
    text = str(value).strip()
    return text.upper() or None


@dataclass(frozen=True)
class Principal:
    """The authenticated actor of one request."""

    id: str
    role: Optional[str] = None

    @property
    def has_role(self) -> bool:
        return bool(self.role)


__all__ = ["Role", "ALLOWED_ROLES", "normalize_role_claim", "Principal"]
