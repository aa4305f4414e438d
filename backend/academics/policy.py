"""
Authorization guard: coarse role gate per route class.

Why:
    Route handlers used to carry their own allow-lists, which hid the ADMIN
    override in several places. The policy table below is the single place
    where a route class maps to the roles it admits.

Notes:
    ADMIN is admitted on every route class. This is a documented broad grant,
    not an accident; remove it here to revoke it everywhere.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional, Iterable

from backend.academics.errors import ForbiddenError, MissingRoleError
from backend.identity_access.domain import Role, normalize_role_claim

HOD_ROUTES = "hod"
TEACHER_ROUTES = "teacher"

ROUTE_POLICY: Mapping[str, frozenset] = {
    HOD_ROUTES: frozenset({Role.ADMIN.value, Role.HOD.value}),
    TEACHER_ROUTES: frozenset({Role.TEACHER.value, Role.ADMIN.value}),
}


@dataclass(frozen=True)
class Admitted:
    role: str


def admit(role_claim: Optional[str], allowed_roles: Iterable[str]) -> Admitted:
    """Admit or reject a role claim against an allowed set.

    Raises:
        MissingRoleError: claim absent or blank.
        ForbiddenError: claim present but not allowed.
    """
    role = normalize_role_claim(role_claim)
    if role is None:
        raise MissingRoleError("role_missing", "User role missing in identity provider metadata")
    allowed = {str(getattr(r, "value", r)).upper() for r in allowed_roles}
    if role not in allowed:
        raise ForbiddenError("role_not_allowed", f"Role {role} is not allowed for this resource")
    return Admitted(role=role)


def admit_route(role_claim: Optional[str], route_class: str) -> Admitted:
    """Apply the policy table entry for `route_class`."""
    try:
        allowed = ROUTE_POLICY[route_class]
    except KeyError as exc:
        raise ValueError(f"unknown route class: {route_class}") from exc
    return admit(role_claim, allowed)


__all__ = ["HOD_ROUTES", "TEACHER_ROUTES", "ROUTE_POLICY", "Admitted", "admit", "admit_route"]
