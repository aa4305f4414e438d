"""
Head-of-department API routes (`/v1/hod/*`).

Staff listings, course-to-teacher assignment and timetable approval.
Admitted roles: HOD and ADMIN.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Request
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from backend.academics.errors import AcademicsError
from backend.identity_access.domain import Principal
from backend.web.academics_wiring import get_operations
from backend.web.routes.responses import academics_error, ok, private_error

hod_router = APIRouter(prefix="/v1/hod", tags=["HOD"])
logger = logging.getLogger("edudesk.web.hod")


class AssignTeacher(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    teacher_id: Any = None
    course_id: Any = None


def _principal(request: Request) -> Principal | None:
    principal = getattr(request.state, "principal", None)
    return principal if isinstance(principal, Principal) else None


def _failed(label: str, exc: AcademicsError):
    logger.info("%s ERROR: %s", label, exc.code)
    return academics_error(exc)


@hod_router.get("/")
async def list_hods(request: Request):
    principal = _principal(request)
    if principal is None:
        return private_error({"error": "unauthenticated"}, status_code=401)
    try:
        rows = get_operations().list_hods(principal)
    except AcademicsError as exc:
        return _failed("GET HODS", exc)
    return ok("HODs fetched successfully", rows)


@hod_router.get("/teachers")
async def list_teachers(request: Request):
    """List teachers; an empty directory is reported as not found."""
    principal = _principal(request)
    if principal is None:
        return private_error({"error": "unauthenticated"}, status_code=401)
    try:
        rows = get_operations().list_teachers(principal)
    except AcademicsError as exc:
        return _failed("GET TEACHERS", exc)
    return ok("Teachers fetched successfully", rows)


@hod_router.get("/students")
async def list_students(request: Request):
    principal = _principal(request)
    if principal is None:
        return private_error({"error": "unauthenticated"}, status_code=401)
    try:
        rows = get_operations().list_students(principal)
    except AcademicsError as exc:
        return _failed("GET STUDENTS", exc)
    return ok("Students fetched successfully", rows)


@hod_router.post("/assign-teacher")
async def assign_teacher(request: Request, payload: AssignTeacher):
    """Make `teacher_id` the course's teacher.

    Takes effect for every later ownership check; records created by the
    previous teacher keep their creator.
    """
    principal = _principal(request)
    if principal is None:
        return private_error({"error": "unauthenticated"}, status_code=401)
    try:
        course = get_operations().assign_teacher(
            principal, teacher_id=payload.teacher_id, course_id=payload.course_id
        )
    except AcademicsError as exc:
        return _failed("ASSIGN TEACHER", exc)
    return ok("Teacher assigned successfully", course)


@hod_router.patch("/timetable/{entry_id}/approve")
async def approve_timetable_entry(request: Request, entry_id: str):
    principal = _principal(request)
    if principal is None:
        return private_error({"error": "unauthenticated"}, status_code=401)
    try:
        entry = get_operations().approve_timetable_entry(principal, entry_id)
    except AcademicsError as exc:
        return _failed("APPROVE TIMETABLE", exc)
    return ok("Timetable approved successfully", entry)
