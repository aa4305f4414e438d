"""
Teacher API routes (`/v1/teacher/*`).

Why:
    Teachers record attendance and results, issue assignments, publish study
    material and propose timetable entries for the courses they currently
    teach. The adapter only translates HTTP to `AcademicOperations` calls; the
    role gate, ownership checks and grading live in `backend.academics`.

Notes:
    - Admitted roles: TEACHER and ADMIN.
    - Payload fields are accepted in snake_case or camelCase (`courseId`).
    - Field types are validated by the services so every failure is rendered
      as the same `{"error", "detail", "message"}` envelope.
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

teacher_router = APIRouter(prefix="/v1/teacher", tags=["Teacher"])
logger = logging.getLogger("edudesk.web.teacher")


class _Payload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AttendanceCreate(_Payload):
    student_id: Any = None
    class_id: Any = None
    course_id: Any = None
    status: Any = None
    date: Any = None


class ResultCreate(_Payload):
    student_id: Any = None
    exam_id: Any = None
    marks: Any = None


class AssignmentCreate(_Payload):
    title: Any = None
    course_id: Any = None
    due_date: Any = None


class MaterialCreate(_Payload):
    title: Any = None
    course_id: Any = None
    file_url: Any = None
    type: Any = None


class TimetableCreate(_Payload):
    day: Any = None
    start_time: Any = None
    end_time: Any = None
    class_id: Any = None
    course_id: Any = None


def _principal(request: Request) -> Principal | None:
    principal = getattr(request.state, "principal", None)
    return principal if isinstance(principal, Principal) else None


def _unauthenticated():
    return private_error({"error": "unauthenticated"}, status_code=401)


def _failed(label: str, exc: AcademicsError):
    logger.info("%s ERROR: %s", label, exc.code)
    return academics_error(exc)


# --- Routes ----------------------------------------------------------------------

@teacher_router.get("/")
async def get_teacher_profile(request: Request):
    """Return the caller's own teacher profile."""
    principal = _principal(request)
    if principal is None:
        return _unauthenticated()
    try:
        teacher = get_operations().get_teacher_profile(principal)
    except AcademicsError as exc:
        return _failed("GET TEACHER", exc)
    return ok("Teacher fetched successfully", teacher)


@teacher_router.get("/attendance/{course_id}")
async def list_attendance(request: Request, course_id: str):
    """List a course's attendance, newest first.

    Permissions:
        Any admitted role; not restricted to the course's teacher.
    """
    principal = _principal(request)
    if principal is None:
        return _unauthenticated()
    try:
        rows = get_operations().list_attendance(principal, course_id)
    except AcademicsError as exc:
        return _failed("GET ATTENDANCE", exc)
    return ok("Attendance fetched successfully", rows)


@teacher_router.post("/attendance")
async def mark_attendance(request: Request, payload: AttendanceCreate):
    principal = _principal(request)
    if principal is None:
        return _unauthenticated()
    try:
        row = get_operations().mark_attendance(principal, **payload.model_dump())
    except AcademicsError as exc:
        return _failed("MARK ATTENDANCE", exc)
    return ok("Attendance marked successfully", row, status_code=201)


@teacher_router.post("/results")
async def record_result(request: Request, payload: ResultCreate):
    """Record a result; the grade is derived from marks and the exam's total."""
    principal = _principal(request)
    if principal is None:
        return _unauthenticated()
    try:
        row = get_operations().record_result(principal, **payload.model_dump())
    except AcademicsError as exc:
        return _failed("CREATE RESULT", exc)
    return ok("Result created successfully", row, status_code=201)


@teacher_router.post("/assignments")
async def issue_assignment(request: Request, payload: AssignmentCreate):
    principal = _principal(request)
    if principal is None:
        return _unauthenticated()
    try:
        row = get_operations().issue_assignment(principal, **payload.model_dump())
    except AcademicsError as exc:
        return _failed("GIVE ASSIGNMENT", exc)
    return ok("Assignment created successfully", row, status_code=201)


@teacher_router.get("/assignments/{assignment_id}/submissions")
async def get_assignment(request: Request, assignment_id: str):
    principal = _principal(request)
    if principal is None:
        return _unauthenticated()
    try:
        detail = get_operations().get_assignment(principal, assignment_id)
    except AcademicsError as exc:
        return _failed("GET ASSIGNMENT", exc)
    return ok("Assignment fetched successfully", detail)


@teacher_router.post("/materials")
async def publish_material(request: Request, payload: MaterialCreate):
    principal = _principal(request)
    if principal is None:
        return _unauthenticated()
    try:
        row = get_operations().publish_material(principal, **payload.model_dump())
    except AcademicsError as exc:
        return _failed("ADD MATERIAL", exc)
    return ok("Material added successfully", row, status_code=201)


@teacher_router.delete("/materials/{material_id}")
async def delete_material(request: Request, material_id: str):
    """Delete a study material.

    Permissions:
        Only the teacher who created the material, even if the course has
        since been reassigned.
    """
    principal = _principal(request)
    if principal is None:
        return _unauthenticated()
    try:
        row = get_operations().delete_material(principal, material_id)
    except AcademicsError as exc:
        return _failed("DELETE MATERIAL", exc)
    return ok("Material deleted successfully", row)


@teacher_router.post("/timetable")
async def create_timetable_entry(request: Request, payload: TimetableCreate):
    principal = _principal(request)
    if principal is None:
        return _unauthenticated()
    try:
        row = get_operations().create_timetable_entry(principal, **payload.model_dump())
    except AcademicsError as exc:
        return _failed("CREATE TIMETABLE", exc)
    return ok("Timetable entry proposed successfully", row, status_code=201)


@teacher_router.get("/timetable")
async def list_timetable(request: Request):
    principal = _principal(request)
    if principal is None:
        return _unauthenticated()
    try:
        rows = get_operations().list_timetable(principal)
    except AcademicsError as exc:
        return _failed("GET TIMETABLE", exc)
    return ok("Timetable fetched successfully", rows)
