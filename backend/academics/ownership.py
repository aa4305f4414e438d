"""
Ownership validator for course-scoped writes.

Two variants exist on purpose:

- Course-anchored (attendance, results via exam, assignments, timetable):
  the acting teacher must be the course's *current* `teacher_id`.
- Creator-anchored (material deletion): the acting teacher must be the
  material's `teacher_id`, whatever the course's current assignment is.

Every call performs a fresh lookup. Ownership changes when an HOD reassigns a
course, so nothing here is cached.
"""
from __future__ import annotations

import logging
from typing import Any, Optional, Protocol, Tuple

from backend.academics.errors import NotFoundError, UnauthorizedError

logger = logging.getLogger("edudesk.academics.ownership")


class AnchorLookupProtocol(Protocol):
    def get_course(self, course_id: str) -> Optional[dict]: ...

    def get_exam(self, exam_id: str) -> Optional[dict]: ...

    def get_material(self, material_id: str) -> Optional[dict]: ...


def _owner_of(record: Any) -> Optional[str]:
    if isinstance(record, dict):
        owner = record.get("teacher_id")
    else:
        owner = getattr(record, "teacher_id", None)
    return str(owner) if owner else None


def _check_owner(record: dict, principal_id: str, *, kind: str, resource_id: str, message: str) -> None:
    if _owner_of(record) != str(principal_id):
        logger.warning("Ownership denied: %s=%s principal=%s", kind, resource_id, principal_id)
        raise UnauthorizedError("not_owner", message)


def require_course_owner(repo: AnchorLookupProtocol, course_id: str, principal_id: str) -> dict:
    """Return the course when `principal_id` is its current teacher."""
    course = repo.get_course(course_id)
    if not course:
        raise NotFoundError("course_not_found", "Course not found")
    _check_owner(
        course,
        principal_id,
        kind="course",
        resource_id=course_id,
        message="Unauthorized: You are not assigned to this course",
    )
    return course


def require_exam_owner(repo: AnchorLookupProtocol, exam_id: str, principal_id: str) -> Tuple[dict, dict]:
    """Resolve exam -> course and check the course's current teacher.

    Returns (exam, course).
    """
    exam = repo.get_exam(exam_id)
    if not exam:
        raise NotFoundError("exam_not_found", "Exam not found")
    course = repo.get_course(str(exam.get("course_id")))
    if not course:
        raise NotFoundError("course_not_found", "Course not found")
    _check_owner(
        course,
        principal_id,
        kind="exam",
        resource_id=exam_id,
        message="Unauthorized: You are not assigned to this course",
    )
    return exam, course


def require_material_creator(repo: AnchorLookupProtocol, material_id: str, principal_id: str) -> dict:
    """Return the material when `principal_id` created it.

    The course's current teacher is deliberately not consulted: a teacher who
    lost a course keeps the right to delete the material they published, and
    the new course teacher does not gain it.
    """
    material = repo.get_material(material_id)
    if not material:
        raise NotFoundError("material_not_found", "Material not found")
    _check_owner(
        material,
        principal_id,
        kind="material",
        resource_id=material_id,
        message="Unauthorized: You cannot delete this material",
    )
    return material


__all__ = [
    "AnchorLookupProtocol",
    "require_course_owner",
    "require_exam_owner",
    "require_material_creator",
]
