"""Attendance service layer.

Why:
    Marking attendance is the most frequent write a teacher performs. The
    service keeps the owner check, the date default and the status vocabulary
    out of the FastAPI adapter so they can be unit-tested with a fake repo.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Protocol

from backend.academics.domain import normalize_attendance_status, parse_instant, require_id, utcnow
from backend.academics.errors import ConflictError, NotFoundError
from backend.academics.ownership import require_course_owner


class AttendanceRepoProtocol(Protocol):
    def get_course(self, course_id: str) -> Optional[dict]:
        ...

    def create_attendance(
        self,
        *,
        student_id: str,
        class_id: str,
        course_id: str,
        status: str,
        date: datetime,
    ) -> dict:
        ...

    def list_attendance_for_course(self, course_id: str) -> List[dict]:
        ...

    def attendance_exists(self, *, student_id: str, course_id: str, date: datetime) -> bool:
        ...


def _date_key(row: dict) -> datetime:
    return parse_instant(row.get("date"), code="invalid_date")


@dataclass
class AttendanceService:
    """Use cases for attendance records (framework-independent)."""

    repo: AttendanceRepoProtocol
    unique_per_day: bool = False

    def mark_attendance(
        self,
        teacher_id: str,
        *,
        student_id: object,
        class_id: object,
        course_id: object,
        status: object,
        date: object = None,
    ) -> dict:
        """Create an attendance row for a course the teacher currently owns.

        Behavior:
            - `date` defaults to now (UTC) when omitted.
            - Duplicate rows for the same student/course/day are accepted
              unless `unique_per_day` is enabled.
        """
        course_key = require_id(course_id, "invalid_course_id")
        require_course_owner(self.repo, course_key, teacher_id)
        normalized_status = normalize_attendance_status(status)
        when = parse_instant(date, code="invalid_date", default=utcnow())
        student_key = require_id(student_id, "invalid_student_id")
        if self.unique_per_day and self.repo.attendance_exists(
            student_id=student_key, course_id=course_key, date=when
        ):
            raise ConflictError("duplicate_attendance", "Attendance already marked for this day")
        return self.repo.create_attendance(
            student_id=student_key,
            class_id=require_id(class_id, "invalid_class_id"),
            course_id=course_key,
            status=normalized_status,
            date=when,
        )

    def list_attendance(self, course_id: str) -> List[dict]:
        """Return a course's attendance, newest first.

        Permissions:
            Not owner-scoped: any admitted teacher/admin/HOD may read any
            course's attendance. Only the write path checks ownership.
        """
        course_key = require_id(course_id, "invalid_course_id")
        if not self.repo.get_course(course_key):
            raise NotFoundError("course_not_found", "Course not found")
        rows = self.repo.list_attendance_for_course(course_key)
        return sorted(rows, key=_date_key, reverse=True)
