"""Assignments service layer."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol

from backend.academics.domain import normalize_title, parse_instant, require_id
from backend.academics.errors import NotFoundError
from backend.academics.ownership import require_course_owner


class AssignmentsRepoProtocol(Protocol):
    def get_course(self, course_id: str) -> Optional[dict]:
        ...

    def create_assignment(self, *, title: str, course_id: str, teacher_id: str, due_date: datetime) -> dict:
        ...

    def get_assignment_detail(self, assignment_id: str) -> Optional[dict]:
        ...


@dataclass
class AssignmentsService:
    repo: AssignmentsRepoProtocol

    def issue_assignment(self, teacher_id: str, *, title: object, course_id: object, due_date: object) -> dict:
        """Create an assignment owned by the issuing teacher.

        The owner recorded on the assignment is the course's teacher at the
        time of issuance, re-validated on this call.
        """
        course = require_course_owner(self.repo, require_id(course_id, "invalid_course_id"), teacher_id)
        return self.repo.create_assignment(
            title=normalize_title(title),
            course_id=str(course["id"]),
            teacher_id=str(teacher_id),
            due_date=parse_instant(due_date, code="invalid_due_date"),
        )

    def get_assignment(self, assignment_id: str) -> dict:
        """Return an assignment with its course, teacher and submissions."""
        detail = self.repo.get_assignment_detail(require_id(assignment_id, "invalid_assignment_id"))
        if not detail:
            raise NotFoundError("assignment_not_found", "Assignment not found.")
        return detail
