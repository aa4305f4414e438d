"""Exam results service: owner check via exam -> course plus grade derivation."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Protocol

from backend.academics.domain import require_id
from backend.academics.errors import InvalidInputError
from backend.academics.grading import compute_grade
from backend.academics.ownership import require_exam_owner


class ResultsRepoProtocol(Protocol):
    def get_course(self, course_id: str) -> Optional[dict]:
        ...

    def get_exam(self, exam_id: str) -> Optional[dict]:
        ...

    def create_result(self, *, student_id: str, exam_id: str, marks: float, grade: str) -> dict:
        ...


def _normalize_marks(value: object) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidInputError("invalid_marks")
    if not math.isfinite(value):
        raise InvalidInputError("invalid_marks", "Marks must be a finite number")
    return value


@dataclass
class ResultsService:
    repo: ResultsRepoProtocol

    def record_result(self, teacher_id: str, *, student_id: object, exam_id: object, marks: object) -> dict:
        """Store a result whose grade is derived from the exam's total marks.

        Permissions:
            Caller must be the current teacher of the exam's course.
        """
        exam, _course = require_exam_owner(self.repo, require_id(exam_id, "invalid_exam_id"), teacher_id)
        value = _normalize_marks(marks)
        grade = compute_grade(value, exam.get("total_marks"))
        return self.repo.create_result(
            student_id=require_id(student_id, "invalid_student_id"),
            exam_id=str(exam["id"]),
            marks=value,
            grade=grade,
        )
