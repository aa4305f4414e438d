"""
Grade calculation for exam results.

Bands are checked highest first; the first band whose lower bound is reached
wins, and every lower bound is inclusive. Marks outside [0, total_marks] are
not rejected here: callers that want range checks apply them upstream.
"""
from __future__ import annotations

import math
from typing import Tuple

from backend.academics.errors import InvalidInputError

# (inclusive lower bound in percent, grade)
GRADE_BANDS: Tuple[Tuple[float, str], ...] = (
    (90.0, "A+"),
    (80.0, "A"),
    (70.0, "B+"),
    (60.0, "B"),
    (50.0, "C+"),
    (40.0, "C"),
    (35.0, "D"),
)
FAILING_GRADE = "F"


def _require_number(value: object, code: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidInputError(code)
    number = float(value)
    if not math.isfinite(number):
        raise InvalidInputError(code)
    return number


def percentage_of(marks: float, total_marks: float) -> float:
    total = _require_number(total_marks, "invalid_exam")
    if total <= 0:
        raise InvalidInputError("invalid_exam", "Exam total marks must be positive")
    return 100.0 * _require_number(marks, "invalid_marks") / total


def compute_grade(marks: float, total_marks: float) -> str:
    """Return the letter grade for `marks` out of `total_marks`.

    Raises:
        InvalidInputError("invalid_exam") when total_marks is not positive.
    """
    percentage = percentage_of(marks, total_marks)
    for lower_bound, grade in GRADE_BANDS:
        if percentage >= lower_bound:
            return grade
    return FAILING_GRADE


__all__ = ["GRADE_BANDS", "FAILING_GRADE", "percentage_of", "compute_grade"]
