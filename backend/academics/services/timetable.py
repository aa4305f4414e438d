"""Timetable service layer (creation by course owner, approval by HOD/admin).

Workflow:
    Entries start in `PROPOSED`. An HOD or admin moves them to `APPROVED`,
    which records the approving principal and the approval time. There is no
    way back and no other state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Protocol

from backend.academics.domain import ApprovalState, day_index, normalize_day, parse_instant, require_id, utcnow
from backend.academics.errors import ConflictError, InvalidInputError, NotFoundError
from backend.academics.ownership import require_course_owner

logger = logging.getLogger("edudesk.academics.timetable")


class TimetableRepoProtocol(Protocol):
    def get_course(self, course_id: str) -> Optional[dict]:
        ...

    def create_timetable_entry(
        self,
        *,
        day: str,
        start_time: datetime,
        end_time: datetime,
        class_id: str,
        course_id: str,
        teacher_id: str,
        approval_state: str,
    ) -> dict:
        ...

    def get_timetable_entry(self, entry_id: str) -> Optional[dict]:
        ...

    def list_timetable_for_teacher(self, teacher_id: str) -> List[dict]:
        ...

    def list_timetable_for_class(self, class_id: str) -> List[dict]:
        ...

    def approve_timetable_entry(self, entry_id: str, *, approved_by: str, approved_at: datetime) -> Optional[dict]:
        ...


def _overlaps(entry: dict, day: str, start: datetime, end: datetime) -> bool:
    if str(entry.get("day", "")).upper() != day:
        return False
    other_start = parse_instant(entry.get("start_time"), code="invalid_start_time").time()
    other_end = parse_instant(entry.get("end_time"), code="invalid_end_time").time()
    return start.time() < other_end and other_start < end.time()


def _entry_sort_key(entry: dict) -> tuple:
    start = parse_instant(entry.get("start_time"), code="invalid_start_time")
    return (day_index(str(entry.get("day", ""))), start.time())


@dataclass
class TimetableService:
    repo: TimetableRepoProtocol
    detect_conflicts: bool = False

    def create_entry(
        self,
        teacher_id: str,
        *,
        day: object,
        start_time: object,
        end_time: object,
        class_id: object,
        course_id: object,
    ) -> dict:
        """Propose a timetable slot for a course the teacher currently owns.

        Overlaps with other entries of the same class are only rejected when
        `detect_conflicts` is enabled.
        """
        course = require_course_owner(self.repo, require_id(course_id, "invalid_course_id"), teacher_id)
        normalized_day = normalize_day(day)
        start = parse_instant(start_time, code="invalid_start_time")
        end = parse_instant(end_time, code="invalid_end_time")
        if end <= start:
            raise InvalidInputError("invalid_time_range", "End time must be after start time")
        class_key = require_id(class_id, "invalid_class_id")
        if self.detect_conflicts:
            for other in self.repo.list_timetable_for_class(class_key):
                if _overlaps(other, normalized_day, start, end):
                    raise ConflictError("timetable_conflict", "Overlaps an existing timetable entry")
        return self.repo.create_timetable_entry(
            day=normalized_day,
            start_time=start,
            end_time=end,
            class_id=class_key,
            course_id=str(course["id"]),
            teacher_id=str(teacher_id),
            approval_state=ApprovalState.PROPOSED.value,
        )

    def list_for_teacher(self, teacher_id: str) -> List[dict]:
        """Return the teacher's entries ordered Monday..Sunday, then by start."""
        return sorted(self.repo.list_timetable_for_teacher(str(teacher_id)), key=_entry_sort_key)

    @staticmethod
    def _require_proposed(entry: Optional[dict]) -> None:
        if not entry:
            raise NotFoundError("timetable_not_found", "Timetable entry not found")
        if entry.get("approval_state") == ApprovalState.APPROVED.value:
            raise InvalidInputError("timetable_already_approved", "Timetable entry is already approved")

    def approve_entry(self, entry_id: str, approver_id: str) -> dict:
        entry_key = require_id(entry_id, "invalid_timetable_id")
        self._require_proposed(self.repo.get_timetable_entry(entry_key))
        approved = self.repo.approve_timetable_entry(entry_key, approved_by=str(approver_id), approved_at=utcnow())
        if approved is None:
            # Lost a concurrent approval (or a delete); report what the row is now.
            self._require_proposed(self.repo.get_timetable_entry(entry_key))
            raise InvalidInputError("timetable_already_approved", "Timetable entry is already approved")
        logger.info("Timetable entry %s approved by %s", entry_key, approver_id)
        return approved
