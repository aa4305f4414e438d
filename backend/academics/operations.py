"""
Academic operations: one entry point per use case.

Why:
    The web adapter should not decide which role gate applies to which use
    case. Each method here applies the route-class gate from `policy`, then
    delegates to the service that owns the business rule and the ownership
    check. Tests drive the full chain (guard -> service -> ownership -> repo)
    without FastAPI.

Permissions:
    Teacher use cases admit TEACHER and ADMIN; HOD use cases admit HOD and
    ADMIN (see `policy.ROUTE_POLICY`).
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List

from backend.academics.config import AcademicsConfig
from backend.academics.policy import HOD_ROUTES, TEACHER_ROUTES, Admitted, admit_route
from backend.academics.services import (
    AssignmentsService,
    AttendanceService,
    MaterialsService,
    ResultsService,
    StaffService,
    TimetableService,
)
from backend.identity_access.domain import Principal


def _default_config() -> AcademicsConfig:
    return AcademicsConfig(repo_backend="memory", unique_attendance=False, timetable_conflicts=False)


@dataclass
class AcademicOperations:
    repo: Any
    config: AcademicsConfig = field(default_factory=_default_config)

    def __post_init__(self) -> None:
        self.attendance = AttendanceService(self.repo, unique_per_day=self.config.unique_attendance)
        self.results = ResultsService(self.repo)
        self.assignments = AssignmentsService(self.repo)
        self.materials = MaterialsService(self.repo)
        self.timetable = TimetableService(self.repo, detect_conflicts=self.config.timetable_conflicts)
        self.staff = StaffService(self.repo)

    @staticmethod
    def _as_teacher(principal: Principal) -> Admitted:
        return admit_route(principal.role, TEACHER_ROUTES)

    @staticmethod
    def _as_hod(principal: Principal) -> Admitted:
        return admit_route(principal.role, HOD_ROUTES)

    # --- Teacher routes ---------------------------------------------------------
    def get_teacher_profile(self, principal: Principal) -> dict:
        self._as_teacher(principal)
        return self.staff.get_teacher_profile(principal.id)

    def list_attendance(self, principal: Principal, course_id: str) -> List[dict]:
        self._as_teacher(principal)
        return self.attendance.list_attendance(course_id)

    def mark_attendance(self, principal: Principal, **body: object) -> dict:
        self._as_teacher(principal)
        return self.attendance.mark_attendance(principal.id, **body)

    def record_result(self, principal: Principal, **body: object) -> dict:
        self._as_teacher(principal)
        return self.results.record_result(principal.id, **body)

    def issue_assignment(self, principal: Principal, **body: object) -> dict:
        self._as_teacher(principal)
        return self.assignments.issue_assignment(principal.id, **body)

    def get_assignment(self, principal: Principal, assignment_id: str) -> dict:
        self._as_teacher(principal)
        return self.assignments.get_assignment(assignment_id)

    def publish_material(self, principal: Principal, **body: object) -> dict:
        self._as_teacher(principal)
        return self.materials.publish_material(principal.id, **body)

    def delete_material(self, principal: Principal, material_id: str) -> dict:
        self._as_teacher(principal)
        return self.materials.delete_material(principal.id, material_id)

    def create_timetable_entry(self, principal: Principal, **body: object) -> dict:
        self._as_teacher(principal)
        return self.timetable.create_entry(principal.id, **body)

    def list_timetable(self, principal: Principal) -> List[dict]:
        self._as_teacher(principal)
        return self.timetable.list_for_teacher(principal.id)

    # --- HOD routes -------------------------------------------------------------
    def list_hods(self, principal: Principal) -> List[dict]:
        self._as_hod(principal)
        return self.staff.list_hods()

    def list_teachers(self, principal: Principal) -> List[dict]:
        self._as_hod(principal)
        return self.staff.list_teachers()

    def list_students(self, principal: Principal) -> List[dict]:
        self._as_hod(principal)
        return self.staff.list_students()

    def assign_teacher(self, principal: Principal, *, teacher_id: object, course_id: object) -> dict:
        self._as_hod(principal)
        return self.staff.assign_teacher(teacher_id=teacher_id, course_id=course_id)

    def approve_timetable_entry(self, principal: Principal, entry_id: str) -> dict:
        self._as_hod(principal)
        return self.timetable.approve_entry(entry_id, principal.id)
