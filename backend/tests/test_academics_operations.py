"""End-to-end use cases through AcademicOperations (gate -> service -> ownership -> repo).

Covers the cross-cutting scenarios without FastAPI: the role gate runs before
any lookup, ADMIN passes both gates, and ownership follows HOD reassignment.
"""

from __future__ import annotations

import pytest

from backend.academics.config import AcademicsConfig
from backend.academics.errors import ConflictError, ForbiddenError, MissingRoleError, UnauthorizedError
from backend.academics.operations import AcademicOperations
from backend.academics.repo_memory import MemoryAcademicsRepo
from backend.identity_access.domain import Principal

T1 = Principal(id="t1", role="TEACHER")
T2 = Principal(id="t2", role="TEACHER")
HOD = Principal(id="h1", role="HOD")
ADMIN = Principal(id="a1", role="ADMIN")
STUDENT = Principal(id="s1", role="STUDENT")
NO_ROLE = Principal(id="x1", role=None)


@pytest.fixture
def mem() -> MemoryAcademicsRepo:
    r = MemoryAcademicsRepo()
    for uid, role in (("t1", "TEACHER"), ("t2", "TEACHER"), ("h1", "HOD"), ("a1", "ADMIN"), ("s1", "STUDENT")):
        r.add_user(role=role, user_id=uid)
    r.add_course(name="Biology", teacher_id="t1", course_id="c1")
    r.add_class(class_name="8-C", class_id="k1")
    r.add_exam(course_id="c1", total_marks=100, exam_id="e1")
    return r


@pytest.fixture
def ops(mem) -> AcademicOperations:
    return AcademicOperations(mem)


def test_missing_role_is_reported_before_any_lookup(ops):
    with pytest.raises(MissingRoleError):
        ops.record_result(NO_ROLE, student_id="s1", exam_id="does-not-exist", marks=10)


def test_student_cannot_use_teacher_or_hod_routes(ops):
    with pytest.raises(ForbiddenError):
        ops.list_timetable(STUDENT)
    with pytest.raises(ForbiddenError):
        ops.list_students(STUDENT)


def test_teacher_cannot_use_hod_routes(ops):
    with pytest.raises(ForbiddenError):
        ops.assign_teacher(T1, teacher_id="t2", course_id="c1")


def test_admin_passes_gate_but_not_ownership(ops):
    # Admitted on teacher routes, yet still not the course's teacher.
    with pytest.raises(UnauthorizedError):
        ops.record_result(ADMIN, student_id="s1", exam_id="e1", marks=50)
    assert ops.list_teachers(ADMIN)


def test_reassignment_scenario(ops, mem):
    # T1 records a result while assigned.
    first = ops.record_result(T1, student_id="s1", exam_id="e1", marks=85)
    assert first["grade"] == "A"
    # HOD reassigns the course to T2.
    ops.assign_teacher(HOD, teacher_id="t2", course_id="c1")
    with pytest.raises(UnauthorizedError):
        ops.record_result(T1, student_id="s1", exam_id="e1", marks=70)
    second = ops.record_result(T2, student_id="s1", exam_id="e1", marks=35)
    assert second["grade"] == "D"
    # The earlier row is untouched.
    assert mem.results[first["id"]].grade == "A"


def test_timetable_propose_then_approve_by_hod(ops):
    entry = ops.create_timetable_entry(
        T1,
        day="FRIDAY",
        start_time="2024-01-05T08:00:00Z",
        end_time="2024-01-05T09:00:00Z",
        class_id="k1",
        course_id="c1",
    )
    approved = ops.approve_timetable_entry(HOD, entry["id"])
    assert approved["approval_state"] == "APPROVED"
    assert approved["approved_by"] == "h1"
    assert ops.list_timetable(T1)[0]["approval_state"] == "APPROVED"


def test_attendance_read_is_open_to_any_admitted_teacher(ops):
    ops.mark_attendance(T1, student_id="s1", class_id="k1", course_id="c1", status="ABSENT")
    rows = ops.list_attendance(T2, "c1")
    assert [r["status"] for r in rows] == ["ABSENT"]


def test_config_flags_are_passed_to_services(mem):
    ops = AcademicOperations(mem, config=AcademicsConfig(repo_backend="memory", unique_attendance=True, timetable_conflicts=False))
    ops.mark_attendance(T1, student_id="s1", class_id="k1", course_id="c1", status="PRESENT", date="2024-02-01")
    with pytest.raises(ConflictError):
        ops.mark_attendance(T1, student_id="s1", class_id="k1", course_id="c1", status="LATE", date="2024-02-01")


def test_teacher_profile_for_own_principal(ops):
    assert ops.get_teacher_profile(T1)["id"] == "t1"
