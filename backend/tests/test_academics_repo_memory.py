"""In-memory repository semantics relied on by services and API tests."""

from __future__ import annotations

from datetime import datetime, timezone

from backend.academics.repo_memory import MemoryAcademicsRepo


def test_returned_dicts_are_copies():
    repo = MemoryAcademicsRepo()
    course = repo.add_course(name="Geo", teacher_id="t1", course_id="c1")
    course["teacher_id"] = "mallory"
    assert repo.get_course("c1")["teacher_id"] == "t1"


def test_assign_course_teacher_unknown_course():
    assert MemoryAcademicsRepo().assign_course_teacher("missing", "t1") is None


def test_role_listing_is_case_insensitive_and_sorted():
    repo = MemoryAcademicsRepo()
    repo.add_user(role="teacher", user_id="b", last_name="Zed")
    repo.add_user(role="TEACHER", user_id="a", last_name="Abe")
    repo.add_user(role="STUDENT", user_id="s")
    assert [u["id"] for u in repo.list_users_by_role("Teacher")] == ["a", "b"]


def test_attendance_exists_compares_utc_calendar_day():
    repo = MemoryAcademicsRepo()
    repo.create_attendance(
        student_id="s1",
        class_id="k1",
        course_id="c1",
        status="PRESENT",
        date=datetime(2024, 1, 1, 23, 30, tzinfo=timezone.utc),
    )
    assert repo.attendance_exists(student_id="s1", course_id="c1", date=datetime(2024, 1, 1, 6, tzinfo=timezone.utc))
    assert not repo.attendance_exists(student_id="s1", course_id="c1", date=datetime(2024, 1, 2, tzinfo=timezone.utc))
    assert not repo.attendance_exists(student_id="s2", course_id="c1", date=datetime(2024, 1, 1, tzinfo=timezone.utc))


def test_timetable_approval_sets_audit_fields():
    repo = MemoryAcademicsRepo()
    entry = repo.create_timetable_entry(
        day="MONDAY",
        start_time=datetime(2024, 1, 1, 9, tzinfo=timezone.utc),
        end_time=datetime(2024, 1, 1, 10, tzinfo=timezone.utc),
        class_id="k1",
        course_id="c1",
        teacher_id="t1",
        approval_state="PROPOSED",
    )
    approved = repo.approve_timetable_entry(
        entry["id"], approved_by="h1", approved_at=datetime(2024, 1, 2, tzinfo=timezone.utc)
    )
    assert approved["approval_state"] == "APPROVED"
    assert approved["approved_by"] == "h1"
    assert approved["approved_at"].startswith("2024-01-02")
    assert repo.approve_timetable_entry("missing", approved_by="h1", approved_at=datetime.now(timezone.utc)) is None
