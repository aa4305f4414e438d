"""Staff directory and course assignment use cases (teacher profile, HOD views)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Protocol

from backend.academics.domain import require_id
from backend.academics.errors import NotFoundError
from backend.identity_access.domain import Role


class StaffRepoProtocol(Protocol):
    def get_user(self, user_id: str) -> Optional[dict]:
        ...

    def list_users_by_role(self, role: str) -> List[dict]:
        ...

    def get_course(self, course_id: str) -> Optional[dict]:
        ...

    def assign_course_teacher(self, course_id: str, teacher_id: str) -> Optional[dict]:
        ...


def _has_role(user: Optional[dict], role: Role) -> bool:
    return bool(user) and str(user.get("role", "")).upper() == role.value


@dataclass
class StaffService:
    repo: StaffRepoProtocol

    def get_teacher_profile(self, teacher_id: str) -> dict:
        user = self.repo.get_user(str(teacher_id))
        if not _has_role(user, Role.TEACHER):
            raise NotFoundError("teacher_not_found", "Teacher not exist")
        return user

    def list_hods(self) -> List[dict]:
        return self.repo.list_users_by_role(Role.HOD.value)

    def list_teachers(self) -> List[dict]:
        teachers = self.repo.list_users_by_role(Role.TEACHER.value)
        if not teachers:
            raise NotFoundError("no_teachers_assigned", "There are no teachers assigned.")
        return teachers

    def list_students(self) -> List[dict]:
        return self.repo.list_users_by_role(Role.STUDENT.value)

    def assign_teacher(self, *, teacher_id: object, course_id: object) -> dict:
        """Make `teacher_id` the course's single assigned teacher.

        Takes effect for the very next ownership check; nothing is cached.
        """
        teacher_key = require_id(teacher_id, "invalid_teacher_id")
        course_key = require_id(course_id, "invalid_course_id")
        if not _has_role(self.repo.get_user(teacher_key), Role.TEACHER):
            raise NotFoundError("teacher_not_found", "Teacher not found")
        if not self.repo.get_course(course_key):
            raise NotFoundError("course_not_found", "Course not found")
        updated = self.repo.assign_course_teacher(course_key, teacher_key)
        if updated is None:
            raise NotFoundError("course_not_found", "Course not found")
        return updated
