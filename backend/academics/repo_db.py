"""
Postgres-backed repository for the academics context.

Security:
- Access with a limited-role DSN; service-role DSNs are reserved for
  migrations and must be opted into explicitly for local testing.

Design:
- Minimal psycopg3 usage; each call opens a short-lived connection.
- Returns plain dicts so services stay independent of the driver.
- Ownership is never decided here: the services read `teacher_id` and compare.
"""
from __future__ import annotations

from typing import Any, Dict, Iterator, List, Optional, Tuple
import os
import re
from contextlib import contextmanager
from datetime import datetime
from urllib.parse import urlparse

from backend.academics.errors import ConflictError, InvalidInputError, NotFoundError

try:
    import psycopg
    HAVE_PSYCOPG = True
except Exception:  # pragma: no cover - optional in some dev envs
    psycopg = None  # type: ignore
    HAVE_PSYCOPG = False

LIMITED_ROLE = "edudesk_limited"

# sqlstate -> taxonomy error raised in place of the driver exception.
_SQLSTATE_ERRORS = {
    "22P02": (InvalidInputError, "invalid_id", "Identifier is not valid"),  # invalid_text_representation
    "23503": (NotFoundError, "reference_not_found", "Referenced record does not exist"),  # foreign_key_violation
    "23505": (ConflictError, "duplicate_record", "Record already exists"),  # unique_violation
    "23514": (InvalidInputError, "constraint_violation", "Value violates a table constraint"),  # check_violation
}


@contextmanager
def _translate_db_errors() -> Iterator[None]:
    """Re-raise data errors caused by caller input as academics errors."""
    try:
        yield
    except Exception as exc:
        sqlstate = getattr(exc, "sqlstate", None) or getattr(exc, "pgcode", None)
        mapped = _SQLSTATE_ERRORS.get(sqlstate)
        if mapped is None:
            raise
        error_cls, code, message = mapped
        raise error_cls(code, message) from exc


def _default_limited_dsn() -> str:
    host = os.getenv("TEST_DB_HOST", "127.0.0.1")
    port = os.getenv("TEST_DB_PORT", "54322")
    return f"postgresql://{LIMITED_ROLE}:edudesk-limited@{host}:{port}/postgres"


def _is_prod_like() -> bool:
    env = (os.getenv("EDUDESK_ENV") or "dev").lower()
    return env in {"prod", "production", "stage", "staging"}


def _dsn() -> str:
    """Resolve the DSN; the local limited-role default is for dev/test only."""
    candidates = [
        os.getenv("ACADEMICS_DATABASE_URL"),
        os.getenv("DATABASE_URL"),
    ]
    for dsn in candidates:
        if dsn:
            return dsn
    if _is_prod_like():
        raise RuntimeError("ACADEMICS_DATABASE_URL or DATABASE_URL must be set in production")
    return _default_limited_dsn()


def _ts(column: str) -> str:
    return (
        f"case when {column} is null then null "
        f"else to_char({column} at time zone 'utc', 'YYYY-MM-DD\"T\"HH24:MI:SS\"+00:00\"') end"
    )


_USER_COLUMNS_SQL = f"""
    id, first_name, last_name, email, role, department_id::text, profile_img,
    {_ts("created_at")}, {_ts("updated_at")}
"""


def _user_row_to_dict(row: Tuple) -> Dict[str, Any]:
    return {
        "id": row[0],
        "first_name": row[1],
        "last_name": row[2],
        "email": row[3],
        "role": row[4],
        "department_id": row[5],
        "profile_img": row[6],
        "created_at": row[7],
        "updated_at": row[8],
    }


_COURSE_COLUMNS_SQL = f"""
    id::text, name, code, department_id::text, teacher_id,
    {_ts("created_at")}, {_ts("updated_at")}
"""


def _course_row_to_dict(row: Tuple) -> Dict[str, Any]:
    return {
        "id": row[0],
        "name": row[1],
        "code": row[2],
        "department_id": row[3],
        "teacher_id": row[4],
        "created_at": row[5],
        "updated_at": row[6],
    }


_ATTENDANCE_COLUMNS_SQL = f"""
    a.id::text, a.student_id, a.class_id::text, a.course_id::text, a.status, {_ts("a.date")}
"""


def _attendance_row_to_dict(row: Tuple) -> Dict[str, Any]:
    return {
        "id": row[0],
        "student_id": row[1],
        "class_id": row[2],
        "course_id": row[3],
        "status": row[4],
        "date": row[5],
    }


_MATERIAL_COLUMNS_SQL = f"""
    id::text, title, file_url, type, teacher_id, course_id::text, {_ts("created_at")}
"""


def _material_row_to_dict(row: Tuple) -> Dict[str, Any]:
    return {
        "id": row[0],
        "title": row[1],
        "file_url": row[2],
        "type": row[3],
        "teacher_id": row[4],
        "course_id": row[5],
        "created_at": row[6],
    }


_TIMETABLE_COLUMNS_SQL = f"""
    t.id::text, t.day, {_ts("t.start_time")}, {_ts("t.end_time")}, t.class_id::text,
    t.course_id::text, t.teacher_id, t.approval_state, t.approved_by, {_ts("t.approved_at")},
    {_ts("t.created_at")}
"""


def _timetable_row_to_dict(row: Tuple) -> Dict[str, Any]:
    return {
        "id": row[0],
        "day": row[1],
        "start_time": row[2],
        "end_time": row[3],
        "class_id": row[4],
        "course_id": row[5],
        "teacher_id": row[6],
        "approval_state": row[7],
        "approved_by": row[8],
        "approved_at": row[9],
        "created_at": row[10],
    }


_ASSIGNMENT_COLUMNS_SQL = f"""
    id::text, title, course_id::text, teacher_id, {_ts("due_date")}, {_ts("created_at")}
"""


def _assignment_row_to_dict(row: Tuple) -> Dict[str, Any]:
    return {
        "id": row[0],
        "title": row[1],
        "course_id": row[2],
        "teacher_id": row[3],
        "due_date": row[4],
        "created_at": row[5],
    }


class DBAcademicsRepo:
    def __init__(self, dsn: Optional[str] = None) -> None:
        """Initialize a Postgres-backed repository.

        Behavior:
            - Rejects DSNs whose username is not the limited application role
              unless ALLOW_SERVICE_DSN_FOR_TESTING=true is set (dev/testing only).
            - Does not open a connection eagerly; connections are per-call.
        """
        if not HAVE_PSYCOPG:
            raise RuntimeError("psycopg3 is required for DBAcademicsRepo")
        self._dsn = dsn or _dsn()
        user = self._dsn_username(self._dsn)
        allow_override = str(os.getenv("ALLOW_SERVICE_DSN_FOR_TESTING", "")).lower() == "true"
        if user != LIMITED_ROLE and not allow_override:
            raise RuntimeError(
                f"AcademicsRepo requires limited-role DSN ({LIMITED_ROLE}). Set ACADEMICS_DATABASE_URL "
                "to a limited DSN or export ALLOW_SERVICE_DSN_FOR_TESTING=true to override in dev."
            )

    @staticmethod
    def _dsn_username(dsn: str) -> str:
        try:
            p = urlparse(dsn)
            if p.username:
                return p.username
        except ValueError:
            pass
        m = re.search(r"\buser\s*=\s*([^\s]+)", dsn or "")
        return m.group(1) if m else ""

    def _one(self, sql: str, params: tuple, *, commit: bool = False) -> Optional[Tuple]:
        with _translate_db_errors(), psycopg.connect(self._dsn) as conn:
            with conn.cursor() as cur:
                cur.execute(sql, params)
                row = cur.fetchone()
                if commit:
                    conn.commit()
        return row

    def _all(self, sql: str, params: tuple) -> List[Tuple]:
        with _translate_db_errors(), psycopg.connect(self._dsn) as conn:
            with conn.cursor() as cur:
                cur.execute(sql, params)
                return cur.fetchall() or []

    # --- Users & courses ---------------------------------------------------------
    def get_user(self, user_id: str) -> Optional[dict]:
        row = self._one(f"select {_USER_COLUMNS_SQL} from public.users where id = %s", (user_id,))
        return _user_row_to_dict(row) if row else None

    def list_users_by_role(self, role: str) -> List[dict]:
        rows = self._all(
            f"""
            select {_USER_COLUMNS_SQL}
            from public.users
            where role = %s
            order by lower(last_name), lower(first_name), id
            """,
            (role.upper(),),
        )
        return [_user_row_to_dict(r) for r in rows]

    def get_course(self, course_id: str) -> Optional[dict]:
        row = self._one(f"select {_COURSE_COLUMNS_SQL} from public.courses where id::text = %s", (course_id,))
        return _course_row_to_dict(row) if row else None

    def assign_course_teacher(self, course_id: str, teacher_id: str) -> Optional[dict]:
        row = self._one(
            f"""
            update public.courses
               set teacher_id = %s, updated_at = now()
             where id::text = %s
            returning {_COURSE_COLUMNS_SQL}
            """,
            (teacher_id, course_id),
            commit=True,
        )
        return _course_row_to_dict(row) if row else None

    # --- Attendance --------------------------------------------------------------
    def create_attendance(
        self,
        *,
        student_id: str,
        class_id: str,
        course_id: str,
        status: str,
        date: datetime,
    ) -> dict:
        row = self._one(
            f"""
            insert into public.attendance as a (student_id, class_id, course_id, status, date)
            values (%s, %s::uuid, %s::uuid, %s, %s)
            returning {_ATTENDANCE_COLUMNS_SQL}
            """,
            (student_id, class_id, course_id, status, date),
            commit=True,
        )
        return _attendance_row_to_dict(row)

    def list_attendance_for_course(self, course_id: str) -> List[dict]:
        rows = self._all(
            f"""
            select {_ATTENDANCE_COLUMNS_SQL},
                   u.id, u.first_name, u.last_name,
                   c.id::text, c.class_name
            from public.attendance a
            left join public.users u on u.id = a.student_id
            left join public.classes c on c.id = a.class_id
            where a.course_id::text = %s
            order by a.date desc, a.id
            """,
            (course_id,),
        )
        out: List[dict] = []
        for r in rows:
            item = _attendance_row_to_dict(r[:6])
            item["student"] = {"id": r[6], "first_name": r[7], "last_name": r[8]} if r[6] else None
            item["class"] = {"id": r[9], "class_name": r[10]} if r[9] else None
            out.append(item)
        return out

    def attendance_exists(self, *, student_id: str, course_id: str, date: datetime) -> bool:
        row = self._one(
            """
            select exists (
              select 1 from public.attendance
              where student_id = %s
                and course_id::text = %s
                and (date at time zone 'utc')::date = (%s::timestamptz at time zone 'utc')::date
            )
            """,
            (student_id, course_id, date),
        )
        return bool(row and row[0])

    # --- Exams & results ---------------------------------------------------------
    def get_exam(self, exam_id: str) -> Optional[dict]:
        row = self._one(
            "select id::text, course_id::text, title, total_marks from public.exams where id::text = %s",
            (exam_id,),
        )
        if not row:
            return None
        return {
            "id": row[0],
            "course_id": row[1],
            "title": row[2],
            "total_marks": float(row[3]) if row[3] is not None else None,
        }

    def create_result(self, *, student_id: str, exam_id: str, marks: float, grade: str) -> dict:
        row = self._one(
            f"""
            insert into public.results (student_id, exam_id, marks, grade)
            values (%s, %s::uuid, %s, %s)
            returning id::text, student_id, exam_id::text, marks, grade, {_ts("created_at")}
            """,
            (student_id, exam_id, marks, grade),
            commit=True,
        )
        return {
            "id": row[0],
            "student_id": row[1],
            "exam_id": row[2],
            "marks": float(row[3]),
            "grade": row[4],
            "created_at": row[5],
        }

    # --- Assignments -------------------------------------------------------------
    def create_assignment(self, *, title: str, course_id: str, teacher_id: str, due_date: datetime) -> dict:
        row = self._one(
            f"""
            insert into public.assignments (title, course_id, teacher_id, due_date)
            values (%s, %s::uuid, %s, %s)
            returning {_ASSIGNMENT_COLUMNS_SQL}
            """,
            (title, course_id, teacher_id, due_date),
            commit=True,
        )
        return _assignment_row_to_dict(row)

    def get_assignment_detail(self, assignment_id: str) -> Optional[dict]:
        row = self._one(
            f"select {_ASSIGNMENT_COLUMNS_SQL} from public.assignments where id::text = %s",
            (assignment_id,),
        )
        if not row:
            return None
        detail = _assignment_row_to_dict(row)
        detail["course"] = self.get_course(detail["course_id"])
        detail["teacher"] = self.get_user(detail["teacher_id"])
        rows = self._all(
            f"""
            select s.id::text, s.assignment_id::text, s.student_id, s.file_url, {_ts("s.submitted_at")}
            from public.submissions s
            where s.assignment_id::text = %s
            order by s.submitted_at, s.id
            """,
            (assignment_id,),
        )
        detail["submissions"] = [
            {
                "id": r[0],
                "assignment_id": r[1],
                "student_id": r[2],
                "file_url": r[3],
                "submitted_at": r[4],
                "student": self.get_user(r[2]),
            }
            for r in rows
        ]
        return detail

    # --- Materials ---------------------------------------------------------------
    def create_material(self, *, title: str, file_url: str, type: str, teacher_id: str, course_id: str) -> dict:
        row = self._one(
            f"""
            insert into public.study_materials (title, file_url, type, teacher_id, course_id)
            values (%s, %s, %s, %s, %s::uuid)
            returning {_MATERIAL_COLUMNS_SQL}
            """,
            (title, file_url, type, teacher_id, course_id),
            commit=True,
        )
        return _material_row_to_dict(row)

    def get_material(self, material_id: str) -> Optional[dict]:
        row = self._one(
            f"select {_MATERIAL_COLUMNS_SQL} from public.study_materials where id::text = %s",
            (material_id,),
        )
        return _material_row_to_dict(row) if row else None

    def delete_material(self, material_id: str) -> Optional[dict]:
        row = self._one(
            f"delete from public.study_materials where id::text = %s returning {_MATERIAL_COLUMNS_SQL}",
            (material_id,),
            commit=True,
        )
        return _material_row_to_dict(row) if row else None

    # --- Timetable ---------------------------------------------------------------
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
        row = self._one(
            f"""
            insert into public.timetable as t (day, start_time, end_time, class_id, course_id, teacher_id, approval_state)
            values (%s, %s, %s, %s::uuid, %s::uuid, %s, %s)
            returning {_TIMETABLE_COLUMNS_SQL}
            """,
            (day, start_time, end_time, class_id, course_id, teacher_id, approval_state),
            commit=True,
        )
        return _timetable_row_to_dict(row)

    def get_timetable_entry(self, entry_id: str) -> Optional[dict]:
        row = self._one(
            f"select {_TIMETABLE_COLUMNS_SQL} from public.timetable t where t.id::text = %s",
            (entry_id,),
        )
        return _timetable_row_to_dict(row) if row else None

    def list_timetable_for_teacher(self, teacher_id: str) -> List[dict]:
        rows = self._all(
            f"""
            select {_TIMETABLE_COLUMNS_SQL}, c.class_name
            from public.timetable t
            left join public.classes c on c.id = t.class_id
            where t.teacher_id = %s
            order by t.start_time, t.id
            """,
            (teacher_id,),
        )
        out: List[dict] = []
        for r in rows:
            item = _timetable_row_to_dict(r[:11])
            item["course"] = self.get_course(item["course_id"])
            item["class"] = {"id": item["class_id"], "class_name": r[11]} if r[11] is not None else None
            out.append(item)
        return out

    def list_timetable_for_class(self, class_id: str) -> List[dict]:
        rows = self._all(
            f"select {_TIMETABLE_COLUMNS_SQL} from public.timetable t where t.class_id::text = %s",
            (class_id,),
        )
        return [_timetable_row_to_dict(r) for r in rows]

    def approve_timetable_entry(self, entry_id: str, *, approved_by: str, approved_at: datetime) -> Optional[dict]:
        row = self._one(
            f"""
            update public.timetable as t
               set approval_state = 'APPROVED', approved_by = %s, approved_at = %s
             where t.id::text = %s and t.approval_state = 'PROPOSED'
            returning {_TIMETABLE_COLUMNS_SQL}
            """,
            (approved_by, approved_at, entry_id),
            commit=True,
        )
        return _timetable_row_to_dict(row) if row else None
