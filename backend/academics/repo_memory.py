"""
In-memory persistence for the academics context.

Why:
    Unit and API tests (and offline local work) need a repository that honours
    the same contract as `DBAcademicsRepo` without Postgres. Records are kept
    as dataclasses and returned as plain dicts so callers never mutate state
    by accident.

Notes:
    Seeding helpers (`add_user`, `add_course`, `add_class`, `add_exam`,
    `add_submission`) stand in for the parts of the system that create those
    rows elsewhere.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Dict, List, Optional
from uuid import uuid4


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _iso(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat()


@dataclass
class UserData:
    id: str
    first_name: str
    last_name: str
    email: str
    role: str
    department_id: Optional[str]
    profile_img: Optional[str]
    created_at: str
    updated_at: str


@dataclass
class CourseData:
    id: str
    name: str
    code: Optional[str]
    department_id: Optional[str]
    teacher_id: Optional[str]
    created_at: str
    updated_at: str


@dataclass
class ClassData:
    id: str
    class_name: str


@dataclass
class AttendanceData:
    id: str
    student_id: str
    class_id: str
    course_id: str
    status: str
    date: str


@dataclass
class ExamData:
    id: str
    course_id: str
    title: str
    total_marks: float


@dataclass
class ResultData:
    id: str
    student_id: str
    exam_id: str
    marks: float
    grade: str
    created_at: str


@dataclass
class AssignmentData:
    id: str
    title: str
    course_id: str
    teacher_id: str
    due_date: str
    created_at: str


@dataclass
class SubmissionData:
    id: str
    assignment_id: str
    student_id: str
    file_url: Optional[str]
    submitted_at: str


@dataclass
class MaterialData:
    id: str
    title: str
    file_url: str
    type: str
    teacher_id: str
    course_id: str
    created_at: str


@dataclass
class TimetableData:
    id: str
    day: str
    start_time: str
    end_time: str
    class_id: str
    course_id: str
    teacher_id: str
    approval_state: str
    approved_by: Optional[str]
    approved_at: Optional[str]
    created_at: str


class MemoryAcademicsRepo:
    def __init__(self) -> None:
        self.users: Dict[str, UserData] = {}
        self.courses: Dict[str, CourseData] = {}
        self.classes: Dict[str, ClassData] = {}
        self.attendance: Dict[str, AttendanceData] = {}
        self.exams: Dict[str, ExamData] = {}
        self.results: Dict[str, ResultData] = {}
        self.assignments: Dict[str, AssignmentData] = {}
        self.submissions: Dict[str, SubmissionData] = {}
        self.materials: Dict[str, MaterialData] = {}
        self.timetable: Dict[str, TimetableData] = {}

    # --- Seeding -----------------------------------------------------------------
    def add_user(
        self,
        *,
        role: str,
        first_name: str = "",
        last_name: str = "",
        email: str = "",
        department_id: Optional[str] = None,
        profile_img: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> dict:
        now = _now_iso()
        user = UserData(
            id=user_id or str(uuid4()),
            first_name=first_name,
            last_name=last_name,
            email=email,
            role=role.upper(),
            department_id=department_id,
            profile_img=profile_img,
            created_at=now,
            updated_at=now,
        )
        self.users[user.id] = user
        return asdict(user)

    def add_course(
        self,
        *,
        name: str,
        teacher_id: Optional[str] = None,
        code: Optional[str] = None,
        department_id: Optional[str] = None,
        course_id: Optional[str] = None,
    ) -> dict:
        now = _now_iso()
        course = CourseData(
            id=course_id or str(uuid4()),
            name=name,
            code=code,
            department_id=department_id,
            teacher_id=teacher_id,
            created_at=now,
            updated_at=now,
        )
        self.courses[course.id] = course
        return asdict(course)

    def add_class(self, *, class_name: str, class_id: Optional[str] = None) -> dict:
        klass = ClassData(id=class_id or str(uuid4()), class_name=class_name)
        self.classes[klass.id] = klass
        return asdict(klass)

    def add_exam(self, *, course_id: str, total_marks: float, title: str = "Exam", exam_id: Optional[str] = None) -> dict:
        exam = ExamData(id=exam_id or str(uuid4()), course_id=course_id, title=title, total_marks=total_marks)
        self.exams[exam.id] = exam
        return asdict(exam)

    def add_submission(self, *, assignment_id: str, student_id: str, file_url: Optional[str] = None) -> dict:
        sub = SubmissionData(
            id=str(uuid4()),
            assignment_id=assignment_id,
            student_id=student_id,
            file_url=file_url,
            submitted_at=_now_iso(),
        )
        self.submissions[sub.id] = sub
        return asdict(sub)

    # --- Users & courses ---------------------------------------------------------
    def get_user(self, user_id: str) -> Optional[dict]:
        user = self.users.get(user_id)
        return asdict(user) if user else None

    def list_users_by_role(self, role: str) -> List[dict]:
        items = [u for u in self.users.values() if u.role == role.upper()]
        items.sort(key=lambda u: (u.last_name.lower(), u.first_name.lower(), u.id))
        return [asdict(u) for u in items]

    def get_course(self, course_id: str) -> Optional[dict]:
        course = self.courses.get(course_id)
        return asdict(course) if course else None

    def assign_course_teacher(self, course_id: str, teacher_id: str) -> Optional[dict]:
        course = self.courses.get(course_id)
        if not course:
            return None
        course.teacher_id = teacher_id
        course.updated_at = _now_iso()
        return asdict(course)

    def _student_summary(self, student_id: str) -> Optional[dict]:
        user = self.users.get(student_id)
        if not user:
            return None
        return {"id": user.id, "first_name": user.first_name, "last_name": user.last_name}

    def _class_summary(self, class_id: str) -> Optional[dict]:
        klass = self.classes.get(class_id)
        return asdict(klass) if klass else None

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
        row = AttendanceData(
            id=str(uuid4()),
            student_id=student_id,
            class_id=class_id,
            course_id=course_id,
            status=status,
            date=_iso(date),
        )
        self.attendance[row.id] = row
        return asdict(row)

    def list_attendance_for_course(self, course_id: str) -> List[dict]:
        rows = [a for a in self.attendance.values() if a.course_id == course_id]
        rows.sort(key=lambda a: a.date, reverse=True)
        out = []
        for a in rows:
            item = asdict(a)
            item["student"] = self._student_summary(a.student_id)
            item["class"] = self._class_summary(a.class_id)
            out.append(item)
        return out

    def attendance_exists(self, *, student_id: str, course_id: str, date: datetime) -> bool:
        day = date.astimezone(timezone.utc).date()
        for a in self.attendance.values():
            if a.student_id != student_id or a.course_id != course_id:
                continue
            if datetime.fromisoformat(a.date).astimezone(timezone.utc).date() == day:
                return True
        return False

    # --- Exams & results ---------------------------------------------------------
    def get_exam(self, exam_id: str) -> Optional[dict]:
        exam = self.exams.get(exam_id)
        return asdict(exam) if exam else None

    def create_result(self, *, student_id: str, exam_id: str, marks: float, grade: str) -> dict:
        row = ResultData(
            id=str(uuid4()),
            student_id=student_id,
            exam_id=exam_id,
            marks=marks,
            grade=grade,
            created_at=_now_iso(),
        )
        self.results[row.id] = row
        return asdict(row)

    # --- Assignments -------------------------------------------------------------
    def create_assignment(self, *, title: str, course_id: str, teacher_id: str, due_date: datetime) -> dict:
        row = AssignmentData(
            id=str(uuid4()),
            title=title,
            course_id=course_id,
            teacher_id=teacher_id,
            due_date=_iso(due_date),
            created_at=_now_iso(),
        )
        self.assignments[row.id] = row
        return asdict(row)

    def get_assignment_detail(self, assignment_id: str) -> Optional[dict]:
        assignment = self.assignments.get(assignment_id)
        if not assignment:
            return None
        detail = asdict(assignment)
        detail["course"] = self.get_course(assignment.course_id)
        detail["teacher"] = self.get_user(assignment.teacher_id)
        subs = [s for s in self.submissions.values() if s.assignment_id == assignment_id]
        subs.sort(key=lambda s: s.submitted_at)
        detail["submissions"] = [
            {**asdict(s), "student": self.get_user(s.student_id)} for s in subs
        ]
        return detail

    # --- Materials ---------------------------------------------------------------
    def create_material(self, *, title: str, file_url: str, type: str, teacher_id: str, course_id: str) -> dict:
        row = MaterialData(
            id=str(uuid4()),
            title=title,
            file_url=file_url,
            type=type,
            teacher_id=teacher_id,
            course_id=course_id,
            created_at=_now_iso(),
        )
        self.materials[row.id] = row
        return asdict(row)

    def get_material(self, material_id: str) -> Optional[dict]:
        material = self.materials.get(material_id)
        return asdict(material) if material else None

    def delete_material(self, material_id: str) -> Optional[dict]:
        material = self.materials.pop(material_id, None)
        return asdict(material) if material else None

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
        row = TimetableData(
            id=str(uuid4()),
            day=day,
            start_time=_iso(start_time),
            end_time=_iso(end_time),
            class_id=class_id,
            course_id=course_id,
            teacher_id=teacher_id,
            approval_state=approval_state,
            approved_by=None,
            approved_at=None,
            created_at=_now_iso(),
        )
        self.timetable[row.id] = row
        return asdict(row)

    def get_timetable_entry(self, entry_id: str) -> Optional[dict]:
        entry = self.timetable.get(entry_id)
        return asdict(entry) if entry else None

    def list_timetable_for_teacher(self, teacher_id: str) -> List[dict]:
        out = []
        for entry in self.timetable.values():
            if entry.teacher_id != teacher_id:
                continue
            item = asdict(entry)
            item["course"] = self.get_course(entry.course_id)
            item["class"] = self._class_summary(entry.class_id)
            out.append(item)
        return out

    def list_timetable_for_class(self, class_id: str) -> List[dict]:
        return [asdict(e) for e in self.timetable.values() if e.class_id == class_id]

    def approve_timetable_entry(self, entry_id: str, *, approved_by: str, approved_at: datetime) -> Optional[dict]:
        entry = self.timetable.get(entry_id)
        if not entry:
            return None
        entry.approval_state = "APPROVED"
        entry.approved_by = approved_by
        entry.approved_at = _iso(approved_at)
        return asdict(entry)
