"""
Driver errors caused by caller input surface as academics errors.

A fake `psycopg.connect` stands in for the database: selects on courses return
an owned course, inserts raise an exception carrying a Postgres sqlstate.
"""
from __future__ import annotations

from types import SimpleNamespace

import httpx
import pytest
from httpx import ASGITransport

from backend.academics import repo_db
from backend.academics.errors import ConflictError, InvalidInputError, NotFoundError
from backend.web import academics_wiring, main

COURSE_ROW = ("c1", "History", "HIS", None, "t1", None, None)


class _PgError(Exception):
    def __init__(self, sqlstate: str):
        super().__init__(f"sqlstate {sqlstate}")
        self.sqlstate = sqlstate


class _FakeCursor:
    def __init__(self, insert_error: Exception | None):
        self.insert_error = insert_error
        self._row = None

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def execute(self, sql, params):
        if "insert into" in sql and self.insert_error is not None:
            raise self.insert_error
        self._row = COURSE_ROW if "from public.courses" in sql else None

    def fetchone(self):
        return self._row

    def fetchall(self):
        return []


class _FakeConn:
    def __init__(self, insert_error: Exception | None):
        self.insert_error = insert_error
        self.rolled_back = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, *exc):
        self.rolled_back = exc_type is not None
        return False

    def cursor(self):
        return _FakeCursor(self.insert_error)

    def commit(self):
        pass


@pytest.fixture
def db_repo(monkeypatch: pytest.MonkeyPatch):
    state = SimpleNamespace(insert_error=None, conns=[])

    def fake_connect(dsn):
        conn = _FakeConn(state.insert_error)
        state.conns.append(conn)
        return conn

    monkeypatch.setattr(repo_db, "HAVE_PSYCOPG", True)
    monkeypatch.setattr(repo_db, "psycopg", SimpleNamespace(connect=fake_connect))
    repo = repo_db.DBAcademicsRepo(dsn="postgresql://edudesk_limited:pw@localhost:5432/postgres")
    return repo, state


def _attendance(repo):
    return repo.create_attendance(
        student_id="s1", class_id="k1", course_id="c1", status="PRESENT", date=None
    )


@pytest.mark.parametrize(
    "sqlstate,error_cls,code",
    [
        ("22P02", InvalidInputError, "invalid_id"),
        ("23503", NotFoundError, "reference_not_found"),
        ("23505", ConflictError, "duplicate_record"),
        ("23514", InvalidInputError, "constraint_violation"),
    ],
)
def test_input_related_sqlstates_are_translated(db_repo, sqlstate, error_cls, code):
    repo, state = db_repo
    state.insert_error = _PgError(sqlstate)
    with pytest.raises(error_cls) as ei:
        _attendance(repo)
    assert ei.value.code == code
    assert isinstance(ei.value.__cause__, _PgError)
    assert state.conns[-1].rolled_back is True


def test_other_driver_errors_propagate_unchanged(db_repo):
    repo, state = db_repo
    state.insert_error = _PgError("08006")
    with pytest.raises(_PgError):
        _attendance(repo)


def test_real_psycopg_error_classes_are_recognised(db_repo):
    errors = pytest.importorskip("psycopg.errors")
    repo, state = db_repo
    state.insert_error = errors.ForeignKeyViolation("insert violates foreign key")
    with pytest.raises(NotFoundError):
        _attendance(repo)
    state.insert_error = errors.InvalidTextRepresentation("invalid input syntax for type uuid")
    with pytest.raises(InvalidInputError):
        _attendance(repo)


@pytest.mark.anyio("asyncio")
async def test_non_uuid_class_id_returns_failure_envelope(db_repo, resolver):
    repo, state = db_repo
    state.insert_error = _PgError("22P02")
    resolver.add("tok-t1", "t1", "TEACHER")
    academics_wiring.set_repo(repo)
    try:
        async with httpx.AsyncClient(transport=ASGITransport(app=main.app), base_url="http://test") as c:
            r = await c.post(
                "/v1/teacher/attendance",
                json={"studentId": "s1", "classId": "k1", "courseId": "c1", "status": "PRESENT"},
                headers={"Authorization": "Bearer tok-t1"},
            )
    finally:
        academics_wiring.set_repo(None)
    assert r.status_code == 422
    assert r.json() == {"error": "invalid_input", "detail": "invalid_id", "message": "Identifier is not valid"}
