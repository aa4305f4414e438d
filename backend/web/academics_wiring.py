"""
Shared wiring of the academics repository for the teacher and HOD routers.

Why:
    Both routers must see the same persistence (a course reassigned through
    `/v1/hod/assign-teacher` is immediately visible to `/v1/teacher/*`). The
    repository is built lazily so importing the app never touches Postgres;
    tests call `set_repo` to inject an in-memory or fake implementation.

Behavior:
    - `ACADEMICS_REPO=db` (default) prefers `DBAcademicsRepo` and falls back to
      the in-memory repo with a warning when psycopg or the DSN is unusable
      (dev/test only; production refuses the memory backend at startup).
    - `ACADEMICS_REPO=memory` always uses `MemoryAcademicsRepo`.
"""
from __future__ import annotations

import logging

from backend.academics.config import load_academics_config
from backend.academics.operations import AcademicOperations
from backend.academics.repo_memory import MemoryAcademicsRepo

logger = logging.getLogger("edudesk.web")

try:  # late import to avoid hard dependency during unit tests
    from backend.academics.repo_db import DBAcademicsRepo
except ImportError as exc:  # pragma: no cover - import failures in dev/test envs
    DBAcademicsRepo = None  # type: ignore
    _DB_REPO_IMPORT_ERROR: Exception | None = exc
else:
    _DB_REPO_IMPORT_ERROR = None


def _build_default_repo():
    """Prefer the DB-backed repo; fall back to in-memory if unavailable."""
    cfg = load_academics_config()
    if cfg.repo_backend == "memory":
        return MemoryAcademicsRepo()
    if DBAcademicsRepo is None:
        logger.warning("Academics repo import failed: %s", _DB_REPO_IMPORT_ERROR)
        return MemoryAcademicsRepo()
    try:
        return DBAcademicsRepo()
    except RuntimeError as exc:
        logger.warning("Academics repo unavailable (%s); using in-memory fallback", exc)
        return MemoryAcademicsRepo()


_REPO = None


def get_repo():
    global _REPO
    if _REPO is None:
        _REPO = _build_default_repo()
    return _REPO


def set_repo(repo) -> None:
    """Allow tests to swap the academics repository implementation."""
    global _REPO
    _REPO = repo


def get_operations() -> AcademicOperations:
    # Config is re-read per request so env toggles apply without a restart.
    return AcademicOperations(get_repo(), config=load_academics_config())
