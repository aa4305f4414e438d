"""
Academics configuration parsing.

Intent:
    One place to read environment variables that select the repository
    backend and switch on the optional uniqueness/overlap rules.

Why:
    Tests can exercise config behaviour without booting the web app, and
    defaults stay explicit (both extra rules are off to match the existing
    behaviour of the records system).
"""
from __future__ import annotations

from dataclasses import dataclass
import os


@dataclass(frozen=True)
class AcademicsConfig:
    repo_backend: str  # "db" | "memory"
    unique_attendance: bool
    timetable_conflicts: bool


def _bool_env(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in {"1", "true", "yes", "on"}:
        return True
    if value in {"0", "false", "no", "off", ""}:
        return False
    raise ValueError(f"{name} must be a boolean, got: {raw!r}")


def _is_prod_like() -> bool:
    env = (os.getenv("EDUDESK_ENV") or "dev").lower()
    return env in {"prod", "production", "stage", "staging"}


def load_academics_config() -> AcademicsConfig:
    """Parse and validate academics configuration from the environment.

    Behavior:
        - `ACADEMICS_REPO` selects "db" (default) or "memory".
        - "memory" is refused in production/staging.
        - `EDUDESK_UNIQUE_ATTENDANCE` / `EDUDESK_TIMETABLE_CONFLICTS` default to false.
    """
    backend = (os.getenv("ACADEMICS_REPO") or "db").strip().lower()
    if backend not in {"db", "memory"}:
        raise ValueError("ACADEMICS_REPO must be 'db' or 'memory'")
    if backend == "memory" and _is_prod_like():
        raise ValueError("ACADEMICS_REPO=memory is not allowed in production/staging environments.")
    return AcademicsConfig(
        repo_backend=backend,
        unique_attendance=_bool_env("EDUDESK_UNIQUE_ATTENDANCE"),
        timetable_conflicts=_bool_env("EDUDESK_TIMETABLE_CONFLICTS"),
    )
