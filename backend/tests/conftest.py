"""
Pytest configuration for backend tests.

Why: Force AnyIO to use the asyncio backend to avoid sandbox restrictions
that can affect the Trio backend (e.g., socketpair permission errors), and
reset the process-wide singletons (academics repo, identity resolver) so tests
never leak state into each other.
"""
import sys
from pathlib import Path
from typing import Dict

import pytest

# Ensure the repository root is importable (`backend.*` namespace packages)
REPO_ROOT = Path(__file__).resolve().parents[2]
TESTS_DIR = REPO_ROOT / "backend" / "tests"
for p in (str(REPO_ROOT), str(TESTS_DIR)):
    if p not in sys.path:
        sys.path.insert(0, p)

from backend.academics.repo_memory import MemoryAcademicsRepo  # noqa: E402
from backend.identity_access.domain import Principal  # noqa: E402
from backend.identity_access.resolver import IdentityResolutionError  # noqa: E402


class FakeIdentityResolver:
    """Token -> Principal table standing in for the identity provider.

    Tokens not in the table are rejected as invalid; the token "idp-down"
    simulates an unreachable provider.
    """

    def __init__(self) -> None:
        self.principals: Dict[str, Principal] = {}
        self.calls: list[str] = []

    def add(self, token: str, user_id: str, role: str | None) -> Principal:
        principal = Principal(id=user_id, role=role)
        self.principals[token] = principal
        return principal

    def resolve(self, session_token: str) -> Principal:
        self.calls.append(session_token)
        if session_token == "idp-down":
            raise IdentityResolutionError("idp_unavailable")
        principal = self.principals.get(session_token)
        if principal is None:
            raise IdentityResolutionError("invalid_token")
        return principal


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def _clear_edudesk_env(monkeypatch: pytest.MonkeyPatch):
    """Start each test from development defaults.

    Individual tests opt into prod semantics or feature toggles explicitly.
    """
    for var in (
        "EDUDESK_ENV",
        "EDUDESK_ERROR_STATUS",
        "EDUDESK_UNIQUE_ATTENDANCE",
        "EDUDESK_TIMETABLE_CONFLICTS",
        "EDUDESK_FRONTEND_URL",
        "ALLOW_SERVICE_DSN_FOR_TESTING",
        "KC_ADMIN_USERNAME",
        "KC_ADMIN_PASSWORD",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("ACADEMICS_REPO", "memory")
    yield


@pytest.fixture
def repo() -> MemoryAcademicsRepo:
    """A fresh in-memory repository installed behind the web routers."""
    from backend.web import academics_wiring

    mem = MemoryAcademicsRepo()
    academics_wiring.set_repo(mem)
    yield mem
    academics_wiring.set_repo(None)


@pytest.fixture
def resolver() -> FakeIdentityResolver:
    """A fake identity resolver installed in the app's auth middleware."""
    import backend.web.main as main

    fake = FakeIdentityResolver()
    main.set_identity_resolver(fake)
    yield fake
    main.set_identity_resolver(None)
