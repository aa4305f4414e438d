"EduDesk academic records API"
from __future__ import annotations

import logging
import os
import sys

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from backend.identity_access.oidc import load_oidc_config
from backend.identity_access.resolver import (
    IdentityResolutionError,
    IdentityResolver,
    KeycloakIdentityResolver,
    bearer_token,
)
from backend.web import config as _cfg
from backend.web.routes.hod import hod_router
from backend.web.routes.responses import PRIVATE_HEADERS, error_status_for, private_error
from backend.web.routes.teacher import teacher_router


def _should_load_dotenv() -> bool:
    """Decide if we should load a local .env file.

    - Never load under pytest to avoid contaminating test env.
    - Allow explicit opt-out/opt-in via EDUDESK_ENABLE_DOTENV (default true
      outside pytest).
    """
    if "pytest" in sys.modules or os.getenv("PYTEST_CURRENT_TEST"):
        return False
    flag = (os.getenv("EDUDESK_ENABLE_DOTENV", "true") or "").strip().lower()
    return flag in ("1", "true", "yes")


if _should_load_dotenv():
    from dotenv import load_dotenv

    load_dotenv()

# Minimal production safety checks (fail-fast on insecure config)
_cfg.ensure_secure_config_on_startup()

logger = logging.getLogger("edudesk.identity_access")

app = FastAPI(title="EduDesk", description="Role-scoped academic records API", version="0.1.0")

# --- Identity resolution ---------------------------------------------------------

_IDENTITY_RESOLVER: IdentityResolver | None = None


def get_identity_resolver() -> IdentityResolver:
    global _IDENTITY_RESOLVER
    if _IDENTITY_RESOLVER is None:
        _IDENTITY_RESOLVER = KeycloakIdentityResolver(load_oidc_config())
    return _IDENTITY_RESOLVER


def set_identity_resolver(resolver: IdentityResolver | None) -> None:
    """Allow tests to swap the identity resolver (None restores the default)."""
    global _IDENTITY_RESOLVER
    _IDENTITY_RESOLVER = resolver


def _is_public_path(path: str) -> bool:
    return path in ("/health", "/docs", "/openapi.json", "/favicon.ico")


@app.middleware("http")
async def auth_enforcement(request: Request, call_next):
    path = request.url.path
    if _is_public_path(path):
        return await call_next(request)

    token = bearer_token(request.headers.get("authorization"))
    if not token:
        return private_error({"error": "unauthenticated"}, status_code=401)
    try:
        principal = get_identity_resolver().resolve(token)
    except IdentityResolutionError as exc:
        if exc.unavailable:
            logger.warning("Identity provider unavailable: %s", exc.code)
            return private_error({"error": "identity_unavailable", "detail": exc.code}, status_code=503)
        return private_error({"error": "unauthenticated", "detail": exc.code}, status_code=401)

    # Expose the read-only principal for downstream handlers.
    request.state.principal = principal
    return await call_next(request)


# Outermost middleware: preflights skip auth and 401/503 responses carry CORS headers.
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cfg.load_cors_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


@app.exception_handler(RequestValidationError)
async def invalid_payload(request: Request, exc: RequestValidationError):
    # Malformed bodies use the same envelope as service-level input errors.
    return JSONResponse(
        {"error": "invalid_input", "detail": "invalid_payload", "message": "invalid payload"},
        status_code=error_status_for("invalid_input"),
        headers=dict(PRIVATE_HEADERS),
    )


@app.get("/health")
async def health():
    return {"status": "healthy", "service": "edudesk"}


app.include_router(teacher_router)
app.include_router(hod_router)
