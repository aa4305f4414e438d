"""
Configuration and startup security checks for EduDesk.

Why: Records of students (attendance, grades) must not be served from an
insecure deployment by accident. This module provides a single guard that
enforces minimal production safety constraints without burdening local
development, plus the small web-level settings loader.

Permissions: The caller needs no special privileges. The functions simply read
environment variables; the guard raises `SystemExit` on fatal misconfiguration.
"""
from __future__ import annotations

from dataclasses import dataclass
import os

ERROR_STATUS_MODES = ("flat", "typed")


@dataclass(frozen=True)
class WebConfig:
    error_status: str  # "flat" | "typed"


def load_web_config() -> WebConfig:
    """Parse `EDUDESK_ERROR_STATUS` (default "flat")."""
    mode = (os.getenv("EDUDESK_ERROR_STATUS") or "flat").strip().lower()
    if mode not in ERROR_STATUS_MODES:
        raise ValueError("EDUDESK_ERROR_STATUS must be 'flat' or 'typed'")
    return WebConfig(error_status=mode)


DEV_FRONTEND_ORIGINS = ("http://localhost:3000", "http://localhost:5173")


def load_cors_origins() -> list[str]:
    """Browser origins allowed to call the API with credentials.

    `EDUDESK_FRONTEND_URL` holds one origin or a comma-separated list. Without
    it, dev allows the local frontend dev servers and production allows none.
    """
    raw = (os.getenv("EDUDESK_FRONTEND_URL") or "").strip()
    if raw:
        return [o.strip().rstrip("/") for o in raw.split(",") if o.strip()]
    if _is_prod_like(os.getenv("EDUDESK_ENV", "dev")):
        return []
    return list(DEV_FRONTEND_ORIGINS)


def _is_prod_like(env: str) -> bool:
    env_l = (env or "").lower()
    return env_l in {"prod", "production", "stage", "staging"}


def ensure_secure_config_on_startup() -> None:
    """Fail fast on insecure production configuration.

    Intent: Abort process startup when obviously insecure settings are detected
    in production/staging. Development remains permissive for convenience.

    Checks:
    - KC_ADMIN_CLIENT_SECRET must be set (role claims are read via the admin
      API; the password grant is dev only).
    - KC_BASE_URL must use https.
    - ACADEMICS_REPO must not be "memory".
    - EDUDESK_ERROR_STATUS must be a known mode.
    - EDUDESK_FRONTEND_URL must not be a wildcard (credentials are allowed).
    - Database DSNs must not explicitly disable TLS.
    """

    env = os.getenv("EDUDESK_ENV", "dev")
    if not _is_prod_like(env):
        return  # dev/test remain permissive

    # 1) Keycloak admin client secret must be configured (no password grant in prod)
    kc_secret = (os.getenv("KC_ADMIN_CLIENT_SECRET", "") or "").strip()
    if not kc_secret or kc_secret.upper().startswith("CHANGE_ME"):
        raise SystemExit(
            "Refusing to start: KC_ADMIN_CLIENT_SECRET is unset or a placeholder in production."
        )

    # 2) Keycloak endpoint must use HTTPS
    kc_base = (os.getenv("KC_BASE_URL", "") or "").strip().lower()
    if kc_base.startswith("http://"):
        raise SystemExit("Refusing to start: KC_BASE_URL must use https in production (got http).")

    # 3) In-memory records would be lost on restart
    if (os.getenv("ACADEMICS_REPO") or "db").strip().lower() == "memory":
        raise SystemExit("Refusing to start: ACADEMICS_REPO=memory is not allowed in production/staging.")

    try:
        load_web_config()
    except ValueError as exc:
        raise SystemExit(f"Refusing to start: {exc}")

    if "*" in load_cors_origins():
        raise SystemExit("Refusing to start: EDUDESK_FRONTEND_URL must list explicit origins in production.")

    # 4) Postgres TLS
    for key in ("ACADEMICS_DATABASE_URL", "DATABASE_URL"):
        val = os.getenv(key, "")
        if not val:
            continue
        if "sslmode=disable" in val:
            raise SystemExit(
                f"Refusing to start: {key} contains sslmode=disable in production. Use sslmode=require or verify TLS."
            )