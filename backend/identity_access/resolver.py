"""
Identity resolution: session token -> Principal (id + role claim).

The web adapter depends only on the `IdentityResolver` protocol; production
wiring uses `KeycloakIdentityResolver`, tests install a fake.
"""
from __future__ import annotations

import logging
from typing import Optional, Protocol

from backend.identity_access.directory import DirectoryError, KeycloakDirectory
from backend.identity_access.domain import ALLOWED_ROLES, Principal, normalize_role_claim
from backend.identity_access.oidc import OIDCConfig
from backend.identity_access.tokens import JWKSCache, TokenVerificationError, verify_access_token

logger = logging.getLogger("edudesk.identity_access")

# Codes that mean "the IdP could not be asked", as opposed to "the caller is not who they claim".
UNAVAILABLE_CODES = frozenset({"idp_unavailable", "jwks_fetch_failed", "jwks_invalid", "admin_credentials_missing", "password_grant_disabled_in_prod"})


class IdentityResolutionError(Exception):
    def __init__(self, code: str):
        super().__init__(code)
        self.code = code

    @property
    def unavailable(self) -> bool:
        return self.code in UNAVAILABLE_CODES


class IdentityResolver(Protocol):
    def resolve(self, session_token: str) -> Principal:
        ...


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Extract the token from an `Authorization: Bearer <token>` header value."""
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer":
        return None
    token = token.strip()
    return token or None


class KeycloakIdentityResolver:
    """Verifies the bearer token, then reads the role attribute fresh from the realm."""

    def __init__(
        self,
        cfg: OIDCConfig,
        directory: Optional[KeycloakDirectory] = None,
        jwks_cache: Optional[JWKSCache] = None,
    ) -> None:
        self.cfg = cfg
        self.directory = directory or KeycloakDirectory(cfg)
        self.jwks_cache = jwks_cache

    def resolve(self, session_token: str) -> Principal:
        if not session_token:
            raise IdentityResolutionError("missing_token")
        try:
            claims = verify_access_token(token=session_token, cfg=self.cfg, cache=self.jwks_cache)
        except TokenVerificationError as exc:
            logger.info("token rejected code=%s", exc.code)
            raise IdentityResolutionError(exc.code) from exc
        sub = str(claims["sub"])
        try:
            raw_role = self.directory.role_claim(sub)
        except DirectoryError as exc:
            if exc.code == "unknown_user":
                logger.info("token subject unknown to directory sub=%s", sub)
            else:
                logger.warning("role lookup failed sub=%s code=%s", sub, exc.code)
            raise IdentityResolutionError(exc.code) from exc
        role = normalize_role_claim(raw_role)
        if role is not None and role not in ALLOWED_ROLES:
            logger.info("unrecognized role claim sub=%s role=%s", sub, role)
        return Principal(id=sub, role=role)
