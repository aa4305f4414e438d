"""
JWT verification helpers for the identity_access bounded context.

Why: Keep cryptographic validation of bearer tokens outside the web adapter so
we can unit test it independently.

Security: Validates the token signature with the realm's JWKS and checks
issuer, optional audience and expiry. Only signing keys are cached here; role
claims are never cached (see `directory`).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple
import time

import requests
from jose import jwt
from jose.exceptions import JOSEError

from .oidc import OIDCConfig


class TokenVerificationError(Exception):
    """Raised when a bearer token fails verification."""

    def __init__(self, code: str):
        super().__init__(code)
        self.code = code


@dataclass
class _CacheEntry:
    jwks: Dict[str, object]
    expires_at: float


class JWKSCache:
    """Very small in-memory cache for JWKS responses."""

    def __init__(self, ttl_seconds: int = 300):
        self.ttl_seconds = ttl_seconds
        self._entries: Dict[Tuple[str, str], _CacheEntry] = {}

    def _cache_key(self, cfg: OIDCConfig) -> Tuple[str, str]:
        return (cfg.base_url, cfg.realm)

    def get(self, cfg: OIDCConfig) -> Dict[str, object]:
        key = self._cache_key(cfg)
        now = time.time()
        entry = self._entries.get(key)
        if entry and entry.expires_at > now:
            return entry.jwks

        jwks = self._fetch(cfg)
        self._entries[key] = _CacheEntry(jwks=jwks, expires_at=now + self.ttl_seconds)
        return jwks

    def _fetch(self, cfg: OIDCConfig) -> Dict[str, object]:
        try:
            resp = requests.get(cfg.jwks_endpoint, timeout=5, verify=cfg.verify)
        except requests.RequestException as exc:
            raise TokenVerificationError("jwks_fetch_failed") from exc
        if resp.status_code != 200:
            raise TokenVerificationError("jwks_fetch_failed")
        try:
            jwks = resp.json()
        except ValueError as exc:
            raise TokenVerificationError("jwks_invalid") from exc
        if not isinstance(jwks, dict) or "keys" not in jwks:
            raise TokenVerificationError("jwks_invalid")
        return jwks


JWKS_CACHE = JWKSCache()

MAX_CLOCK_SKEW_SECONDS = 5  # Allow minimal skew between servers


def verify_access_token(
    *,
    token: str,
    cfg: OIDCConfig,
    cache: JWKSCache | None = None,
) -> Dict[str, object]:
    """Validate a bearer token using the realm JWKS and return its claims.

    Raises
    ------
    TokenVerificationError:
        When the token is malformed or invalid (signature, issuer, audience,
        expiry, unknown kid) or the JWKS cannot be fetched.
    """
    cache = cache or JWKS_CACHE
    try:
        header = jwt.get_unverified_header(token)
    except JOSEError as exc:
        raise TokenVerificationError("malformed_token") from exc
    kid = header.get("kid")
    if not kid:
        raise TokenVerificationError("missing_kid")
    jwks = cache.get(cfg)
    key_dict = _find_key(jwks, kid)
    if not key_dict:
        raise TokenVerificationError("unknown_kid")

    try:
        claims = jwt.decode(
            token,
            key_dict,
            algorithms=[key_dict.get("alg", "RS256")],
            audience=cfg.audience,
            issuer=cfg.issuer,
            options={
                "verify_signature": True,
                "verify_aud": cfg.audience is not None,
                "verify_exp": False,
                "verify_iat": False,
                "verify_nbf": False,
            },
        )
    except JOSEError as exc:
        raise TokenVerificationError("invalid_token") from exc

    _validate_temporal_claims(claims)
    if not claims.get("sub"):
        raise TokenVerificationError("missing_sub")
    return claims


def _find_key(jwks: Dict[str, object], kid: str) -> Dict[str, object] | None:
    keys = jwks.get("keys")
    if not isinstance(keys, list):
        return None
    for key in keys:
        if isinstance(key, dict) and key.get("kid") == kid:
            return key
    return None


def _validate_temporal_claims(claims: Dict[str, object]) -> None:
    now = time.time()
    exp = claims.get("exp")
    if not isinstance(exp, (int, float)):
        raise TokenVerificationError("invalid_token")
    if exp + MAX_CLOCK_SKEW_SECONDS < now:
        raise TokenVerificationError("token_expired")

    iat = claims.get("iat")
    if isinstance(iat, (int, float)):
        if iat - MAX_CLOCK_SKEW_SECONDS > now:
            raise TokenVerificationError("invalid_token")

    nbf = claims.get("nbf")
    if isinstance(nbf, (int, float)) and nbf - MAX_CLOCK_SKEW_SECONDS > now:
        raise TokenVerificationError("invalid_token")
