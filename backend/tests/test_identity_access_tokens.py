"""
Bearer token verification against a (fake) realm JWKS.

Tokens are HS256-signed with an `oct` JWK so the tests need no key
generation; the verification path is the same as for RS256.
"""
from __future__ import annotations

import base64
import time

import pytest
from jose import jwt

from backend.identity_access import tokens
from backend.identity_access.oidc import OIDCConfig
from backend.identity_access.tokens import JWKSCache, TokenVerificationError, verify_access_token

SECRET = b"super-secret-signing-key-for-tests"
CFG = OIDCConfig(base_url="http://kc.test", realm="edudesk", audience="edudesk-api")


def _jwks(kid: str = "k1") -> dict:
    k = base64.urlsafe_b64encode(SECRET).rstrip(b"=").decode()
    return {"keys": [{"kty": "oct", "kid": kid, "alg": "HS256", "k": k}]}


def _token(**overrides) -> str:
    now = int(time.time())
    claims = {"sub": "user-1", "iss": CFG.issuer, "aud": "edudesk-api", "iat": now, "exp": now + 300}
    claims.update(overrides)
    claims = {k: v for k, v in claims.items() if v is not None}
    return jwt.encode(claims, SECRET, algorithm="HS256", headers={"kid": "k1"})


class _Resp:
    def __init__(self, status_code: int, payload):
        self.status_code = status_code
        self._payload = payload

    def json(self):
        return self._payload


@pytest.fixture
def jwks_endpoint(monkeypatch: pytest.MonkeyPatch):
    calls: list[str] = []

    def fake_get(url, timeout=None, verify=None):
        calls.append(url)
        return _Resp(200, _jwks())

    monkeypatch.setattr(tokens.requests, "get", fake_get)
    return calls


def test_valid_token_returns_claims(jwks_endpoint):
    claims = verify_access_token(token=_token(), cfg=CFG, cache=JWKSCache())
    assert claims["sub"] == "user-1"
    assert jwks_endpoint == ["http://kc.test/realms/edudesk/protocol/openid-connect/certs"]


def test_jwks_is_cached_between_calls(jwks_endpoint):
    cache = JWKSCache()
    verify_access_token(token=_token(), cfg=CFG, cache=cache)
    verify_access_token(token=_token(), cfg=CFG, cache=cache)
    assert len(jwks_endpoint) == 1


@pytest.mark.parametrize(
    "overrides,code",
    [
        ({"iss": "http://evil/realms/edudesk"}, "invalid_token"),
        ({"aud": "someone-else"}, "invalid_token"),
        ({"exp": int(time.time()) - 60}, "token_expired"),
        ({"sub": None}, "missing_sub"),
    ],
)
def test_rejected_claims(jwks_endpoint, overrides, code):
    with pytest.raises(TokenVerificationError) as ei:
        verify_access_token(token=_token(**overrides), cfg=CFG, cache=JWKSCache())
    assert ei.value.code == code


def test_audience_check_skipped_when_not_configured(jwks_endpoint):
    cfg = OIDCConfig(base_url="http://kc.test", realm="edudesk", audience=None)
    claims = verify_access_token(token=_token(aud="anything"), cfg=cfg, cache=JWKSCache())
    assert claims["sub"] == "user-1"


def test_malformed_token(jwks_endpoint):
    with pytest.raises(TokenVerificationError) as ei:
        verify_access_token(token="not-a-jwt", cfg=CFG, cache=JWKSCache())
    assert ei.value.code == "malformed_token"


def test_unknown_kid(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(tokens.requests, "get", lambda url, timeout=None, verify=None: _Resp(200, _jwks("other")))
    with pytest.raises(TokenVerificationError) as ei:
        verify_access_token(token=_token(), cfg=CFG, cache=JWKSCache())
    assert ei.value.code == "unknown_kid"


def test_jwks_outage(monkeypatch: pytest.MonkeyPatch):
    def boom(url, timeout=None, verify=None):
        raise tokens.requests.ConnectionError("down")

    monkeypatch.setattr(tokens.requests, "get", boom)
    with pytest.raises(TokenVerificationError) as ei:
        verify_access_token(token=_token(), cfg=CFG, cache=JWKSCache())
    assert ei.value.code == "jwks_fetch_failed"


def test_public_issuer_with_internal_jwks_fetch(jwks_endpoint):
    split = OIDCConfig(
        base_url="http://keycloak:8080",
        realm="edudesk",
        audience="edudesk-api",
        public_base_url="https://id.example.com",
    )
    token = _token(iss="https://id.example.com/realms/edudesk")
    claims = verify_access_token(token=token, cfg=split, cache=JWKSCache())
    assert claims["sub"] == "user-1"
    assert jwks_endpoint == ["http://keycloak:8080/realms/edudesk/protocol/openid-connect/certs"]
    with pytest.raises(TokenVerificationError):
        verify_access_token(token=_token(iss="http://keycloak:8080/realms/edudesk"), cfg=split, cache=JWKSCache())


def test_load_oidc_config_reads_public_base_url(monkeypatch: pytest.MonkeyPatch):
    from backend.identity_access.oidc import load_oidc_config

    monkeypatch.setenv("KC_BASE_URL", "http://keycloak:8080")
    monkeypatch.setenv("KC_PUBLIC_BASE_URL", "https://id.example.com/")
    cfg = load_oidc_config()
    assert cfg.issuer == "https://id.example.com/realms/edudesk"
    monkeypatch.delenv("KC_PUBLIC_BASE_URL")
    assert load_oidc_config().issuer == "http://keycloak:8080/realms/edudesk"
