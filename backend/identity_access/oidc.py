"""
OIDC realm configuration for the identity provider (Keycloak).

Why: The backend never runs the login flow itself; it only verifies bearer
tokens issued by the realm and asks the realm's admin API for role claims.
Both need the same base URL / realm / audience, so the values are parsed in
one place.
"""

from __future__ import annotations

from dataclasses import dataclass
import os


@dataclass(frozen=True)
class OIDCConfig:
    base_url: str  # internal base URL (server-to-server), e.g., http://keycloak:8080
    realm: str  # e.g., edudesk
    audience: str | None = None  # expected `aud` of access tokens; None skips the check
    admin_realm: str = "master"
    admin_client_id: str = "edudesk-admin-cli"
    admin_client_secret: str | None = None
    role_attribute: str = "role"  # user attribute holding the single role claim
    ca_bundle: str | None = None
    public_base_url: str | None = None  # browser-facing URL; tokens carry it in `iss`

    @property
    def issuer(self) -> str:
        base = self.public_base_url or self.base_url
        return f"{base}/realms/{self.realm}"

    @property
    def jwks_endpoint(self) -> str:
        # Keys are fetched server-side; use internal base URL
        return f"{self.base_url}/realms/{self.realm}/protocol/openid-connect/certs"

    @property
    def admin_token_endpoint(self) -> str:
        return f"{self.base_url}/realms/{self.admin_realm}/protocol/openid-connect/token"

    def admin_user_url(self, user_id: str) -> str:
        return f"{self.base_url}/admin/realms/{self.realm}/users/{user_id}"

    @property
    def verify(self) -> str | bool:
        # Honor CA bundle in production environments; default to system CAs
        return self.ca_bundle if self.ca_bundle else True


def load_oidc_config() -> OIDCConfig:
    return OIDCConfig(
        base_url=os.getenv("KC_BASE_URL", "http://localhost:8080").rstrip("/"),
        realm=os.getenv("KC_REALM", "edudesk"),
        audience=(os.getenv("KC_AUDIENCE") or None),
        admin_realm=os.getenv("KC_ADMIN_REALM", "master"),
        admin_client_id=os.getenv("KC_ADMIN_CLIENT_ID", "edudesk-admin-cli"),
        admin_client_secret=(os.getenv("KC_ADMIN_CLIENT_SECRET") or None),
        role_attribute=os.getenv("KC_ROLE_ATTRIBUTE", "role"),
        ca_bundle=(os.getenv("KEYCLOAK_CA_BUNDLE") or None),
        public_base_url=(os.getenv("KC_PUBLIC_BASE_URL") or "").rstrip("/") or None,
    )
