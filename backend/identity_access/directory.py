"""
Directory adapter for role claims (Keycloak Admin API).

Why:
    Route-class authorization reads the caller's role from identity-provider
    metadata (a single-valued user attribute). The claim is fetched on every
    request so role changes made in the IdP take effect immediately; nothing
    here caches it.

Security:
    - Uses admin credentials from environment to obtain a bearer token.
    - Do not log credentials or tokens.
    - Intended for server-side use only.
"""
from __future__ import annotations

from typing import Dict, Optional
import os

import requests

from backend.identity_access.oidc import OIDCConfig


class DirectoryError(Exception):
    """Raised when the directory cannot answer a lookup.

    `code` is one of: "unknown_user", "idp_unavailable", "admin_credentials_missing",
    "password_grant_disabled_in_prod".
    """

    def __init__(self, code: str):
        super().__init__(code)
        self.code = code


def _get_attr(u: dict, key: str) -> str:
    """Fetch a single-valued Keycloak user attribute from `attributes`.

    Keycloak exposes attributes as { key: [values...] }. We return the first string.
    """
    attrs = u.get("attributes") or {}
    if not isinstance(attrs, dict):
        return ""
    vals = attrs.get(key)
    if isinstance(vals, list) and vals:
        return str(vals[0] or "").strip()
    if isinstance(vals, str):
        return vals.strip()
    return ""


class KeycloakDirectory:
    def __init__(self, cfg: OIDCConfig) -> None:
        self.cfg = cfg
        # Legacy fallback (password grant); dev only
        self.admin_username = os.getenv("KC_ADMIN_USERNAME")
        self.admin_password = os.getenv("KC_ADMIN_PASSWORD")

    def token(self) -> str:
        """Obtain an admin bearer token.

        Prefers OAuth2 client_credentials using a confidential client. Falls
        back to the password grant only when username/password are set and no
        client secret is configured. Never in production-like environments.
        """
        if self.cfg.admin_client_secret:
            data = {
                "grant_type": "client_credentials",
                "client_id": self.cfg.admin_client_id,
                "client_secret": self.cfg.admin_client_secret,
            }
        else:
            env = (os.getenv("EDUDESK_ENV", "dev") or "").lower()
            if env in {"prod", "production", "stage", "staging"}:
                raise DirectoryError("password_grant_disabled_in_prod")
            if not self.admin_username or not self.admin_password:
                raise DirectoryError("admin_credentials_missing")
            data = {
                "grant_type": "password",
                "client_id": self.cfg.admin_client_id,
                "username": self.admin_username,
                "password": self.admin_password,
            }
        try:
            r = requests.post(self.cfg.admin_token_endpoint, data=data, timeout=10, verify=self.cfg.verify)
            r.raise_for_status()
            tok = (r.json() or {}).get("access_token")
        except (requests.RequestException, ValueError) as exc:
            raise DirectoryError("idp_unavailable") from exc
        if not tok:
            raise DirectoryError("idp_unavailable")
        return str(tok)

    def hdr(self, token: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {token}", "Content-Type": "application/json"}

    def role_claim(self, user_id: str) -> Optional[str]:
        """Return the raw role attribute of `user_id`, or None when unset.

        Raises DirectoryError("unknown_user") when the IdP has no such user.
        """
        token = self.token()
        try:
            r = requests.get(
                self.cfg.admin_user_url(user_id),
                headers=self.hdr(token),
                timeout=10,
                verify=self.cfg.verify,
            )
        except requests.RequestException as exc:
            raise DirectoryError("idp_unavailable") from exc
        if r.status_code == 404:
            raise DirectoryError("unknown_user")
        if r.status_code >= 400:
            raise DirectoryError("idp_unavailable")
        try:
            u = r.json() or {}
        except ValueError as exc:
            raise DirectoryError("idp_unavailable") from exc
        value = _get_attr(u, self.cfg.role_attribute)
        return value or None
