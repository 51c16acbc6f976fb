"""
Keycloak realm configuration shared by the identity adapters.

Why: Keep endpoint composition in one place so the sign-in client, the admin
client and token verification agree on realm URLs. The web adapter builds one
`OIDCConfig` from the environment at startup (`load_oidc_config`).
"""

from __future__ import annotations

from dataclasses import dataclass
import os


@dataclass(frozen=True)
class OIDCConfig:
    base_url: str  # internal base URL (server-to-server), e.g., http://keycloak:8080
    realm: str  # e.g., school
    client_id: str  # e.g., school-portal
    public_base_url: str | None = None  # browser-facing URL, e.g., https://id.school.example

    @property
    def issuer(self) -> str:
        base = self.public_base_url or self.base_url
        return f"{base}/realms/{self.realm}"

    @property
    def token_endpoint(self) -> str:
        # Token calls happen server-side; use internal base URL
        return f"{self.base_url}/realms/{self.realm}/protocol/openid-connect/token"

    @property
    def logout_endpoint(self) -> str:
        return f"{self.base_url}/realms/{self.realm}/protocol/openid-connect/logout"

    @property
    def certs_endpoint(self) -> str:
        return f"{self.base_url}/realms/{self.realm}/protocol/openid-connect/certs"

    @property
    def admin_base(self) -> str:
        return f"{self.base_url}/admin/realms/{self.realm}"


def load_oidc_config() -> OIDCConfig:
    base_url = os.getenv("KC_BASE_URL", "http://localhost:8080").rstrip("/")
    realm = os.getenv("KC_REALM", "school")
    client_id = os.getenv("KC_CLIENT_ID", "school-portal")
    public_base = (os.getenv("KC_PUBLIC_BASE_URL") or base_url).rstrip("/")
    return OIDCConfig(base_url=base_url, realm=realm, client_id=client_id, public_base_url=public_base)
