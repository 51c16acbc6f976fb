"""
Keycloak Admin client for account provisioning, reset mails and profiles.

Design:
- Framework-agnostic, called by the identity provider facade.
- Uses requests under the hood; every failure is raised as `IdentityError`
  with a provider-neutral code so callers can translate it for the UI.

Security:
- Do not log credentials or tokens.
- Prefer a confidential admin client (client_credentials). The password grant
  is accepted for local development only and refused in prod-like envs.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Optional
import os
import requests

from .errors import IdentityError
from .oidc import OIDCConfig

_TIMEOUT = 10


def _is_prod_like() -> bool:
    return (os.getenv("PORTAL_ENV", "dev") or "").lower() in {"prod", "production", "stage", "staging"}


def _error_text(resp: requests.Response) -> str:
    try:
        body = resp.json() or {}
    except ValueError:
        return ""
    if not isinstance(body, dict):
        return ""
    return str(body.get("errorMessage") or body.get("error_description") or body.get("error") or "").lower()


def _code_for_response(resp: requests.Response, *, default: str) -> str:
    """Map an Admin API error response onto an identity error code."""
    if resp.status_code == 409:
        return "email-already-in-use"
    if resp.status_code == 404:
        return "user-not-found"
    if resp.status_code == 429:
        return "too-many-requests"
    if resp.status_code in (401, 403):
        return "permission-denied"
    if resp.status_code >= 500:
        return "unavailable"
    text = _error_text(resp)
    if "password" in text:
        return "weak-password"
    if "email" in text:
        return "invalid-email"
    return default


class AdminClient:
    def __init__(self, cfg: OIDCConfig) -> None:
        self.cfg = cfg
        self._admin_realm = os.getenv("KC_ADMIN_REALM", "master")
        self._admin_client_id = os.getenv("KC_ADMIN_CLIENT_ID", "school-admin-cli")
        self._admin_client_secret = os.getenv("KC_ADMIN_CLIENT_SECRET")
        self._admin_username = os.getenv("KC_ADMIN_USERNAME")
        self._admin_password = os.getenv("KC_ADMIN_PASSWORD")
        ca = os.getenv("KEYCLOAK_CA_BUNDLE")
        self._verify: str | bool = ca if ca else True

    def _request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        try:
            return requests.request(method, url, timeout=_TIMEOUT, verify=self._verify, **kwargs)
        except requests.RequestException as exc:
            raise IdentityError("network-request-failed") from exc

    def _token(self) -> str:
        """Obtain an admin bearer token (client_credentials preferred)."""
        url = f"{self.cfg.base_url}/realms/{self._admin_realm}/protocol/openid-connect/token"
        if self._admin_client_secret:
            data = {
                "grant_type": "client_credentials",
                "client_id": self._admin_client_id,
                "client_secret": self._admin_client_secret,
            }
        else:
            if _is_prod_like():
                raise IdentityError("permission-denied")
            if not self._admin_username or not self._admin_password:
                raise IdentityError("permission-denied")
            data = {
                "grant_type": "password",
                "client_id": self._admin_client_id,
                "username": self._admin_username,
                "password": self._admin_password,
            }
        r = self._request("POST", url, data=data)
        if r.status_code != 200:
            raise IdentityError(_code_for_response(r, default="permission-denied"))
        tok = (r.json() or {}).get("access_token")
        if not tok:
            raise IdentityError("permission-denied")
        return str(tok)

    def _admin(self, token: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {token}", "Content-Type": "application/json"}

    def create_user(self, *, email: str, password: str, display_name: str | None = None) -> str:
        """Create an enabled, unverified account with a permanent password.

        Returns the new user id (Keycloak `id`, the OIDC `sub`).
        """
        token = self._token()
        url = f"{self.cfg.admin_base}/users"
        payload: Dict[str, Any] = {
            "username": email,
            "email": email,
            "enabled": True,
            "emailVerified": False,
            "credentials": [{"type": "password", "value": password, "temporary": False}],
        }
        if display_name:
            payload["firstName"] = display_name
        r = self._request("POST", url, headers=self._admin(token), json=payload)
        if r.status_code not in (201, 204):
            raise IdentityError(_code_for_response(r, default="invalid-email"))
        # Keycloak answers with Location: .../users/<id>
        location = r.headers.get("Location") or ""
        user_id = location.rstrip("/").rsplit("/", 1)[-1] if "/users/" in location else ""
        if user_id:
            return user_id
        found = self.find_user_by_email(email)
        if not found or not found.get("id"):
            raise IdentityError("user-not-found")
        return str(found["id"])

    def find_user_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        token = self._token()
        url = f"{self.cfg.admin_base}/users"
        r = self._request("GET", url, headers=self._admin(token), params={"email": email, "exact": "true"})
        if r.status_code != 200:
            raise IdentityError(_code_for_response(r, default="unavailable"))
        arr = r.json() or []
        return arr[0] if arr else None

    def update_user(self, *, user_id: str, fields: Dict[str, Any]) -> None:
        token = self._token()
        url = f"{self.cfg.admin_base}/users/{user_id}"
        r = self._request("PUT", url, headers=self._admin(token), json=fields)
        if r.status_code not in (200, 204):
            raise IdentityError(_code_for_response(r, default="unavailable"))

    def execute_actions_email(self, *, user_id: str, actions: Iterable[str]) -> None:
        """Ask Keycloak to mail the user a link for the required actions."""
        token = self._token()
        url = f"{self.cfg.admin_base}/users/{user_id}/execute-actions-email"
        r = self._request(
            "PUT", url, headers=self._admin(token), json=list(actions), params={"client_id": self.cfg.client_id}
        )
        if r.status_code not in (200, 204):
            raise IdentityError(_code_for_response(r, default="unavailable"))

    def send_verify_email(self, *, user_id: str) -> None:
        token = self._token()
        url = f"{self.cfg.admin_base}/users/{user_id}/send-verify-email"
        r = self._request("PUT", url, headers=self._admin(token), params={"client_id": self.cfg.client_id})
        if r.status_code not in (200, 204):
            raise IdentityError(_code_for_response(r, default="unavailable"))
