"""
Keycloak-backed identity provider for the portal's email/password forms.

This module is a thin, framework-agnostic adapter used by the web layer:
- `AuthClient` talks to the realm's token and logout endpoints (Direct Grant).
- `KeycloakIdentityProvider` combines it with the Admin API client to offer
  the sign-in, sign-up, sign-out, password reset, verification mail and
  profile operations the portal needs.

Security: Never log credentials. This client does not store or persist any
sensitive data; tokens are handed back to the caller (server-side session).
"""

from __future__ import annotations

from typing import Callable, Dict, Optional
import requests

from .admin_client import AdminClient
from .domain import AuthUser
from .errors import IdentityError
from .oidc import OIDCConfig
from .ports import SignInResult
from .tokens import IDTokenVerificationError, user_from_claims, verify_id_token


def _grant_error_code(resp: requests.Response) -> str:
    """Translate a failed token endpoint response into an identity error code."""
    if resp.status_code == 429:
        return "too-many-requests"
    if resp.status_code >= 500:
        return "network-request-failed"
    try:
        body = resp.json() or {}
    except ValueError:
        body = {}
    description = str(body.get("error_description") or "").lower() if isinstance(body, dict) else ""
    if "disabled" in description:
        return "user-disabled"
    if "temporarily" in description or "locked" in description:
        return "too-many-requests"
    return "invalid-credential"


class AuthClient:
    """Authenticate against Keycloak using the Direct Grant.

    `direct_grant` performs a password grant against the configured realm and
    client. It returns the token dict on success and raises `IdentityError`.
    """

    def __init__(self, cfg: OIDCConfig) -> None:
        self.cfg = cfg

    def direct_grant(self, *, email: str, password: str) -> Dict[str, str]:
        data = {
            "grant_type": "password",
            "client_id": self.cfg.client_id,
            "scope": "openid",
            "username": email,
            "password": password,
        }
        try:
            r = requests.post(self.cfg.token_endpoint, data=data, timeout=10)
        except requests.RequestException as exc:
            raise IdentityError("network-request-failed") from exc
        if r.status_code != 200:
            raise IdentityError(_grant_error_code(r))
        try:
            body = r.json()
        except ValueError as exc:
            raise IdentityError("network-request-failed") from exc
        # Expect id_token to be present for our session creation
        if not isinstance(body, dict) or "id_token" not in body:
            raise IdentityError("invalid-credential")
        return body

    def logout(self, *, refresh_token: str) -> None:
        data = {"client_id": self.cfg.client_id, "refresh_token": refresh_token}
        try:
            r = requests.post(self.cfg.logout_endpoint, data=data, timeout=10)
        except requests.RequestException as exc:
            raise IdentityError("network-request-failed") from exc
        if r.status_code not in (200, 204):
            raise IdentityError("unavailable")


class KeycloakIdentityProvider:
    """Identity provider facade used by the portal (see `ports.IdentityProvider`)."""

    def __init__(
        self,
        cfg: OIDCConfig,
        *,
        auth: AuthClient | None = None,
        admin: AdminClient | None = None,
        verify: Callable[..., Dict[str, object]] = verify_id_token,
    ) -> None:
        self.cfg = cfg
        self.auth = auth or AuthClient(cfg)
        self.admin = admin or AdminClient(cfg)
        self._verify = verify

    def sign_in(self, *, email: str, password: str) -> SignInResult:
        tokens = self.auth.direct_grant(email=email, password=password)
        id_token = tokens["id_token"]
        try:
            claims = self._verify(id_token=id_token, cfg=self.cfg)
            user = user_from_claims(claims)
        except IDTokenVerificationError as exc:
            raise IdentityError("invalid-credential") from exc
        return SignInResult(user=user, refresh_token=tokens.get("refresh_token"), id_token=id_token)

    def sign_up(self, *, email: str, password: str, display_name: str) -> SignInResult:
        uid = self.admin.create_user(email=email, password=password, display_name=display_name)
        self.send_verification_email(uid=uid)
        result = self.sign_in(email=email, password=password)
        if not result.user.display_name:
            # Realms without a name mapper omit the claim; keep the chosen name.
            user = AuthUser(uid=result.user.uid, email=result.user.email, display_name=display_name,
                            email_verified=result.user.email_verified)
            result = SignInResult(user=user, refresh_token=result.refresh_token, id_token=result.id_token)
        return result

    def sign_out(self, *, refresh_token: Optional[str]) -> None:
        if refresh_token:
            self.auth.logout(refresh_token=refresh_token)

    def send_password_reset(self, *, email: str) -> None:
        found = self.admin.find_user_by_email(email)
        if not found or not found.get("id"):
            raise IdentityError("user-not-found")
        self.admin.execute_actions_email(user_id=str(found["id"]), actions=["UPDATE_PASSWORD"])

    def send_verification_email(self, *, uid: str) -> None:
        self.admin.send_verify_email(user_id=uid)

    def update_profile(self, *, uid: str, display_name: str) -> None:
        self.admin.update_user(user_id=uid, fields={"firstName": display_name})

    def create_account(self, *, email: str, password: str, display_name: str) -> str:
        return self.admin.create_user(email=email, password=password, display_name=display_name)
