"""
Identity provider port used by the web layer and the account workflow.

Keep this small and framework-agnostic so tests can supply simple fakes.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol

from .domain import AuthUser


@dataclass(frozen=True)
class SignInResult:
    """Outcome of a successful sign-in.

    Tokens stay server-side (session record); only `user` is ever rendered.
    """

    user: AuthUser
    refresh_token: Optional[str] = None
    id_token: Optional[str] = None


class IdentityProvider(Protocol):
    """Sign-in/up, reset and profile operations against the identity provider.

    Intent:
        Every method raises `IdentityError(code)` on failure; callers translate
        the code into a user-facing message.
    """

    def sign_in(self, *, email: str, password: str) -> SignInResult: ...

    def sign_up(self, *, email: str, password: str, display_name: str) -> SignInResult: ...

    def sign_out(self, *, refresh_token: Optional[str]) -> None: ...

    def send_password_reset(self, *, email: str) -> None: ...

    def send_verification_email(self, *, uid: str) -> None: ...

    def update_profile(self, *, uid: str, display_name: str) -> None: ...

    def create_account(self, *, email: str, password: str, display_name: str) -> str: ...


__all__ = ["IdentityProvider", "SignInResult"]
