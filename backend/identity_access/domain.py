"""
Identity domain constants and simple helpers.

Why:
- Centralize the portal roles to avoid drift between the account workflow,
  the web layer and the user management API.
- Keep the identity-side user record separate from the metadata document that
  carries role and provisioning state.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

PARENT = "PARENT"
TEACHER = "TEACHER"
ADMIN = "ADMIN"

# Immutable to prevent accidental mutation.
ALLOWED_ROLES = frozenset({PARENT, TEACHER, ADMIN})


def normalize_role(value: object) -> Optional[str]:
    """Return the canonical role name for `value` or None when it is not a role.

    Accepts any casing ("admin", "Admin") so form posts and JSON bodies can be
    passed through unchanged.
    """
    if not isinstance(value, str):
        return None
    role = value.strip().upper()
    return role if role in ALLOWED_ROLES else None


@dataclass(frozen=True)
class AuthUser:
    """User as known to the identity provider (no role information)."""

    uid: str
    email: Optional[str]
    display_name: Optional[str]
    email_verified: bool = False

    @property
    def label(self) -> str:
        return self.display_name or self.email or self.uid


__all__ = ["ALLOWED_ROLES", "ADMIN", "PARENT", "TEACHER", "AuthUser", "normalize_role"]
