"""
Error codes raised by the identity provider adapters and their UI messages.

Adapters raise `IdentityError(code)` with a short, provider-neutral code. The
web layer translates codes through the fixed tables below right where it
catches them and shows the message as an inline alert. Unknown codes fall back
to a generic "try again" message; raw provider responses never reach the UI.
"""

from __future__ import annotations

from typing import Dict


class IdentityError(Exception):
    """Raised when an identity provider call fails."""

    def __init__(self, code: str):
        super().__init__(code)
        self.code = code


AUTH_ERROR_MESSAGES: Dict[str, str] = {
    "user-not-found": "No account found with this email address.",
    "wrong-password": "Incorrect password. Please try again.",
    "email-already-in-use": "An account with this email already exists.",
    "weak-password": "Password should be at least 6 characters long.",
    "invalid-email": "Please enter a valid email address.",
    "user-disabled": "This account has been disabled.",
    "too-many-requests": "Too many failed attempts. Please try again later.",
    "network-request-failed": "Network error. Please check your connection.",
    "invalid-credential": "Invalid email or password. Please try again.",
}
AUTH_DEFAULT_MESSAGE = "An error occurred. Please try again."

USER_MANAGEMENT_ERROR_MESSAGES: Dict[str, str] = {
    "email-already-in-use": "A user with this email already exists.",
    "invalid-email": "Please enter a valid email address.",
    "weak-password": "Password should be at least 6 characters long.",
    "user-not-found": "User not found.",
    "too-many-requests": "Too many requests. Please try again later.",
    "network-request-failed": "Network error. Please check your connection.",
    "permission-denied": "You do not have permission to perform this action.",
    "not-found": "User data not found.",
    "unavailable": "Service temporarily unavailable. Please try again.",
    "invalid-role": "Please select a valid role.",
    "no-pending-request": "This user has no pending role request.",
}
USER_MANAGEMENT_DEFAULT_MESSAGE = "An error occurred while managing users. Please try again."


def _strip_prefix(code: str) -> str:
    # Accept namespaced codes such as "auth/user-not-found".
    return code.split("/", 1)[1] if "/" in code else code


def auth_error_message(code: str | None) -> str:
    return AUTH_ERROR_MESSAGES.get(_strip_prefix(code or ""), AUTH_DEFAULT_MESSAGE)


def user_management_error_message(code: str | None) -> str:
    return USER_MANAGEMENT_ERROR_MESSAGES.get(_strip_prefix(code or ""), USER_MANAGEMENT_DEFAULT_MESSAGE)


__all__ = [
    "IdentityError",
    "auth_error_message",
    "user_management_error_message",
]
