"""
Client-side form validation for the auth and user management forms.

Every form is validated before any identity provider call; a non-empty error
mapping blocks the submission and is rendered next to the offending fields.
Messages are user-facing.
"""
from __future__ import annotations

import re
from typing import Dict

from identity_access.domain import normalize_role

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
# At least one lowercase letter, one uppercase letter and one digit.
PASSWORD_COMPLEXITY_PATTERN = re.compile(r"(?=.*[a-z])(?=.*[A-Z])(?=.*\d)")
MIN_PASSWORD_LENGTH = 6
MIN_DISPLAY_NAME_LENGTH = 2


def is_valid_email(value: str | None) -> bool:
    return bool(value) and bool(EMAIL_PATTERN.match(value or ""))


def _email_error(email: str) -> str | None:
    if not email.strip():
        return "Email is required"
    if not is_valid_email(email):
        return "Please enter a valid email address"
    return None


def validate_login(email: str, password: str) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    email_err = _email_error(email)
    if email_err:
        errors["email"] = email_err
    if not password:
        errors["password"] = "Password is required"
    elif len(password) < MIN_PASSWORD_LENGTH:
        errors["password"] = "Password must be at least 6 characters"
    return errors


def validate_signup(display_name: str, email: str, password: str, confirm_password: str) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    name = display_name.strip()
    if not name:
        errors["display_name"] = "Full name is required"
    elif len(name) < MIN_DISPLAY_NAME_LENGTH:
        errors["display_name"] = "Full name must be at least 2 characters"

    email_err = _email_error(email)
    if email_err:
        errors["email"] = email_err

    if not password:
        errors["password"] = "Password is required"
    elif len(password) < MIN_PASSWORD_LENGTH:
        errors["password"] = "Password must be at least 6 characters"
    elif not PASSWORD_COMPLEXITY_PATTERN.match(password):
        errors["password"] = (
            "Password must contain at least one uppercase letter, one lowercase letter, and one number"
        )

    if not confirm_password:
        errors["confirm_password"] = "Please confirm your password"
    elif password != confirm_password:
        errors["confirm_password"] = "Passwords do not match"
    return errors


def validate_reset(email: str) -> Dict[str, str]:
    email_err = _email_error(email)
    return {"email": email_err} if email_err else {}


def validate_invite(email: str, display_name: str, role: str) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    email_err = _email_error(email)
    if email_err:
        errors["email"] = email_err
    name = display_name.strip()
    if not name:
        errors["display_name"] = "Display name is required"
    elif len(name) < MIN_DISPLAY_NAME_LENGTH:
        errors["display_name"] = "Display name must be at least 2 characters"
    if normalize_role(role) is None:
        errors["role"] = "Please select a valid role"
    return errors


def validate_display_name(display_name: str) -> Dict[str, str]:
    name = display_name.strip()
    if len(name) < MIN_DISPLAY_NAME_LENGTH:
        return {"display_name": "Full name must be at least 2 characters"}
    return {}
