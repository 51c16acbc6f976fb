"""
Form validation rules for sign-in, sign-up, reset, invite and profile forms.
"""
from __future__ import annotations

import validation  # type: ignore


def test_email_pattern_accepts_plain_addresses_and_rejects_malformed():
    assert validation.is_valid_email("parent@school.org")
    assert validation.is_valid_email("a.b+c@d.co")
    for bad in ("", "no-at-sign", "two@@x.org", "space in@x.org", "user@nodot", None):
        assert not validation.is_valid_email(bad)


def test_login_requires_email_and_password():
    errors = validation.validate_login("", "")
    assert errors == {"email": "Email is required", "password": "Password is required"}


def test_login_rejects_short_password_and_bad_email():
    errors = validation.validate_login("nope", "abc")
    assert errors["email"] == "Please enter a valid email address"
    assert errors["password"] == "Password must be at least 6 characters"


def test_login_does_not_enforce_complexity():
    # Existing accounts may predate the signup password policy.
    assert validation.validate_login("parent@school.org", "simple") == {}


def test_signup_valid_form_has_no_errors():
    assert validation.validate_signup("Ada Lovelace", "ada@school.org", "Secret1", "Secret1") == {}


def test_signup_password_complexity_and_confirmation():
    errors = validation.validate_signup("Ada", "ada@school.org", "lowercase1", "different")
    assert "uppercase" in errors["password"]
    assert errors["confirm_password"] == "Passwords do not match"


def test_signup_name_rules():
    assert validation.validate_signup("  ", "a@b.co", "Secret1", "Secret1")["display_name"] == "Full name is required"
    assert "at least 2" in validation.validate_signup("A", "a@b.co", "Secret1", "Secret1")["display_name"]


def test_signup_missing_confirmation():
    errors = validation.validate_signup("Ada", "a@b.co", "Secret1", "")
    assert errors == {"confirm_password": "Please confirm your password"}


def test_reset_only_checks_email():
    assert validation.validate_reset("a@b.co") == {}
    assert validation.validate_reset("") == {"email": "Email is required"}


def test_invite_requires_known_role():
    errors = validation.validate_invite("t@school.org", "Teacher T", "principal")
    assert errors == {"role": "Please select a valid role"}
    assert validation.validate_invite("t@school.org", "Teacher T", "teacher") == {}


def test_display_name_update():
    assert validation.validate_display_name(" Bo ") == {}
    assert "display_name" in validation.validate_display_name("B")
