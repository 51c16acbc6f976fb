"""
Helpers for route tests: an HTTPS test client and seeded sessions.

Session cookies are always `Secure`, so the client talks to `https://test`.
Sessions are opened through the portal context (same path as a real
sign-in) and attached to the client's cookie jar.
"""
from __future__ import annotations

import re
from typing import Optional

import httpx
from httpx import ASGITransport

import main  # type: ignore
from auth_utils import SESSION_COOKIE_NAME  # type: ignore
from identity_access.stores import SessionRecord
from routes.security import csrf_token_for  # type: ignore
from utils.fakes import FakeAccount

_CSRF_FIELD = re.compile(r'name="csrf_token" value="([^"]+)"')


def portal():
    return main.app.state.portal


def client() -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=ASGITransport(app=main.app), base_url="https://test")


def seed_account(
    email: str,
    *,
    role: Optional[str] = None,
    display_name: str = "Test User",
    email_verified: bool = True,
    **doc_fields,
) -> FakeAccount:
    """Create an identity account and, when `role` is given, its metadata document."""
    account = portal().identity.add_account(email, "Secret123", display_name, email_verified=email_verified)
    if role is not None:
        doc = {
            "email": email,
            "displayName": display_name,
            "role": role,
            "createdAt": doc_fields.pop("createdAt", "2024-09-01T00:00:00+00:00"),
            "disabled": False,
            "setupRequested": False,
            "requestedRole": None,
        }
        doc.update(doc_fields)
        portal().metadata.set(account.uid, doc)
    return account


def open_session(account: FakeAccount) -> SessionRecord:
    return portal().open_session(portal().identity.sign_in(email=account.email, password=account.password))


def signed_in(http: httpx.AsyncClient, account: FakeAccount) -> SessionRecord:
    """Open a session for `account` and attach its cookie to `http`."""
    rec = open_session(account)
    http.cookies.set(SESSION_COOKIE_NAME, rec.session_id)
    return rec


def csrf(rec: SessionRecord) -> str:
    return csrf_token_for(rec.session_id)


def csrf_from_html(html: str) -> Optional[str]:
    match = _CSRF_FIELD.search(html)
    return match.group(1) if match else None
