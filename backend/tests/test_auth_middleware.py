"""
Tests for authentication-enforcing middleware.

Requirements:
- HTML requests without session -> 302 to /auth/login (with in-app redirect)
- JSON/API requests without session -> 401 JSON
- Sessions without a role reach only the setup paths
- Disabled accounts lose their session on the next request
- Allowlist: /auth/*, /health, /static/* are not redirected
"""
from __future__ import annotations

import pytest

from auth_utils import SESSION_COOKIE_NAME  # type: ignore
from identity_access.domain import PARENT
from utils.portal_client import client, portal, seed_account, signed_in

pytestmark = pytest.mark.anyio


async def test_html_request_without_session_redirects_to_login():
    async with client() as http:
        r = await http.get("/", follow_redirects=False)
    assert r.status_code == 302
    assert r.headers.get("location") == "/auth/login"


async def test_deep_link_is_kept_as_redirect_target():
    async with client() as http:
        r = await http.get("/results", follow_redirects=False)
    assert r.headers.get("location") == "/auth/login?redirect=%2Fresults"


async def test_json_request_without_session_returns_401():
    async with client() as http:
        r = await http.get("/api/me")
    assert r.status_code == 401
    assert r.json() == {"error": "unauthenticated"}
    assert r.headers.get("Cache-Control") == "private, no-store"


async def test_unknown_session_cookie_is_treated_as_anonymous():
    async with client() as http:
        http.cookies.set(SESSION_COOKIE_NAME, "forged")
        r = await http.get("/api/school")
    assert r.status_code == 401


async def test_allowlist_paths_not_redirected():
    async with client() as http:
        r_auth = await http.get("/auth/login", follow_redirects=False)
        r_health = await http.get("/health")
        r_static = await http.get("/static/css/portal.css", follow_redirects=False)
        r_favicon = await http.get("/favicon.ico", follow_redirects=False)
    assert r_auth.status_code == 200
    assert r_health.status_code == 200
    assert r_static.status_code == 200
    assert r_favicon.status_code != 302


async def test_session_without_role_is_sent_to_setup():
    account = seed_account("new@school.org")
    async with client() as http:
        signed_in(http, account)
        page = await http.get("/", follow_redirects=False)
        api = await http.get("/api/school")
        me = await http.get("/api/me")
        setup = await http.get("/setup")
    assert page.status_code == 302
    assert page.headers["location"] == "/setup"
    assert api.status_code == 409
    assert api.json() == {"error": "setup_required"}
    assert me.status_code == 200
    assert me.json()["needs_setup"] is True
    assert setup.status_code == 200


async def test_disabled_account_loses_its_session():
    account = seed_account("p@school.org", role=PARENT)
    async with client() as http:
        rec = signed_in(http, account)
        assert (await http.get("/api/me")).status_code == 200
        portal().metadata.merge(account.uid, {"disabled": True})
        portal().resolver.refresh_user(account.uid)
        r = await http.get("/api/me")
    assert r.status_code == 401
    assert "Max-Age=0" in r.headers["set-cookie"]
    assert portal().sessions.get(rec.session_id) is None


async def test_security_headers_and_health():
    async with client() as http:
        r = await http.get("/health")
    assert r.json() == {"status": "healthy"}
    assert r.headers["Cache-Control"] == "private, no-store"
    csp = r.headers["Content-Security-Policy"]
    assert "img-src 'self' data: https://images.unsplash.com" in csp
    assert "frame-ancestors 'none'" in csp
    assert r.headers["X-Frame-Options"] == "DENY"
    assert r.headers["Strict-Transport-Security"].startswith("max-age=")
