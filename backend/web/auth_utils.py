"""
Session cookie helpers shared by the auth router and the auth middleware.

The cookie carries only the opaque session id. Flags are the same in every
environment: HttpOnly, Secure, SameSite=Lax and path "/".
"""

from __future__ import annotations

from starlette.responses import Response

SESSION_COOKIE_NAME = "portal_session"
SESSION_COOKIE_FLAGS = {"httponly": True, "secure": True, "samesite": "lax", "path": "/"}


def set_session_cookie(response: Response, session_id: str, *, max_age: int | None = None) -> None:
    response.set_cookie(key=SESSION_COOKIE_NAME, value=session_id, max_age=max_age, **SESSION_COOKIE_FLAGS)


def clear_session_cookie(response: Response) -> None:
    """Expire the session cookie in the browser (sign-out, closed sessions)."""
    response.set_cookie(key=SESSION_COOKIE_NAME, value="", expires=0, max_age=0, **SESSION_COOKIE_FLAGS)
