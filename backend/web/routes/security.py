"""
Shared web security helpers (FastAPI-agnostic utilities for routes).

Contains the same-origin check and the per-session CSRF tokens used by every
state-changing form and API route. Keeping a single implementation avoids
security drift between the auth, portal and admin adapters.
"""
from __future__ import annotations

from typing import Optional
from urllib.parse import urlparse
import hmac
import os
import secrets
import threading

from fastapi import Request

_CSRF_BY_SESSION: dict[str, str] = {}
_CSRF_LOCK = threading.Lock()


def _default_port(scheme: str) -> int:
    return 443 if scheme == "https" else 80


def _parse_origin(url: str) -> tuple[str, str, int]:
    p = urlparse(url)
    if not p.scheme or not p.hostname:
        raise ValueError("invalid_origin")
    scheme = p.scheme.lower()
    port = p.port if p.port is not None else _default_port(scheme)
    return scheme, p.hostname.lower(), int(port)


def _parse_server(request: Request) -> tuple[str, str, int]:
    trust_proxy = (os.getenv("PORTAL_TRUST_PROXY", "false") or "").lower() == "true"
    if trust_proxy:
        xf_proto = (request.headers.get("x-forwarded-proto") or request.url.scheme or "").split(",")[0].strip()
        xf_host = (request.headers.get("x-forwarded-host") or request.headers.get("host") or "").split(",")[0].strip()
        scheme = (xf_proto or request.url.scheme or "http").lower()
        if ":" in xf_host:
            host_only, port_str = xf_host.rsplit(":", 1)
            try:
                port = int(port_str)
            except ValueError:
                port = _default_port(scheme)
            host = host_only.lower()
        else:
            host = (xf_host or (request.url.hostname or "")).lower()
            port = int(request.url.port) if request.url.port else _default_port(scheme)
        xf_port = request.headers.get("x-forwarded-port") or ""
        if xf_port:
            try:
                port = int(xf_port.split(",")[0].strip())
            except ValueError:
                port = _default_port(scheme)
        return scheme, host, port

    scheme = (request.url.scheme or "http").lower()
    host = (request.url.hostname or "").lower()
    port = int(request.url.port) if request.url.port else _default_port(scheme)
    return scheme, host, port


def _is_same_origin(request: Request) -> bool:
    """Verify same-origin using Origin or Referer headers.

    Behavior:
    - If Origin is present, require exact scheme/host/port match with server.
    - Else if Referer is present, validate its origin similarly.
    - Else (no headers): allow to not break non-browser clients.
    Proxy awareness: Only trust X-Forwarded-* when PORTAL_TRUST_PROXY=true.
    """
    try:
        server = _parse_server(request)
        origin_val = request.headers.get("origin")
        if origin_val:
            return _parse_origin(origin_val) == server
        referer_val = request.headers.get("referer")
        if referer_val:
            return _parse_origin(referer_val) == server
        return True
    except ValueError:
        return False


def csrf_token_for(session_id: str) -> str:
    """Return the synchronizer token of a session, creating it on first use."""
    with _CSRF_LOCK:
        token = _CSRF_BY_SESSION.get(session_id)
        if not token:
            token = secrets.token_urlsafe(24)
            _CSRF_BY_SESSION[session_id] = token
        return token


def validate_csrf(session_id: Optional[str], form_value: Optional[str]) -> bool:
    if not session_id or not form_value:
        return False
    with _CSRF_LOCK:
        expected = _CSRF_BY_SESSION.get(session_id)
    if not expected:
        return False
    return hmac.compare_digest(expected, str(form_value))


def forget_csrf(session_id: str) -> None:
    with _CSRF_LOCK:
        _CSRF_BY_SESSION.pop(session_id, None)


def private_no_store() -> dict:
    return {"Cache-Control": "private, no-store"}
