"School portal web app"
from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
import logging
import os
import sys

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles

from auth_utils import SESSION_COOKIE_NAME, clear_session_cookie
from context import build_context
from routes.security import csrf_token_for
import config


def _should_load_dotenv() -> bool:
    """Decide if we should load a local .env file.

    - Never load under pytest to avoid contaminating test env.
    - Allow explicit opt-out/opt-in via PORTAL_ENABLE_DOTENV (default true
      outside pytest).
    """
    if "pytest" in sys.modules or os.getenv("PYTEST_CURRENT_TEST"):
        return False
    flag = (os.getenv("PORTAL_ENABLE_DOTENV", "true") or "").strip().lower()
    return flag in ("1", "true", "yes")


if _should_load_dotenv():
    from dotenv import load_dotenv

    load_dotenv()

# Minimal production safety checks (fail-fast on insecure config)
config.ensure_secure_config_on_startup()

logger = logging.getLogger("portal.web")


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.portal.start()
    yield
    # Cancels the resolver's identity-state subscription.
    app.state.portal.close()


app = FastAPI(title="School Portal", description="Parents, teachers and administrators", version="0.1.0", lifespan=lifespan)
app.state.portal = build_context()

# --- Static Files & Routers -----------------------------------------------------

static_dir = Path(__file__).parent / "static"
app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")

from routes.auth import auth_router
from routes.account import account_router
from routes.portal import portal_router
from routes.school import school_router
from routes.users import users_router

app.include_router(auth_router)
app.include_router(account_router)
app.include_router(portal_router)
app.include_router(school_router)
app.include_router(users_router)

# --- Auth Middleware ------------------------------------------------------------

PUBLIC_PATHS = frozenset({"/auth/login", "/auth/signup", "/auth/forgot", "/auth/logout", "/health", "/favicon.ico"})
# Reachable while the session still has to pick a role.
SETUP_PATHS = frozenset({"/setup", "/api/setup", "/api/me", "/api/me/profile", "/auth/verify/resend"})


def _is_public_path(path: str) -> bool:
    return path.startswith("/static/") or path in PUBLIC_PATHS


def _is_api_path(path: str) -> bool:
    return path.startswith("/api/")


def _private_json(body: dict, status_code: int) -> JSONResponse:
    return JSONResponse(body, status_code=status_code, headers={"Cache-Control": "private, no-store"})


def _login_redirect(request: Request) -> RedirectResponse:
    target = "/auth/login"
    if request.method == "GET" and request.url.path != "/":
        from urllib.parse import urlencode

        target = f"{target}?{urlencode({'redirect': request.url.path})}"
    return RedirectResponse(url=target, status_code=302, headers={"Cache-Control": "private, no-store"})


@app.middleware("http")
async def auth_enforcement(request: Request, call_next):
    """Attach the session to the request and gate unauthenticated or unset-up access.

    Behavior:
        - Public paths pass through untouched.
        - No valid session: 401 JSON for `/api/*`, else 302 to `/auth/login`.
        - Disabled accounts lose their session on the next request.
        - Sessions without a role may only reach the setup paths; other
          requests get 409 `setup_required` (API) or 302 to `/setup`.
    """
    path = request.url.path
    if _is_public_path(path):
        return await call_next(request)

    portal = request.app.state.portal
    sid = request.cookies.get(SESSION_COOKIE_NAME)
    rec = portal.sessions.get(sid) if sid else None

    closed = rec is not None and rec.disabled
    if closed:
        portal.close_session(rec.session_id)
        rec = None

    if rec is None:
        if _is_api_path(path):
            response = _private_json({"error": "unauthenticated"}, 401)
        else:
            response = _login_redirect(request)
        if closed:
            clear_session_cookie(response)
        return response

    if rec.needs_setup and path not in SETUP_PATHS:
        if _is_api_path(path):
            return _private_json({"error": "setup_required"}, 409)
        return RedirectResponse(url="/setup", status_code=302, headers={"Cache-Control": "private, no-store"})

    # Minimal, read-only user context for downstream handlers and templates.
    request.state.session = rec
    request.state.user = {**rec.as_user_context(), "csrf_token": csrf_token_for(rec.session_id)}
    return await call_next(request)

# --- Security Headers Middleware ----------------------------------------------


@app.middleware("http")
async def security_headers(request: Request, call_next):
    response = await call_next(request)
    csp = (
        "default-src 'self'; script-src 'self'; style-src 'self'; "
        "img-src 'self' data: https://images.unsplash.com; font-src 'self' data:; "
        "connect-src 'self'; form-action 'self'; frame-ancestors 'none';"
    )
    response.headers.setdefault("Content-Security-Policy", csp)
    response.headers.setdefault("X-Frame-Options", "DENY")
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
    response.headers.setdefault("Permissions-Policy", "geolocation=(), microphone=(), camera=()")
    # HSTS: always on (dev = prod)
    response.headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
    return response


@app.get("/health")
async def health_check():
    # Minimal health endpoint used by orchestrators and tests.
    return _private_json({"status": "healthy"}, 200)
