"""
Authentication routes: sign in, sign up, password reset and sign out.

Why:
    The portal owns its sign-in forms and talks to the identity provider
    server-side (direct grant plus Admin API), so the browser only ever holds
    an opaque session cookie.

Notes:
    - Forms are validated before any identity provider call; a non-empty error
      mapping re-renders the form with status 400.
    - Identity provider failures are translated through the fixed message
      table (`identity_access.errors.auth_error_message`).
    - All responses carry `Cache-Control: private, no-store`.
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, JSONResponse, Response
import logging
import re

from auth_utils import SESSION_COOKIE_NAME, clear_session_cookie, set_session_cookie
from components import ForgotPasswordForm, LoginForm, SignupForm
from context import current_session, get_portal
from identity_access.errors import IdentityError, auth_error_message
from rendering import layout_response, see_other
from routes.security import _is_same_origin, validate_csrf
import validation

auth_router = APIRouter(tags=["Auth"])  # explicit paths, no prefix
logger = logging.getLogger("portal.web.auth")

# Allowed in-app redirect targets after sign-in: absolute paths without
# double slashes or traversal.
INAPP_PATH_PATTERN = re.compile(r"^(?!.*//)(?!.*\.\.)/[A-Za-z0-9._\-/]*$")
MAX_INAPP_REDIRECT_LEN = 256

RESET_SENT_MESSAGE = "Password reset email sent! Check your inbox."


def _is_inapp_path(value: str | None) -> bool:
    """Return True if value is an absolute in-app path, e.g., "/", "/results".

    Examples (rejected): "results", "https://evil.com", "/a?b", "//evil.com", "/.."
    """
    if not value or not isinstance(value, str):
        return False
    if len(value) > MAX_INAPP_REDIRECT_LEN:
        return False
    return bool(INAPP_PATH_PATTERN.match(value))


def _cross_site_response() -> JSONResponse:
    return JSONResponse(
        {"error": "forbidden", "detail": "csrf_violation"},
        status_code=403,
        headers={"Cache-Control": "private, no-store"},
    )


def _auth_page(request: Request, title: str, form_html: str, *, status_code: int = 200) -> HTMLResponse:
    return layout_response(request, title=title, content=form_html, status_code=status_code, show_nav=False)


def _has_live_session(request: Request) -> bool:
    sid = request.cookies.get(SESSION_COOKIE_NAME)
    return bool(sid) and get_portal(request).sessions.get(sid) is not None


def _signed_in_redirect(request: Request, rec, target: str | None = None) -> Response:
    """Redirect a freshly signed-in session to setup or to the portal."""
    dest = "/setup" if rec.needs_setup else (target if _is_inapp_path(target) else "/")
    resp = see_other(dest)
    set_session_cookie(resp, rec.session_id, max_age=get_portal(request).sessions.ttl_seconds)
    return resp


@auth_router.get("/auth/login", response_class=HTMLResponse)
async def auth_login_page(request: Request, redirect: str | None = None, signed_out: int = 0):
    """Render the sign-in form; signed-in visitors go straight to the portal.

    Permissions:
        Public.
    """
    if _has_live_session(request):
        return see_other("/")
    safe_redirect = redirect if _is_inapp_path(redirect) else None
    notice = "You have been signed out." if signed_out else None
    return _auth_page(request, "Sign in", LoginForm(redirect=safe_redirect, notice=notice).render())


@auth_router.post("/auth/login")
async def auth_login_submit(request: Request):
    """Validate the form, sign in at the identity provider and open a session.

    Behavior:
        - 400 with field errors when validation fails (no IdP call).
        - 400 with a translated alert when the IdP rejects the credentials.
        - Disabled accounts are refused after resolution (`user-disabled`).
        - 303 to `/setup` when the user has no role yet, else to the
          validated `redirect` or `/`.
    """
    if not _is_same_origin(request):
        return _cross_site_response()
    form = await request.form()
    email = str(form.get("email") or "").strip()
    password = str(form.get("password") or "")
    redirect = str(form.get("redirect") or "") or None
    values = {"email": email}

    errors = validation.validate_login(email, password)
    if errors:
        html = LoginForm(values=values, errors=errors, redirect=redirect).render()
        return _auth_page(request, "Sign in", html, status_code=400)

    portal = get_portal(request)
    try:
        result = portal.identity.sign_in(email=email, password=password)
    except IdentityError as exc:
        logger.info("Sign-in rejected: %s", exc.code)
        html = LoginForm(values=values, alert=auth_error_message(exc.code), redirect=redirect).render()
        return _auth_page(request, "Sign in", html, status_code=400)

    rec = portal.open_session(result)
    if rec.disabled:
        portal.close_session(rec.session_id)
        html = LoginForm(values=values, alert=auth_error_message("user-disabled")).render()
        return _auth_page(request, "Sign in", html, status_code=403)
    return _signed_in_redirect(request, rec, redirect)


@auth_router.get("/auth/signup", response_class=HTMLResponse)
async def auth_signup_page(request: Request):
    if _has_live_session(request):
        return see_other("/")
    return _auth_page(request, "Create an account", SignupForm().render())


@auth_router.post("/auth/signup")
async def auth_signup_submit(request: Request):
    """Create the identity account, mail the verification link and sign in.

    New accounts have no metadata document yet, so the session continues at
    the role setup screen.
    """
    if not _is_same_origin(request):
        return _cross_site_response()
    form = await request.form()
    display_name = str(form.get("display_name") or "").strip()
    email = str(form.get("email") or "").strip()
    password = str(form.get("password") or "")
    confirm_password = str(form.get("confirm_password") or "")
    values = {"display_name": display_name, "email": email}

    errors = validation.validate_signup(display_name, email, password, confirm_password)
    if errors:
        return _auth_page(
            request, "Create an account", SignupForm(values=values, errors=errors).render(), status_code=400
        )

    portal = get_portal(request)
    try:
        result = portal.identity.sign_up(email=email, password=password, display_name=display_name)
    except IdentityError as exc:
        logger.info("Sign-up rejected: %s", exc.code)
        html = SignupForm(values=values, alert=auth_error_message(exc.code)).render()
        return _auth_page(request, "Create an account", html, status_code=400)

    rec = portal.open_session(result)
    return _signed_in_redirect(request, rec)


@auth_router.get("/auth/forgot", response_class=HTMLResponse)
async def auth_forgot_page(request: Request, email: str | None = None):
    values = {"email": email} if email and validation.is_valid_email(email) else None
    return _auth_page(request, "Reset your password", ForgotPasswordForm(values=values).render())


@auth_router.post("/auth/forgot")
async def auth_forgot_submit(request: Request):
    """Send a password reset email through the identity provider."""
    if not _is_same_origin(request):
        return _cross_site_response()
    form = await request.form()
    email = str(form.get("email") or "").strip()
    values = {"email": email}

    errors = validation.validate_reset(email)
    if errors:
        html = ForgotPasswordForm(values=values, errors=errors).render()
        return _auth_page(request, "Reset your password", html, status_code=400)

    try:
        get_portal(request).identity.send_password_reset(email=email)
    except IdentityError as exc:
        logger.info("Password reset failed: %s", exc.code)
        html = ForgotPasswordForm(values=values, alert=auth_error_message(exc.code)).render()
        return _auth_page(request, "Reset your password", html, status_code=400)
    return _auth_page(request, "Reset your password", ForgotPasswordForm(notice=RESET_SENT_MESSAGE).render())


@auth_router.get("/auth/logout")
async def auth_logout(request: Request):
    """Sign out: end the session (IdP logout is best effort) and clear the cookie.

    Permissions:
        Public; without a session this only clears the cookie.
    """
    sid = request.cookies.get(SESSION_COOKIE_NAME)
    if sid:
        get_portal(request).close_session(sid)
    resp = see_other("/auth/login?signed_out=1")
    clear_session_cookie(resp)
    return resp


@auth_router.post("/auth/verify/resend")
async def auth_verify_resend(request: Request):
    """Send the email verification link again.

    Permissions:
        Authenticated (any setup state).
    """
    rec = current_session(request)
    if rec is None:
        return see_other("/auth/login")
    form = await request.form()
    if not validate_csrf(rec.session_id, form.get("csrf_token")):
        return _cross_site_response()
    back = "/setup" if rec.needs_setup else "/"
    try:
        get_portal(request).identity.send_verification_email(uid=rec.user.uid)
    except IdentityError as exc:
        logger.warning("Verification email failed: %s", exc.code)
        return layout_response(
            request,
            title="Email verification",
            content=f'<p><a href="{back}">Back</a></p>',
            status_code=502,
            flash=auth_error_message(exc.code),
            flash_kind="error",
        )
    return see_other(f"{back}?notice=verification-sent")
