"""
Account routes: role setup for new users and the caller's own profile.

These routes are reachable by authenticated sessions that still need setup;
every other portal route sends such sessions here first.
"""
from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, JSONResponse
from pydantic import BaseModel, Field
import logging

from accounts.store import AccountsError
from components import RoleSetupForm
from context import current_session, get_portal
from identity_access.domain import AuthUser, normalize_role
from identity_access.errors import IdentityError, auth_error_message, user_management_error_message
from rendering import layout_response, see_other
from routes.security import _is_same_origin, csrf_token_for, private_no_store, validate_csrf
import validation

account_router = APIRouter(tags=["Account"])
logger = logging.getLogger("portal.web.account")


class RoleSetupPayload(BaseModel):
    role: str = Field(..., min_length=1, max_length=16)
    request_admin: bool = False


class ProfileUpdatePayload(BaseModel):
    display_name: str = Field(..., max_length=200)


def _private_response(body: dict, *, status_code: int = 200) -> JSONResponse:
    return JSONResponse(body, status_code=status_code, headers=private_no_store())


def _me(rec) -> dict:
    return rec.as_user_context()


def _run_setup(request: Request, rec, role: str, *, request_admin: bool = False) -> dict:
    """Write the metadata document and re-resolve the session.

    Raises `AccountsError` (incl. store errors) for the caller to translate.
    """
    portal = get_portal(request)
    try:
        doc = portal.role_setup.setup_user_role(rec.user, role, request_admin=request_admin)
    except AccountsError as exc:
        if exc.code == "permission-denied":
            # The stored document already decides this account; pick it up.
            portal.refresh(rec.session_id)
        raise
    portal.refresh(rec.session_id)
    return doc


def _setup_status(code: str) -> int:
    return {"invalid-role": 400, "permission-denied": 403}.get(code, 503)


@account_router.get("/setup", response_class=HTMLResponse)
async def setup_page(request: Request):
    """Role selection screen.

    Permissions:
        Authenticated. Sessions that are already set up go to the dashboard.
    """
    rec = current_session(request)
    if not rec.needs_setup:
        return see_other("/")
    form = RoleSetupForm(csrf_token_for(rec.session_id), display_name=rec.user.label)
    return layout_response(request, title="Choose your role", content=form.render(), show_nav=False)


@account_router.post("/setup")
async def setup_submit(request: Request):
    rec = current_session(request)
    form = await request.form()
    if not validate_csrf(rec.session_id, form.get("csrf_token")):
        return _private_response({"error": "forbidden", "detail": "csrf_violation"}, status_code=403)
    if not rec.needs_setup:
        return see_other("/")
    role = str(form.get("role") or "")
    try:
        doc = _run_setup(request, rec, role)
    except AccountsError as exc:
        logger.warning("Role setup failed for %s: %s", rec.user.uid, exc.code)
        html = RoleSetupForm(
            csrf_token_for(rec.session_id),
            display_name=rec.user.label,
            selected=normalize_role(role),
            alert=user_management_error_message(exc.code),
        ).render()
        return layout_response(
            request, title="Choose your role", content=html, status_code=_setup_status(exc.code), show_nav=False
        )
    notice = "admin-requested" if doc.get("setupRequested") else "role-set"
    return see_other(f"/?notice={notice}")


@account_router.post("/api/setup")
async def api_setup(request: Request, payload: RoleSetupPayload):
    """JSON variant of role setup.

    Responses:
        200 with the caller's user context; 400 `invalid-role`; 403
        `permission-denied` when the stored account is already provisioned; 409
        `already_set_up` when the session already has a role.
    """
    if not _is_same_origin(request):
        return _private_response({"error": "forbidden", "detail": "csrf_violation"}, status_code=403)
    rec = current_session(request)
    if not rec.needs_setup:
        return _private_response({"error": "already_set_up"}, status_code=409)
    try:
        _run_setup(request, rec, payload.role, request_admin=payload.request_admin)
    except AccountsError as exc:
        return _private_response(
            {"error": exc.code, "detail": user_management_error_message(exc.code)},
            status_code=_setup_status(exc.code),
        )
    return _private_response(_me(rec))


@account_router.get("/api/me")
async def get_me(request: Request):
    """Return the caller's user context (identity, role and setup state)."""
    return _private_response(_me(current_session(request)))


@account_router.patch("/api/me/profile")
async def update_my_profile(request: Request, payload: ProfileUpdatePayload):
    """Change the caller's display name at the IdP and in the metadata document."""
    if not _is_same_origin(request):
        return _private_response({"error": "forbidden", "detail": "csrf_violation"}, status_code=403)
    rec = current_session(request)
    name = payload.display_name.strip()
    errors = validation.validate_display_name(name)
    if errors:
        return _private_response({"error": "bad_request", "detail": errors}, status_code=400)
    portal = get_portal(request)
    try:
        portal.identity.update_profile(uid=rec.user.uid, display_name=name)
        if portal.metadata.get(rec.user.uid) is not None:
            portal.metadata.merge(rec.user.uid, {"displayName": name})
    except IdentityError as exc:
        return _private_response({"error": exc.code, "detail": auth_error_message(exc.code)}, status_code=502)
    except AccountsError as exc:
        return _private_response(
            {"error": exc.code, "detail": user_management_error_message(exc.code)}, status_code=503
        )
    rec.user = AuthUser(
        uid=rec.user.uid, email=rec.user.email, display_name=name, email_verified=rec.user.email_verified
    )
    return _private_response(_me(rec))
