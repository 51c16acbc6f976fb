"""
User administration: invitations, the user list, role changes, soft delete
and the approval queue for administrator requests.

Why:
    Admins provision accounts and decide pending role requests. JSON routes
    serve scripted clients; `/admin` and the `/admin/users/...` form posts
    serve the admin page. Both delegate to `accounts.management` and
    `accounts.role_setup`.

Permissions:
    Caller must be a set-up ADMIN session. Admins cannot disable or change
    the role of their own account.

Errors:
    Identity and store failures are translated through the user-management
    message table; JSON bodies are `{"error": code, "detail": message}`.
"""
from __future__ import annotations

from typing import Callable, Optional

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, JSONResponse, Response
from pydantic import BaseModel, Field
import logging

from accounts.store import AccountsError
from components import AdminPage
from context import current_session, get_portal
from identity_access.domain import ADMIN
from identity_access.errors import IdentityError, user_management_error_message
from rendering import layout_response, see_other
from routes.security import _is_same_origin, csrf_token_for, private_no_store, validate_csrf
import validation

users_router = APIRouter(tags=["Users"])
logger = logging.getLogger("portal.web.users")

_STATUS_BY_CODE = {
    "invalid-role": 400,
    "invalid-email": 400,
    "weak-password": 400,
    "permission-denied": 403,
    "not-found": 404,
    "user-not-found": 404,
    "email-already-in-use": 409,
    "no-pending-request": 409,
    "too-many-requests": 429,
    "network-request-failed": 503,
    "unavailable": 503,
}


class InvitePayload(BaseModel):
    email: str = Field(..., max_length=200)
    display_name: str = Field(..., max_length=200)
    role: str = Field(..., max_length=16)


class RolePayload(BaseModel):
    role: str = Field(..., max_length=16)


def _private_response(body, *, status_code: int = 200) -> JSONResponse:
    return JSONResponse(body, status_code=status_code, headers=private_no_store())


def _error_response(code: str) -> JSONResponse:
    return _private_response(
        {"error": code, "detail": user_management_error_message(code)},
        status_code=_STATUS_BY_CODE.get(code, 500),
    )


def _require_admin(request: Request, *, write: bool = False):
    """Return (session, None) for admin sessions, else (None, error response)."""
    rec = current_session(request)
    if rec is None or rec.role != ADMIN:
        return None, _private_response({"error": "forbidden"}, status_code=403)
    if write and not _is_same_origin(request):
        return None, _private_response({"error": "forbidden", "detail": "csrf_violation"}, status_code=403)
    return rec, None


def _call(op: Callable[[], object]) -> tuple[object, Optional[str]]:
    """Run a management operation; return (result, error code)."""
    try:
        return op(), None
    except (AccountsError, IdentityError) as exc:
        logger.warning("User management call failed: %s", exc.code)
        return None, exc.code


def _email_of(request: Request, uid: str) -> str:
    doc = get_portal(request).users.get_user_metadata(uid)
    if not doc or not doc.get("email"):
        raise AccountsError("not-found")
    return str(doc["email"])


def _delete(request: Request, uid: str, actor: str) -> None:
    portal = get_portal(request)
    portal.users.delete_user(uid, actor=actor)
    portal.close_sessions_for(uid)


def _approve(request: Request, uid: str, role: str, actor: str) -> None:
    portal = get_portal(request)
    portal.role_setup.approve_user_role(uid, role, actor=actor)
    portal.resolver.refresh_user(uid)


def _reject(request: Request, uid: str, actor: str) -> None:
    portal = get_portal(request)
    portal.role_setup.reject_user_role(uid, actor=actor)
    portal.resolver.refresh_user(uid)


def _update_role(request: Request, uid: str, role: str, actor: str) -> None:
    portal = get_portal(request)
    portal.users.update_user_role(uid, role, actor=actor)
    portal.resolver.refresh_user(uid)


# --- JSON API -----------------------------------------------------------------------


@users_router.get("/api/users")
async def list_users(request: Request):
    """All metadata documents, newest first."""
    _, error = _require_admin(request)
    if error:
        return error
    users, code = _call(get_portal(request).users.fetch_users)
    return _error_response(code) if code else _private_response(users)


@users_router.get("/api/users/pending")
async def list_pending(request: Request):
    _, error = _require_admin(request)
    if error:
        return error
    pending, code = _call(get_portal(request).role_setup.list_pending_requests)
    return _error_response(code) if code else _private_response(pending)


@users_router.post("/api/users")
async def invite_user(request: Request, payload: InvitePayload):
    """Invite a user: create the account, write metadata, mail the setup link.

    Validation runs before any identity provider call (400 with field errors).
    """
    rec, error = _require_admin(request, write=True)
    if error:
        return error
    email = payload.email.strip()
    name = payload.display_name.strip()
    errors = validation.validate_invite(email, name, payload.role)
    if errors:
        return _private_response({"error": "bad_request", "detail": errors}, status_code=400)
    uid, code = _call(
        lambda: get_portal(request).users.invite_user(
            email=email, display_name=name, role=payload.role, actor=rec.user.uid
        )
    )
    return _error_response(code) if code else _private_response({"uid": uid}, status_code=201)


@users_router.patch("/api/users/{uid}/role")
async def update_user_role(request: Request, uid: str, payload: RolePayload):
    rec, error = _require_admin(request, write=True)
    if error:
        return error
    _, code = _call(lambda: _update_role(request, uid, payload.role, rec.user.uid))
    return _error_response(code) if code else Response(status_code=204, headers=private_no_store())


@users_router.delete("/api/users/{uid}")
async def delete_user(request: Request, uid: str):
    """Soft delete: the document is kept and marked disabled; live sessions end."""
    rec, error = _require_admin(request, write=True)
    if error:
        return error
    _, code = _call(lambda: _delete(request, uid, rec.user.uid))
    return _error_response(code) if code else Response(status_code=204, headers=private_no_store())


@users_router.post("/api/users/{uid}/resend-invite")
async def resend_invite(request: Request, uid: str):
    _, error = _require_admin(request, write=True)
    if error:
        return error
    _, code = _call(lambda: get_portal(request).users.resend_invite(email=_email_of(request, uid)))
    return _error_response(code) if code else Response(status_code=204, headers=private_no_store())


@users_router.post("/api/users/{uid}/approve")
async def approve_request(request: Request, uid: str, payload: RolePayload):
    rec, error = _require_admin(request, write=True)
    if error:
        return error
    _, code = _call(lambda: _approve(request, uid, payload.role, rec.user.uid))
    return _error_response(code) if code else Response(status_code=204, headers=private_no_store())


@users_router.post("/api/users/{uid}/reject")
async def reject_request(request: Request, uid: str):
    rec, error = _require_admin(request, write=True)
    if error:
        return error
    _, code = _call(lambda: _reject(request, uid, rec.user.uid))
    return _error_response(code) if code else Response(status_code=204, headers=private_no_store())


# --- admin page -----------------------------------------------------------------------


def _admin_page(
    request: Request,
    *,
    alert: Optional[str] = None,
    invite_values: Optional[dict] = None,
    invite_errors: Optional[dict] = None,
    status_code: int = 200,
) -> HTMLResponse:
    rec = current_session(request)
    portal = get_portal(request)
    users, code = _call(portal.users.fetch_users)
    pending, pending_code = _call(portal.role_setup.list_pending_requests)
    failed = code or pending_code
    if failed and not alert:
        alert = user_management_error_message(failed)
    page = AdminPage(
        users=users or [],
        pending=pending or [],
        current_uid=rec.user.uid,
        csrf_token=csrf_token_for(rec.session_id),
        alert=alert,
        invite_values=invite_values,
        invite_errors=invite_errors,
    )
    return layout_response(request, title="Administration", content=page.render(), status_code=status_code)


@users_router.get("/admin", response_class=HTMLResponse)
async def admin_index(request: Request):
    _, error = _require_admin(request)
    if error:
        return layout_response(
            request, title="Forbidden", content="<p>Administrators only.</p>", status_code=403
        )
    return _admin_page(request)


async def _admin_form(request: Request):
    rec, error = _require_admin(request)
    if error:
        return None, None, error
    form = await request.form()
    if not validate_csrf(rec.session_id, form.get("csrf_token")):
        return None, None, _private_response({"error": "forbidden", "detail": "csrf_violation"}, status_code=403)
    return rec, form, None


def _after(request: Request, code: Optional[str], notice: str) -> Response:
    if code:
        return _admin_page(
            request, alert=user_management_error_message(code), status_code=_STATUS_BY_CODE.get(code, 500)
        )
    return see_other(f"/admin?notice={notice}")


@users_router.post("/admin/users")
async def invite_user_form(request: Request):
    rec, form, error = await _admin_form(request)
    if error:
        return error
    values = {
        "email": str(form.get("email") or "").strip(),
        "display_name": str(form.get("display_name") or "").strip(),
        "role": str(form.get("role") or ""),
    }
    errors = validation.validate_invite(values["email"], values["display_name"], values["role"])
    if errors:
        return _admin_page(request, invite_values=values, invite_errors=errors, status_code=400)
    _, code = _call(
        lambda: get_portal(request).users.invite_user(
            email=values["email"], display_name=values["display_name"], role=values["role"], actor=rec.user.uid
        )
    )
    if code:
        return _admin_page(
            request,
            alert=user_management_error_message(code),
            invite_values=values,
            status_code=_STATUS_BY_CODE.get(code, 500),
        )
    return see_other("/admin?notice=saved")


@users_router.post("/admin/users/{uid}/approve")
async def approve_request_form(request: Request, uid: str):
    rec, form, error = await _admin_form(request)
    if error:
        return error
    _, code = _call(lambda: _approve(request, uid, str(form.get("role") or ""), rec.user.uid))
    return _after(request, code, "saved")


@users_router.post("/admin/users/{uid}/reject")
async def reject_request_form(request: Request, uid: str):
    rec, _, error = await _admin_form(request)
    if error:
        return error
    _, code = _call(lambda: _reject(request, uid, rec.user.uid))
    return _after(request, code, "saved")


@users_router.post("/admin/users/{uid}/role")
async def update_role_form(request: Request, uid: str):
    rec, form, error = await _admin_form(request)
    if error:
        return error
    _, code = _call(lambda: _update_role(request, uid, str(form.get("role") or ""), rec.user.uid))
    return _after(request, code, "saved")


@users_router.post("/admin/users/{uid}/resend")
async def resend_invite_form(request: Request, uid: str):
    _, _, error = await _admin_form(request)
    if error:
        return error
    _, code = _call(lambda: get_portal(request).users.resend_invite(email=_email_of(request, uid)))
    return _after(request, code, "saved")


@users_router.post("/admin/users/{uid}/delete")
async def delete_user_form(request: Request, uid: str):
    rec, _, error = await _admin_form(request)
    if error:
        return error
    _, code = _call(lambda: _delete(request, uid, rec.user.uid))
    return _after(request, code, "deleted")
