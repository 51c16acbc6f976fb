"""
HTML response helpers shared by the SSR routes.
"""
from __future__ import annotations

from typing import Optional

from fastapi import Request
from fastapi.responses import HTMLResponse, RedirectResponse

from components import Layout


NOTICES = {
    "signed-out": "You have been signed out.",
    "verification-sent": "Verification email sent. Please check your inbox.",
    "saved": "Changes saved.",
    "deleted": "Entry deleted.",
    "role-set": "Your role has been saved.",
    "admin-requested": "Your administrator request was sent and is waiting for approval.",
}


def layout_response(
    request: Request,
    *,
    title: str,
    content: str,
    status_code: int = 200,
    show_nav: bool = True,
    flash: Optional[str] = None,
    flash_kind: str = "success",
) -> HTMLResponse:
    """Render `content` inside the page layout and return an HTMLResponse.

    Behavior:
        - Uses the user context set by the auth middleware (None on public pages).
        - Personalized and auth pages are never cached (`private, no-store`).
    Permissions:
        None. Route handlers must enforce role checks before calling.
    """
    user = getattr(request.state, "user", None)
    layout = Layout(
        title=title,
        content=content,
        user=user,
        show_nav=show_nav,
        current_path=request.url.path,
        flash=flash or NOTICES.get(request.query_params.get("notice") or ""),
        flash_kind=flash_kind,
    )
    return HTMLResponse(
        content=layout.render(),
        status_code=status_code,
        headers={"Cache-Control": "private, no-store"},
    )


def see_other(url: str) -> RedirectResponse:
    """Post/Redirect/Get: 303 so the browser follows with GET."""
    return RedirectResponse(url=url, status_code=303, headers={"Cache-Control": "private, no-store"})
