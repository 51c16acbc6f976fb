"""
Layout component for the portal.

Main layout wrapper that combines navigation, banners and page content into a
complete HTML document.
"""

from typing import Any, Dict, Optional

from school.demo_data import SCHOOL_NAME

from .alert import Alert
from .base import Component
from .navigation import Navigation


class Layout(Component):
    """Main layout component that assembles the complete page"""

    def __init__(
        self,
        title: str,
        content: str,
        user: Optional[Dict[str, Any]] = None,
        show_nav: bool = True,
        current_path: str = "/",
        flash: Optional[str] = None,
        flash_kind: str = "success",
    ):
        """
        Args:
            title: Page title (will be escaped)
            content: Main content HTML (pre-rendered components)
            user: Current user context from `request.state.user` (optional)
            show_nav: Whether to show the tab navigation
            current_path: Current URL path for active tab highlighting
            flash: Optional one-off banner shown above the content
        """
        self.title = title
        self.content = content
        self.user = user
        self.show_nav = show_nav
        self.current_path = current_path
        self.flash = flash
        self.flash_kind = flash_kind

    def render(self) -> str:
        nav_html = Navigation(self.user, self.current_path, SCHOOL_NAME).render() if self.show_nav else ""
        return f"""<!DOCTYPE html>
<html lang="en">
<head>
    {self._render_head()}
</head>
<body>
    <a href="#main-content" class="skip-link">Skip to main content</a>
    {nav_html}
    <main id="main-content" class="main-content" role="main">
        {self._render_banners()}
        {Alert(self.flash, kind=self.flash_kind).render()}
        {self.content}
    </main>
</body>
</html>"""

    def _render_head(self) -> str:
        return f"""
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{self.escape(self.title)} - {self.escape(SCHOOL_NAME)}</title>
    <link rel="stylesheet" href="/static/css/portal.css?v=1">
    <script src="/static/js/portal.js?v=1" defer></script>
    """

    def _render_banners(self) -> str:
        """Account state banners: unverified email and pending role request."""
        if not self.user or not self.show_nav:
            return ""
        banners = []
        if not self.user.get("email_verified", True):
            banners.append(
                '<div class="alert alert-info" role="status">'
                "Please verify your email address. "
                '<form method="post" action="/auth/verify/resend" class="inline-form">'
                f'{self.csrf_field(self.user.get("csrf_token", ""))}'
                '<button type="submit" class="btn btn-link">Resend verification email</button>'
                "</form></div>"
            )
        if self.user.get("setup_requested"):
            requested = self.user.get("requested_role") or ""
            banners.append(
                '<div class="alert alert-info" role="status">'
                f"Your request for {self.escape(requested.lower())} access is pending approval."
                "</div>"
            )
        return "".join(banners)
