"""
Navigation component for the portal.

Top bar with the school name, the section tabs and the signed-in user.
The Admin tab is only listed for administrators.
"""

from typing import Any, Dict, List, Optional, Tuple

from identity_access.domain import ADMIN, PARENT, TEACHER

from .base import Component

NAV_ITEMS: List[Tuple[str, str, Optional[str]]] = [
    ("/", "Dashboard", None),
    ("/results", "Results", None),
    ("/materials", "Materials", None),
    ("/admin", "Admin", ADMIN),
]

ROLE_LABELS = {PARENT: "Parent", TEACHER: "Teacher", ADMIN: "Administrator"}


def role_label(role: Optional[str]) -> str:
    return ROLE_LABELS.get(role or "", "")


class Navigation(Component):
    def __init__(self, user: Optional[Dict[str, Any]], current_path: str = "/", school_name: str = "") -> None:
        self.user = user
        self.current_path = current_path
        self.school_name = school_name

    def _is_active(self, href: str) -> bool:
        if href == "/":
            return self.current_path == "/"
        return self.current_path == href or self.current_path.startswith(href + "/")

    def _items(self) -> List[Tuple[str, str]]:
        role = (self.user or {}).get("role")
        return [(href, label) for href, label, required in NAV_ITEMS if required is None or required == role]

    def render(self) -> str:
        if not self.user:
            return f"""
    <header class="topbar" role="banner">
        <span class="topbar-title">{self.escape(self.school_name)}</span>
    </header>"""

        links = []
        for href, label in self._items():
            active = self._is_active(href)
            attrs = self.attributes(
                href=href,
                class_=self.classes("tab", active=active),
                aria_current="page" if active else None,
            )
            links.append(f"<a {attrs}>{self.escape(label)}</a>")

        name = self.user.get("name", "")
        role = role_label(self.user.get("role"))
        return f"""
    <header class="topbar" role="banner">
        <span class="topbar-title">{self.escape(self.school_name)}</span>
        <nav class="tabs" role="navigation" aria-label="Main navigation">
            {''.join(links)}
        </nav>
        <div class="user-info">
            <span class="user-name">{self.escape(name)}</span>
            <span class="user-role">{self.escape(role)}</span>
            <a class="btn btn-secondary" href="/auth/logout">Sign out</a>
        </div>
    </header>"""
