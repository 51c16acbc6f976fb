"""Inline alert banner used for identity and user-management errors."""

from typing import Optional

from .base import Component


class Alert(Component):
    def __init__(self, message: Optional[str], kind: str = "error") -> None:
        self.message = message
        self.kind = kind

    def render(self) -> str:
        if not self.message:
            return ""
        role = "alert" if self.kind == "error" else "status"
        return (
            f'<div class="alert alert-{self.escape(self.kind)}" role="{role}">'
            f"{self.escape(self.message)}</div>"
        )
