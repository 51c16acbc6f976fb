"""
Component base for server-rendered portal pages.

Components are plain classes whose `render()` returns an HTML string. Every
dynamic value goes through `escape` or `attributes`.
"""

from typing import Any, Optional
import html


class Component:
    def render(self) -> str:
        raise NotImplementedError("Subclasses must implement render()")

    @staticmethod
    def escape(text: Optional[Any]) -> str:
        """HTML-escape `text`; None becomes the empty string."""
        return "" if text is None else html.escape(str(text))

    @staticmethod
    def classes(*names: str, **flags: bool) -> str:
        """`classes("tab", active=True)` -> "tab active"."""
        return " ".join([n for n in names if n] + [name for name, on in flags.items() if on])

    @staticmethod
    def attributes(**attrs: Any) -> str:
        """Render keyword arguments as HTML attributes.

        `class_`/`for_` lose the trailing underscore, `aria_invalid` becomes
        `aria-invalid`. True renders a bare boolean attribute; False and None
        are dropped.
        """
        parts = []
        for key, value in attrs.items():
            name = key[:-1] if key.endswith("_") else key.replace("_", "-")
            if value is True:
                parts.append(name)
            elif value is not False and value is not None:
                parts.append(f'{name}="{html.escape(str(value))}"')
        return " ".join(parts)

    @classmethod
    def csrf_field(cls, token: Optional[str]) -> str:
        """Hidden input carrying the session's CSRF token for form posts."""
        return f'<input type="hidden" name="csrf_token" value="{cls.escape(token)}">'
