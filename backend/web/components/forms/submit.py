"""
Submit button component.

Keeps handling of variants and disabled state consistent.
"""

from typing import Optional

from ..base import Component


class SubmitButton(Component):
    """Form action button."""

    def __init__(
        self,
        label: str,
        *,
        variant: str = "primary",
        disabled: bool = False,
        name: Optional[str] = None,
        value: Optional[str] = None,
        confirm: Optional[str] = None,
    ) -> None:
        self.label = label
        self.variant = variant
        self.disabled = disabled
        self.name = name
        self.value = value
        self.confirm = confirm

    def render(self) -> str:
        attrs = self.attributes(
            type="submit",
            class_=f"btn btn-{self.variant}",
            disabled=self.disabled,
            name=self.name,
            value=self.value,
            data_confirm=self.confirm,
        )
        return f"<button {attrs}>{self.escape(self.label)}</button>"
