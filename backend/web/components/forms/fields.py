"""
Form field components.

Every field renders the same wrapper (label, control, help and error text) so
validation messages show up next to the offending input on every form.
"""

from typing import Iterable, Optional, Tuple, Union

from ..base import Component

Option = Union[str, Tuple[str, str]]


class FormField(Component):
    """Wrapper that renders label, input slot, help, and error text."""

    def __init__(
        self,
        field_id: str,
        label: str,
        *,
        required: bool = False,
        help_text: Optional[str] = None,
        error_text: Optional[str] = None,
    ) -> None:
        self.field_id = field_id
        self.label = label
        self.required = required
        self.help_text = help_text
        self.error_text = error_text

    def _described_by(self) -> Optional[str]:
        ids = []
        if self.help_text:
            ids.append(f"{self.field_id}-help")
        if self.error_text:
            ids.append(f"{self.field_id}-error")
        return " ".join(ids) or None

    def render(self, input_html: str) -> str:
        state_class = " form-field--error" if self.error_text else ""
        required_marker = (
            '<span class="form-required" aria-hidden="true">*</span>'
            if self.required
            else ""
        )
        help_html = (
            f'<p class="form-help" id="{self.field_id}-help">{self.escape(self.help_text)}</p>'
            if self.help_text
            else ""
        )
        error_html = (
            f'<p class="form-error" role="alert" id="{self.field_id}-error">{self.escape(self.error_text)}</p>'
            if self.error_text
            else ""
        )
        label_attrs = self.attributes(for_=self.field_id, class_="form-label")

        return (
            f'<div class="form-field{state_class}">'
            f"<label {label_attrs}>"
            f"{self.escape(self.label)}{required_marker}"
            "</label>"
            f"{input_html}"
            f"{help_html}"
            f"{error_html}"
            "</div>"
        )


class TextAreaField(FormField):
    def render(self, value: str = "", rows: int = 3, **attrs: str) -> str:
        textarea_attrs = self.attributes(
            id=self.field_id,
            name=self.field_id,
            rows=str(rows),
            aria_describedby=self._described_by(),
            aria_invalid="true" if self.error_text else "false",
            **attrs,
        )
        return super().render(f"<textarea {textarea_attrs}>{self.escape(value)}</textarea>")


class TextInputField(FormField):
    """Single-line input (text, email, password, date, number)."""

    def render(
        self,
        *,
        value: str = "",
        input_type: str = "text",
        autocomplete: Optional[str] = None,
        placeholder: Optional[str] = None,
        **attrs: str,
    ) -> str:
        input_attrs = self.attributes(
            id=self.field_id,
            name=self.field_id,
            type=input_type,
            # Passwords are never echoed back into the page.
            value=None if input_type == "password" else value,
            autocomplete=autocomplete,
            placeholder=placeholder,
            required=self.required,
            aria_describedby=self._described_by(),
            aria_invalid="true" if self.error_text else "false",
            **attrs,
        )
        return super().render(f"<input {input_attrs}>")


class SelectField(FormField):
    """Dropdown with plain string options or (value, label) pairs."""

    def render(self, *, options: Iterable[Option], value: str = "", **attrs: str) -> str:
        select_attrs = self.attributes(
            id=self.field_id,
            name=self.field_id,
            required=self.required,
            aria_describedby=self._described_by(),
            aria_invalid="true" if self.error_text else "false",
            **attrs,
        )
        rendered = []
        for option in options:
            opt_value, opt_label = option if isinstance(option, tuple) else (option, option)
            selected = " selected" if str(opt_value) == str(value) else ""
            rendered.append(
                f'<option value="{self.escape(opt_value)}"{selected}>{self.escape(opt_label)}</option>'
            )
        return super().render(f"<select {select_attrs}>{''.join(rendered)}</select>")
