"""Admin form for inviting a parent, teacher or administrator."""
from typing import Dict, Optional

from identity_access.domain import ADMIN, PARENT, TEACHER

from ..base import Component
from .fields import SelectField, TextInputField
from .submit import SubmitButton

ROLE_OPTIONS = ((PARENT, "Parent"), (TEACHER, "Teacher"), (ADMIN, "Administrator"))


class InviteUserForm(Component):
    def __init__(
        self,
        csrf_token: str,
        *,
        values: Optional[Dict[str, str]] = None,
        errors: Optional[Dict[str, str]] = None,
    ) -> None:
        self.csrf_token = csrf_token
        self.values = values or {}
        self.errors = errors or {}

    def render(self) -> str:
        email = TextInputField("email", "Email", required=True, error_text=self.errors.get("email")).render(
            value=self.values.get("email", ""), input_type="email", class_="form-input"
        )
        name = TextInputField(
            "display_name", "Display name", required=True, error_text=self.errors.get("display_name")
        ).render(value=self.values.get("display_name", ""), class_="form-input")
        role = SelectField("role", "Role", required=True, error_text=self.errors.get("role")).render(
            options=ROLE_OPTIONS, value=self.values.get("role", PARENT), class_="form-input"
        )
        return f"""
        <form method="post" action="/admin/users" class="invite-form" novalidate>
            {self.csrf_field(self.csrf_token)}
            {email}
            {name}
            {role}
            <div class="form-actions">{SubmitButton("Send invitation").render()}</div>
        </form>
        """
