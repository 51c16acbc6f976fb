"""
Role selection shown to authenticated users without a metadata document.
"""
from typing import Optional

from identity_access.domain import ADMIN, PARENT, TEACHER

from ..alert import Alert
from ..base import Component
from .submit import SubmitButton

ROLE_CHOICES = (
    (PARENT, "Parent", "See events, results and learning materials for your child."),
    (TEACHER, "Teacher", "Enter results and upload learning materials."),
    (ADMIN, "Administrator", "Manage the school portal and its users. Requires approval unless you are the first administrator."),
)


class RoleSetupForm(Component):
    def __init__(
        self,
        csrf_token: str,
        *,
        display_name: str = "",
        selected: Optional[str] = None,
        alert: Optional[str] = None,
    ) -> None:
        self.csrf_token = csrf_token
        self.display_name = display_name
        self.selected = selected or PARENT
        self.alert = alert

    def render(self) -> str:
        options = []
        for value, label, description in ROLE_CHOICES:
            checked = " checked" if value == self.selected else ""
            options.append(
                f"""
                <label class="role-option">
                    <input type="radio" name="role" value="{value}"{checked}>
                    <span class="role-option__label">{self.escape(label)}</span>
                    <span class="role-option__help">{self.escape(description)}</span>
                </label>"""
            )
        greeting = f"Welcome, {self.display_name}!" if self.display_name else "Welcome!"
        return f"""
        <section class="auth-card">
            <h1>{self.escape(greeting)}</h1>
            <p>Choose how you will use the portal.</p>
            {Alert(self.alert).render()}
            <form method="post" action="/setup" class="role-setup-form">
                {self.csrf_field(self.csrf_token)}
                <fieldset>
                    <legend>Role</legend>
                    {''.join(options)}
                </fieldset>
                <div class="form-actions">{SubmitButton("Continue").render()}</div>
            </form>
            <div class="auth-links"><a href="/auth/logout">Sign out</a></div>
        </section>
        """
