"""
Authentication forms: sign in, sign up and password reset.

Field errors come from `validation.py` and are shown per field; identity
provider failures arrive as an already translated message and are shown as
an alert above the form.
"""
from typing import Dict, Optional

from ..alert import Alert
from ..base import Component
from .fields import TextInputField
from .submit import SubmitButton


class _AuthForm(Component):
    action = ""
    title = ""

    def __init__(
        self,
        *,
        values: Optional[Dict[str, str]] = None,
        errors: Optional[Dict[str, str]] = None,
        alert: Optional[str] = None,
        notice: Optional[str] = None,
    ) -> None:
        self.values = values or {}
        self.errors = errors or {}
        self.alert = alert
        self.notice = notice

    def _field(self, field_id: str, label: str, input_type: str = "text", autocomplete: Optional[str] = None) -> str:
        return TextInputField(field_id, label, required=True, error_text=self.errors.get(field_id)).render(
            value=self.values.get(field_id, ""),
            input_type=input_type,
            autocomplete=autocomplete,
            class_="form-input",
        )

    def fields(self) -> str:
        raise NotImplementedError

    def footer(self) -> str:
        return ""

    def submit_label(self) -> str:
        raise NotImplementedError

    def render(self) -> str:
        return f"""
        <section class="auth-card">
            <h1>{self.escape(self.title)}</h1>
            {Alert(self.alert).render()}
            {Alert(self.notice, kind="success").render()}
            <form method="post" action="{self.action}" class="auth-form" novalidate>
                {self.fields()}
                <div class="form-actions">{SubmitButton(self.submit_label()).render()}</div>
            </form>
            <div class="auth-links">{self.footer()}</div>
        </section>
        """


class LoginForm(_AuthForm):
    action = "/auth/login"
    title = "Sign in"

    def __init__(self, *, redirect: Optional[str] = None, **kwargs) -> None:
        super().__init__(**kwargs)
        self.redirect = redirect

    def fields(self) -> str:
        hidden = (
            f'<input type="hidden" name="redirect" value="{self.escape(self.redirect)}">'
            if self.redirect
            else ""
        )
        return (
            hidden
            + self._field("email", "Email", "email", "username")
            + self._field("password", "Password", "password", "current-password")
        )

    def submit_label(self) -> str:
        return "Sign in"

    def footer(self) -> str:
        return (
            '<a href="/auth/forgot">Forgot your password?</a>'
            '<span> · </span>'
            '<a href="/auth/signup">Create an account</a>'
        )


class SignupForm(_AuthForm):
    action = "/auth/signup"
    title = "Create an account"

    def fields(self) -> str:
        return (
            self._field("display_name", "Full name", autocomplete="name")
            + self._field("email", "Email", "email", "email")
            + self._field("password", "Password", "password", "new-password")
            + self._field("confirm_password", "Confirm password", "password", "new-password")
        )

    def submit_label(self) -> str:
        return "Sign up"

    def footer(self) -> str:
        return 'Already have an account? <a href="/auth/login">Sign in</a>'


class ForgotPasswordForm(_AuthForm):
    action = "/auth/forgot"
    title = "Reset your password"

    def fields(self) -> str:
        return self._field("email", "Email", "email", "email")

    def submit_label(self) -> str:
        return "Send reset link"

    def footer(self) -> str:
        return '<a href="/auth/login">Back to sign in</a>'
