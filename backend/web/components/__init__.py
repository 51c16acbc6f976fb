# Portal component system
# Pure Python components for type-safe HTML generation

from .base import Component
from .alert import Alert
from .layout import Layout
from .navigation import Navigation
from .forms import (
    FormField,
    TextAreaField,
    TextInputField,
    SelectField,
    SubmitButton,
    LoginForm,
    SignupForm,
    ForgotPasswordForm,
    RoleSetupForm,
    EventForm,
    StudentForm,
    ResultForm,
    MaterialForm,
    InviteUserForm,
)
from .pages import DashboardPage, ResultsPage, MaterialsPage, AdminPage

__all__ = [
    "Component",
    "Alert",
    "Layout",
    "Navigation",
    "FormField",
    "TextAreaField",
    "TextInputField",
    "SelectField",
    "SubmitButton",
    "LoginForm",
    "SignupForm",
    "ForgotPasswordForm",
    "RoleSetupForm",
    "EventForm",
    "StudentForm",
    "ResultForm",
    "MaterialForm",
    "InviteUserForm",
    "DashboardPage",
    "ResultsPage",
    "MaterialsPage",
    "AdminPage",
]
