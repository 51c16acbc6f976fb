"""
Form components for the portal.

Provides the field building blocks plus the concrete auth, role setup,
school data and invitation forms.
"""

from .fields import FormField, TextAreaField, TextInputField, SelectField
from .submit import SubmitButton
from .auth_forms import LoginForm, SignupForm, ForgotPasswordForm
from .role_setup_form import RoleSetupForm
from .school_forms import EventForm, StudentForm, ResultForm, MaterialForm, school_error_message
from .invite_form import InviteUserForm

__all__ = [
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
    "school_error_message",
    "InviteUserForm",
]
