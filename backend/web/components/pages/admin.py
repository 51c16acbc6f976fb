"""
Admin page: pending role requests, the user list and the invitation form.

Permissions:
    Rendered only for ADMIN sessions; the routes enforce this before calling.
    Controls that would act on the signed-in admin themselves are omitted.
"""
from typing import Any, Dict, List, Optional

from ..alert import Alert
from ..base import Component
from ..forms.invite_form import ROLE_OPTIONS, InviteUserForm
from ..forms.submit import SubmitButton
from ..navigation import role_label


class AdminPage(Component):
    def __init__(
        self,
        *,
        users: List[Dict[str, Any]],
        pending: List[Dict[str, Any]],
        current_uid: str,
        csrf_token: str,
        alert: Optional[str] = None,
        notice: Optional[str] = None,
        invite_values: Optional[Dict[str, str]] = None,
        invite_errors: Optional[Dict[str, str]] = None,
    ) -> None:
        self.users = users
        self.pending = pending
        self.current_uid = current_uid
        self.csrf_token = csrf_token
        self.alert = alert
        self.notice = notice
        self.invite_values = invite_values
        self.invite_errors = invite_errors

    def _csrf(self) -> str:
        return self.csrf_field(self.csrf_token)

    def _role_select(self, selected: Optional[str]) -> str:
        options = "".join(
            f'<option value="{value}"{" selected" if value == selected else ""}>{self.escape(label)}</option>'
            for value, label in ROLE_OPTIONS
        )
        return f'<select name="role" aria-label="Role">{options}</select>'

    def render(self) -> str:
        return f"""
        <section class="page-header"><h1>Administration</h1></section>
        {Alert(self.alert).render()}
        {Alert(self.notice, kind="success").render()}
        {self._render_pending()}
        {self._render_users()}
        <section class="card">
            <h2>Invite a user</h2>
            {InviteUserForm(self.csrf_token, values=self.invite_values, errors=self.invite_errors).render()}
        </section>
        """

    def _render_pending(self) -> str:
        if not self.pending:
            return '<section class="card"><h2>Pending requests</h2><p class="text-muted">No pending requests.</p></section>'
        rows = []
        for doc in self.pending:
            uid = self.escape(doc.get("uid", ""))
            rows.append(
                f"""
                <tr>
                    <td>{self.escape(doc.get("displayName", ""))}</td>
                    <td>{self.escape(doc.get("email", ""))}</td>
                    <td>{self.escape(role_label(doc.get("requestedRole")))}</td>
                    <td>
                        <form method="post" action="/admin/users/{uid}/approve" class="inline-form">
                            {self._csrf()}
                            {self._role_select(doc.get("requestedRole"))}
                            {SubmitButton("Approve").render()}
                        </form>
                        <form method="post" action="/admin/users/{uid}/reject" class="inline-form">
                            {self._csrf()}
                            {SubmitButton("Reject", variant="secondary").render()}
                        </form>
                    </td>
                </tr>"""
            )
        return f"""
        <section class="card">
            <h2>Pending requests</h2>
            <table class="admin-table">
                <thead><tr><th>Name</th><th>Email</th><th>Requested</th><th>Decision</th></tr></thead>
                <tbody>{''.join(rows)}</tbody>
            </table>
        </section>"""

    def _render_users(self) -> str:
        rows = []
        for doc in self.users:
            uid = self.escape(doc.get("uid", ""))
            disabled = bool(doc.get("disabled"))
            status = "Disabled" if disabled else ("Active" if doc.get("emailVerified") else "Invited")
            if doc.get("uid") == self.current_uid or disabled:
                actions = '<span class="text-muted">-</span>'
            else:
                actions = f"""
                    <form method="post" action="/admin/users/{uid}/role" class="inline-form">
                        {self._csrf()}
                        {self._role_select(doc.get("role"))}
                        {SubmitButton("Update", variant="secondary").render()}
                    </form>
                    <form method="post" action="/admin/users/{uid}/resend" class="inline-form">
                        {self._csrf()}
                        {SubmitButton("Resend invite", variant="secondary").render()}
                    </form>
                    <form method="post" action="/admin/users/{uid}/delete" class="inline-form">
                        {self._csrf()}
                        {SubmitButton("Disable", variant="danger", confirm="Disable this user?").render()}
                    </form>"""
            rows.append(
                f"""
                <tr class="{self.classes("user-row", disabled=disabled)}">
                    <td>{self.escape(doc.get("displayName", ""))}</td>
                    <td>{self.escape(doc.get("email", ""))}</td>
                    <td>{self.escape(role_label(doc.get("role")))}</td>
                    <td>{status}</td>
                    <td>{self.escape((doc.get("createdAt") or "")[:10])}</td>
                    <td>{actions}</td>
                </tr>"""
            )
        return f"""
        <section class="card">
            <h2>Users</h2>
            <table class="admin-table">
                <thead><tr><th>Name</th><th>Email</th><th>Role</th><th>Status</th><th>Created</th><th>Actions</th></tr></thead>
                <tbody>{''.join(rows)}</tbody>
            </table>
        </section>"""
