"""Learning materials per grade, with upload and delete for editors."""
from typing import Any, Dict, Optional

from school.access import MATERIALS, can_edit
from school.snapshot import SchoolSnapshot

from ..base import Component
from ..forms.school_forms import MaterialForm
from ..forms.submit import SubmitButton
from .results import GradeSelector


class MaterialsPage(Component):
    def __init__(
        self,
        snapshot: SchoolSnapshot,
        *,
        grade: str,
        role: Optional[str],
        csrf_token: str,
        error: Optional[str] = None,
        values: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.snapshot = snapshot
        self.grade = grade
        self.role = role
        self.csrf_token = csrf_token
        self.error = error
        self.values = values

    def render(self) -> str:
        editable = can_edit(self.role, MATERIALS)
        items = []
        for material in self.snapshot.materials_for(self.grade):
            delete = ""
            if editable:
                delete = f"""
                <form method="post" action="/school/materials/{material.id}/delete" class="inline-form">
                    {self.csrf_field(self.csrf_token)}
                    <input type="hidden" name="grade" value="{self.escape(self.grade)}">
                    {SubmitButton("Delete", variant="danger", confirm="Delete this material?").render()}
                </form>"""
            items.append(
                f"""
                <li class="material material--{self.escape(material.type)}">
                    <strong>{self.escape(material.name)}</strong>
                    <span class="badge">{self.escape(material.type.upper())}</span>
                    <span class="text-muted">{self.escape(material.size)} · {self.escape(material.upload_date)}</span>
                    {delete}
                </li>"""
            )
        listing = (
            f'<ul class="material-list">{"".join(items)}</ul>'
            if items
            else f'<p class="text-muted">No materials for {self.escape(self.grade)} yet.</p>'
        )
        form = ""
        if editable:
            values = self.values if self.error else {"grade": self.grade}
            form = (
                f'<details class="add-form"{" open" if self.error else ""}><summary>Upload material</summary>'
                + MaterialForm(
                    self.csrf_token, action="/school/materials", values=values, error=self.error, submit_label="Upload"
                ).render()
                + "</details>"
            )
        return f"""
        <section class="page-header">
            <h1>Learning materials</h1>
            {GradeSelector("/materials", self.grade).render()}
        </section>
        <section class="card">
            {listing}
            {form}
        </section>
        """
