"""
Results page: per-grade score table, result entries and the student roster.

Teachers and admins see the entry controls; only admins manage students.
"""
from typing import Any, Dict, Optional

from school.access import RESULTS, STUDENTS, can_edit
from school.models import GRADES, SUBJECTS
from school.snapshot import SchoolSnapshot

from ..base import Component
from ..forms.school_forms import ResultForm, StudentForm
from ..forms.submit import SubmitButton


class GradeSelector(Component):
    def __init__(self, action: str, selected: str) -> None:
        self.action = action
        self.selected = selected

    def render(self) -> str:
        options = "".join(
            f'<option value="{self.escape(g)}"{" selected" if g == self.selected else ""}>{self.escape(g)}</option>'
            for g in GRADES
        )
        return f"""
        <form method="get" action="{self.escape(self.action)}" class="grade-selector">
            <label for="grade">Grade</label>
            <select id="grade" name="grade">{options}</select>
            <button type="submit" class="btn btn-secondary">Show</button>
        </form>"""


class ResultsPage(Component):
    def __init__(
        self,
        snapshot: SchoolSnapshot,
        *,
        grade: str,
        role: Optional[str],
        csrf_token: str,
        result_error: Optional[str] = None,
        student_error: Optional[str] = None,
        values: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.snapshot = snapshot
        self.grade = grade
        self.role = role
        self.csrf_token = csrf_token
        self.result_error = result_error
        self.student_error = student_error
        self.values = values or {}

    def render(self) -> str:
        return f"""
        <section class="page-header">
            <h1>Results</h1>
            {GradeSelector("/results", self.grade).render()}
        </section>
        {self._render_table()}
        {self._render_entries() if can_edit(self.role, RESULTS) else ""}
        {self._render_students() if can_edit(self.role, STUDENTS) else ""}
        """

    def _render_table(self) -> str:
        rows = self.snapshot.student_results(self.grade)
        if not rows:
            return f'<section class="card"><p class="text-muted">No students in {self.escape(self.grade)}.</p></section>'
        head = "".join(f'<th scope="col">{self.escape(s)}</th>' for s in SUBJECTS)
        body = []
        for row in rows:
            cells = "".join(
                f"<td>{self.escape(row.get(subject.lower(), '-'))}</td>" for subject in SUBJECTS
            )
            body.append(f'<tr><th scope="row">{self.escape(row["student"])}</th>{cells}</tr>')
        return f"""
        <section class="card">
            <table class="results-table">
                <thead><tr><th scope="col">Student</th>{head}</tr></thead>
                <tbody>{''.join(body)}</tbody>
            </table>
        </section>"""

    def _delete_form(self, action: str, confirm: str) -> str:
        return f"""
        <form method="post" action="{action}" class="inline-form">
            {self.csrf_field(self.csrf_token)}
            {SubmitButton("Delete", variant="danger", confirm=confirm).render()}
        </form>"""

    def _render_entries(self) -> str:
        students = [s for s in self.snapshot.data.students if s.grade == self.grade]
        names = {s.id: s.name for s in students}
        items = []
        for result in self.snapshot.data.results:
            if result.student_id not in names:
                continue
            items.append(
                f"""
                <li>
                    <span>{self.escape(names[result.student_id])}: {self.escape(result.subject)}
                    {result.score} ({self.escape(result.term)}, {self.escape(result.date)})</span>
                    <a class="btn btn-link" href="/school/results/{result.id}/edit">Edit</a>
                    {self._delete_form(f"/school/results/{result.id}/delete", "Delete this result?")}
                </li>"""
            )
        listing = f'<ul class="entry-list">{"".join(items)}</ul>' if items else ""
        form = ResultForm(
            self.csrf_token,
            students=students or self.snapshot.data.students,
            action="/school/results",
            values=self.values if self.result_error else None,
            error=self.result_error,
            submit_label="Add result",
        ).render()
        return f"""
        <section class="card">
            <h2>Result entries</h2>
            {listing}
            <details class="add-form"{" open" if self.result_error else ""}><summary>Add result</summary>{form}</details>
        </section>"""

    def _render_students(self) -> str:
        items = []
        for student in self.snapshot.data.students:
            if student.grade != self.grade:
                continue
            items.append(
                f"""
                <li>
                    <span>{self.escape(student.name)} · {self.escape(student.email)} · {self.escape(student.phone)}</span>
                    <a class="btn btn-link" href="/school/students/{student.id}/edit">Edit</a>
                    {self._delete_form(f"/school/students/{student.id}/delete", "Delete this student and all of their results?")}
                </li>"""
            )
        form = StudentForm(
            self.csrf_token,
            action="/school/students",
            values=self.values if self.student_error else {"grade": self.grade},
            error=self.student_error,
            submit_label="Add student",
        ).render()
        return f"""
        <section class="card">
            <h2>Students</h2>
            <ul class="entry-list">{''.join(items)}</ul>
            <details class="add-form"{" open" if self.student_error else ""}><summary>Add student</summary>{form}</details>
        </section>"""
