"""Dashboard: school gallery, upcoming events and average scores per grade."""
from typing import Any, Dict, List, Optional

from school.access import EVENTS, can_edit
from school.snapshot import SchoolSnapshot

from ..base import Component
from ..forms.school_forms import EventForm
from ..forms.submit import SubmitButton


class DashboardPage(Component):
    def __init__(
        self,
        snapshot: SchoolSnapshot,
        *,
        user: Dict[str, Any],
        csrf_token: str,
        error: Optional[str] = None,
        values: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.snapshot = snapshot
        self.user = user
        self.csrf_token = csrf_token
        self.error = error
        self.values = values

    @property
    def editable(self) -> bool:
        return can_edit(self.user.get("role"), EVENTS)

    def render(self) -> str:
        name = self.user.get("name") or ""
        return f"""
        <section class="page-header">
            <h1>Welcome back, {self.escape(name)}</h1>
        </section>
        {self._render_gallery()}
        <div class="grid-2">
            {self._render_events()}
            {self._render_averages(self.snapshot.grade_averages())}
        </div>
        """

    def _render_gallery(self) -> str:
        images = "".join(
            f'<figure class="gallery-item"><img src="{self.escape(img.url)}" alt="{self.escape(img.alt)}" loading="lazy">'
            f"<figcaption>{self.escape(img.alt)}</figcaption></figure>"
            for img in self.snapshot.data.school_images
        )
        return f'<section class="gallery" aria-label="School gallery">{images}</section>'

    def _render_events(self) -> str:
        events = sorted(self.snapshot.data.events, key=lambda e: e.date)
        items = []
        for event in events:
            controls = ""
            if self.editable:
                controls = f"""
                <div class="item-actions">
                    <a class="btn btn-link" href="/school/events/{event.id}/edit">Edit</a>
                    <form method="post" action="/school/events/{event.id}/delete" class="inline-form">
                        {self.csrf_field(self.csrf_token)}
                        {SubmitButton("Delete", variant="danger", confirm="Delete this event?").render()}
                    </form>
                </div>"""
            items.append(
                f"""
                <li class="event event--{self.escape(event.type)}">
                    <div class="event-date">{self.escape(event.date)}</div>
                    <div class="event-body">
                        <strong>{self.escape(event.title)}</strong>
                        <span class="badge">{self.escape(event.type)}</span>
                        <p>{self.escape(event.description)}</p>
                    </div>
                    {controls}
                </li>"""
            )
        listing = f'<ul class="event-list">{"".join(items)}</ul>' if items else '<p class="text-muted">No upcoming events.</p>'
        form = ""
        if self.editable:
            form = (
                "<details class=\"add-form\"" + (" open" if self.error else "") + "><summary>Add event</summary>"
                + EventForm(
                    self.csrf_token,
                    action="/school/events",
                    values=self.values,
                    error=self.error,
                    submit_label="Add event",
                ).render()
                + "</details>"
            )
        return f"""
        <section class="card">
            <h2>Upcoming events</h2>
            {listing}
            {form}
        </section>"""

    def _render_averages(self, averages: List[Dict[str, Any]]) -> str:
        rows = "".join(
            f"""
            <tr>
                <th scope="row">{self.escape(row['grade'])}</th>
                <td>
                    <meter min="0" max="100" value="{int(row['average'])}">{int(row['average'])}%</meter>
                    <span class="average-value">{int(row['average'])}%</span>
                </td>
            </tr>"""
            for row in averages
        )
        return f"""
        <section class="card">
            <h2>Average score by grade</h2>
            <table class="averages">
                <thead><tr><th scope="col">Grade</th><th scope="col">Average</th></tr></thead>
                <tbody>{rows}</tbody>
            </table>
        </section>"""
