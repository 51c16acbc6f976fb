"""
Create/edit forms for events, students, results and materials.

The same form renders for create and edit; `action` decides where it posts.
Snapshot validation codes (e.g. "invalid_score") are translated here.
"""
from typing import Any, Dict, Iterable, Mapping, Optional

from school.models import EVENT_TYPES, GRADES, MATERIAL_TYPES, SUBJECTS, TERMS, Student

from ..alert import Alert
from ..base import Component
from .fields import SelectField, TextAreaField, TextInputField
from .submit import SubmitButton

SCHOOL_ERROR_MESSAGES: Dict[str, str] = {
    "invalid_title": "Please enter a title.",
    "invalid_date": "Please enter a valid date (YYYY-MM-DD).",
    "invalid_event_type": "Please select a valid event type.",
    "invalid_name": "Please enter a name.",
    "invalid_grade": "Please select a valid grade.",
    "invalid_student": "Please select a student.",
    "student_not_found": "The selected student does not exist.",
    "invalid_subject": "Please select a subject.",
    "invalid_score": "Score must be a whole number between 0 and 100.",
    "invalid_term": "Please select a valid term.",
    "invalid_material_type": "Please select a valid material type.",
    "event_not_found": "Event not found.",
    "result_not_found": "Result not found.",
    "material_not_found": "Material not found.",
    "forbidden": "Your role cannot change this data.",
    "csrf": "Your form expired. Please try again.",
}


def school_error_message(code: Optional[str]) -> str:
    return SCHOOL_ERROR_MESSAGES.get(code or "", "Something went wrong. Please try again.")


class _SchoolForm(Component):
    css_class = "school-form"

    def __init__(
        self,
        csrf_token: str,
        *,
        action: str,
        values: Optional[Mapping[str, Any]] = None,
        error: Optional[str] = None,
        submit_label: str = "Save",
    ) -> None:
        self.csrf_token = csrf_token
        self.action = action
        self.values = {k: "" if v is None else str(v) for k, v in (values or {}).items()}
        self.error = error
        self.submit_label = submit_label

    def fields(self) -> str:
        raise NotImplementedError

    def render(self) -> str:
        error_html = Alert(school_error_message(self.error)).render() if self.error else ""
        return f"""
        <form method="post" action="{self.escape(self.action)}" class="{self.css_class}">
            {self.csrf_field(self.csrf_token)}
            {error_html}
            {self.fields()}
            <div class="form-actions">{SubmitButton(self.submit_label).render()}</div>
        </form>
        """

    def _text(self, field_id: str, label: str, input_type: str = "text", required: bool = True, **attrs: str) -> str:
        return TextInputField(field_id, label, required=required).render(
            value=self.values.get(field_id, ""), input_type=input_type, class_="form-input", **attrs
        )

    def _select(self, field_id: str, label: str, options: Iterable, default: str = "") -> str:
        return SelectField(field_id, label, required=True).render(
            options=options, value=self.values.get(field_id, default), class_="form-input"
        )


class EventForm(_SchoolForm):
    css_class = "school-form event-form"

    def fields(self) -> str:
        return (
            self._text("title", "Title")
            + self._text("date", "Date", "date")
            + self._select("type", "Type", [(t, t.capitalize()) for t in EVENT_TYPES], "academic")
            + TextAreaField("description", "Description").render(
                value=self.values.get("description", ""), class_="form-input"
            )
        )


class StudentForm(_SchoolForm):
    css_class = "school-form student-form"

    def fields(self) -> str:
        return (
            self._text("name", "Name")
            + self._select("grade", "Grade", GRADES, GRADES[0])
            + self._text("email", "Email", "email", required=False)
            + self._text("phone", "Phone", "tel", required=False)
        )


class ResultForm(_SchoolForm):
    css_class = "school-form result-form"

    def __init__(self, csrf_token: str, *, students: Iterable[Student], **kwargs: Any) -> None:
        super().__init__(csrf_token, **kwargs)
        self.students = list(students)

    def fields(self) -> str:
        student_options = [(str(s.id), f"{s.name} ({s.grade})") for s in self.students]
        return (
            self._select("student_id", "Student", student_options)
            + self._select("subject", "Subject", SUBJECTS, SUBJECTS[0])
            + self._text("score", "Score", "number", min="0", max="100")
            + self._text("date", "Date", "date")
            + self._select("term", "Term", TERMS, "Q1")
        )


class MaterialForm(_SchoolForm):
    css_class = "school-form material-form"

    def fields(self) -> str:
        return (
            self._text("name", "Name")
            + self._select("grade", "Grade", GRADES, GRADES[0])
            + self._select("type", "Type", [(t, t.upper()) for t in MATERIAL_TYPES], "pdf")
            + self._text("size", "Size", required=False, placeholder="1.0 MB")
        )
