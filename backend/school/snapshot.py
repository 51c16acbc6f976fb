"""
Per-session school data snapshot with CRUD helpers and grade statistics.

Why:
    Portal data is demo data: each authenticated session gets its own copy,
    mutates it in memory and drops it on sign-out. Keeping the operations here
    (instead of in route handlers) makes them testable without HTTP.

Errors:
    - `ValueError(code)` for invalid input (e.g., "invalid_event_type").
    - `LookupError(code)` when a referenced record does not exist.

Invariant:
    Every result references an existing student; deleting a student deletes
    its results.
"""
from __future__ import annotations

from dataclasses import asdict
from datetime import date
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional
import math

from .demo_data import initial_data
from .models import (
    EVENT_TYPES,
    GRADES,
    MATERIAL_TYPES,
    TERMS,
    Event,
    Material,
    Result,
    SchoolData,
    Student,
)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, x.5 going up."""
    return int(math.floor(value + 0.5))


def _require_text(value: object, code: str) -> str:
    text = str(value or "").strip()
    if not text:
        raise ValueError(code)
    return text


def _require_choice(value: object, choices: Iterable[str], code: str) -> str:
    text = str(value or "").strip()
    if text not in choices:
        raise ValueError(code)
    return text


def _require_date(value: object, code: str) -> str:
    text = str(value or "").strip()
    try:
        date.fromisoformat(text)
    except ValueError as exc:
        raise ValueError(code) from exc
    return text


def _require_int(value: object, code: str) -> int:
    if isinstance(value, bool):
        raise ValueError(code)
    try:
        return int(str(value).strip())
    except (TypeError, ValueError) as exc:
        raise ValueError(code) from exc


def _require_score(value: object) -> int:
    score = _require_int(value, "invalid_score")
    if not 0 <= score <= 100:
        raise ValueError("invalid_score")
    return score


class SchoolSnapshot:
    def __init__(self, data: SchoolData | None = None, *, today: Callable[[], date] = date.today) -> None:
        self.data = data if data is not None else initial_data()
        self._today = today

    @classmethod
    def demo(cls) -> "SchoolSnapshot":
        return cls(initial_data())

    # --- ids -----------------------------------------------------------------

    def _all_materials(self) -> List[Material]:
        return [m for items in self.data.materials.values() for m in items]

    @staticmethod
    def _next_id(items: Iterable[Any]) -> int:
        return max((item.id for item in items), default=0) + 1

    # --- events --------------------------------------------------------------

    def _event_fields(self, values: Mapping[str, Any]) -> Dict[str, Any]:
        return {
            "title": _require_text(values.get("title"), "invalid_title"),
            "date": _require_date(values.get("date"), "invalid_date"),
            "type": _require_choice(values.get("type") or "academic", EVENT_TYPES, "invalid_event_type"),
            "description": str(values.get("description") or "").strip(),
        }

    def create_event(self, values: Mapping[str, Any]) -> Event:
        event = Event(id=self._next_id(self.data.events), **self._event_fields(values))
        self.data.events.append(event)
        return event

    def update_event(self, event_id: int, values: Mapping[str, Any]) -> Event:
        event = self.get_event(event_id)
        for key, value in self._event_fields(values).items():
            setattr(event, key, value)
        return event

    def delete_event(self, event_id: int) -> bool:
        before = len(self.data.events)
        self.data.events = [e for e in self.data.events if e.id != event_id]
        return len(self.data.events) != before

    def get_event(self, event_id: int) -> Event:
        for event in self.data.events:
            if event.id == event_id:
                return event
        raise LookupError("event_not_found")

    # --- students ------------------------------------------------------------

    def _student_fields(self, values: Mapping[str, Any]) -> Dict[str, Any]:
        return {
            "name": _require_text(values.get("name"), "invalid_name"),
            "grade": _require_choice(values.get("grade"), GRADES, "invalid_grade"),
            "email": str(values.get("email") or "").strip(),
            "phone": str(values.get("phone") or "").strip(),
        }

    def create_student(self, values: Mapping[str, Any]) -> Student:
        student = Student(id=self._next_id(self.data.students), **self._student_fields(values))
        self.data.students.append(student)
        return student

    def update_student(self, student_id: int, values: Mapping[str, Any]) -> Student:
        student = self.get_student(student_id)
        for key, value in self._student_fields(values).items():
            setattr(student, key, value)
        return student

    def delete_student(self, student_id: int) -> bool:
        """Delete a student and every result that references it."""
        before = len(self.data.students)
        self.data.students = [s for s in self.data.students if s.id != student_id]
        self.data.results = [r for r in self.data.results if r.student_id != student_id]
        return len(self.data.students) != before

    def get_student(self, student_id: int) -> Student:
        for student in self.data.students:
            if student.id == student_id:
                return student
        raise LookupError("student_not_found")

    # --- results (grades) ------------------------------------------------------

    def _result_fields(self, values: Mapping[str, Any]) -> Dict[str, Any]:
        student_id = _require_int(values.get("student_id"), "invalid_student")
        self.get_student(student_id)
        return {
            "student_id": student_id,
            "subject": _require_text(values.get("subject"), "invalid_subject"),
            "score": _require_score(values.get("score")),
            "date": _require_date(values.get("date"), "invalid_date"),
            "term": _require_choice(values.get("term") or "Q1", TERMS, "invalid_term"),
        }

    def create_result(self, values: Mapping[str, Any]) -> Result:
        result = Result(id=self._next_id(self.data.results), **self._result_fields(values))
        self.data.results.append(result)
        return result

    def update_result(self, result_id: int, values: Mapping[str, Any]) -> Result:
        result = self.get_result(result_id)
        for key, value in self._result_fields(values).items():
            setattr(result, key, value)
        return result

    def delete_result(self, result_id: int) -> bool:
        before = len(self.data.results)
        self.data.results = [r for r in self.data.results if r.id != result_id]
        return len(self.data.results) != before

    def get_result(self, result_id: int) -> Result:
        for result in self.data.results:
            if result.id == result_id:
                return result
        raise LookupError("result_not_found")

    # --- materials -------------------------------------------------------------

    def create_material(self, values: Mapping[str, Any]) -> Material:
        grade = _require_choice(values.get("grade"), GRADES, "invalid_grade")
        material = Material(
            id=self._next_id(self._all_materials()),
            name=_require_text(values.get("name"), "invalid_name"),
            type=_require_choice(values.get("type") or "pdf", MATERIAL_TYPES, "invalid_material_type"),
            size=str(values.get("size") or "1.0 MB").strip(),
            upload_date=self._today().isoformat(),
        )
        self.data.materials.setdefault(grade, []).append(material)
        return material

    def delete_material(self, grade: str, material_id: int) -> bool:
        items = self.data.materials.get(grade, [])
        kept = [m for m in items if m.id != material_id]
        if grade in self.data.materials:
            self.data.materials[grade] = kept
        return len(kept) != len(items)

    def materials_for(self, grade: str) -> List[Material]:
        return list(self.data.materials.get(grade, []))

    # --- statistics --------------------------------------------------------------

    def grade_averages(self) -> List[Dict[str, Any]]:
        """Average score per grade level, rounded half-up; 0 without data."""
        averages: List[Dict[str, Any]] = []
        for grade in GRADES:
            ids = {s.id for s in self.data.students if s.grade == grade}
            scores = [r.score for r in self.data.results if r.student_id in ids]
            average = round_half_up(sum(scores) / len(scores)) if scores else 0
            averages.append({"grade": grade, "average": average})
        return averages

    def student_results(self, grade: str) -> List[Dict[str, Any]]:
        """One row per student of `grade`: id, name and score per subject.

        Subjects are keyed in lowercase; a later result for the same subject
        replaces an earlier one.
        """
        rows: List[Dict[str, Any]] = []
        for student in self.data.students:
            if student.grade != grade:
                continue
            row: Dict[str, Any] = {"id": student.id, "student": student.name}
            for result in self.data.results:
                if result.student_id == student.id:
                    row[result.subject.lower()] = result.score
            rows.append(row)
        return rows

    def find_result(self, student_id: int, subject: str) -> Optional[Result]:
        for result in self.data.results:
            if result.student_id == student_id and result.subject.lower() == subject.lower():
                return result
        return None

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self.data)
