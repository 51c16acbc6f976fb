"""
School data snapshot: demo data, CRUD validation, cascade delete and averages.
"""
from __future__ import annotations

from datetime import date

import pytest

from school.models import GRADES
from school.snapshot import SchoolSnapshot, round_half_up


@pytest.fixture
def snap() -> SchoolSnapshot:
    return SchoolSnapshot.demo()


def _average(snap: SchoolSnapshot, grade: str) -> int:
    return next(row["average"] for row in snap.grade_averages() if row["grade"] == grade)


def test_demo_data_is_a_fresh_copy_per_snapshot():
    a, b = SchoolSnapshot.demo(), SchoolSnapshot.demo()
    a.delete_event(1)
    assert len(a.data.events) == 2
    assert len(b.data.events) == 3


def test_grade_averages_cover_every_grade_and_default_to_zero(snap):
    averages = snap.grade_averages()
    assert [row["grade"] for row in averages] == list(GRADES)
    # Grade 1: Alice and Bob, scores 85 78 92 76 88 79 -> 83
    assert _average(snap, "Grade 1") == 83
    assert _average(snap, "Grade 2") == 0


def test_average_for_single_student(snap):
    snap.delete_student(2)
    # Alice only: (85 + 78 + 92) / 3 = 85
    assert _average(snap, "Grade 1") == 85


def test_round_half_up():
    assert round_half_up(84.5) == 85
    assert round_half_up(84.49) == 84
    assert round_half_up(0.5) == 1


def test_average_rounds_half_up(snap):
    student = snap.create_student({"name": "Eve", "grade": "Grade 3"})
    snap.create_result({"student_id": student.id, "subject": "Math", "score": 80, "date": "2024-09-01"})
    snap.create_result({"student_id": student.id, "subject": "Art", "score": 81, "date": "2024-09-01"})
    assert _average(snap, "Grade 3") == 81


def test_delete_student_removes_their_results(snap):
    assert snap.delete_student(1) is True
    assert all(r.student_id != 1 for r in snap.data.results)
    assert len(snap.data.results) == 3
    assert snap.delete_student(1) is False


def test_every_result_references_an_existing_student(snap):
    with pytest.raises(LookupError) as exc:
        snap.create_result({"student_id": 99, "subject": "Math", "score": 50, "date": "2024-09-01"})
    assert exc.value.args[0] == "student_not_found"


def test_new_ids_follow_the_highest_existing_id(snap):
    snap.delete_event(2)
    event = snap.create_event({"title": "Concert", "date": "2024-10-01", "type": "cultural"})
    assert event.id == 4


def test_event_validation_codes(snap):
    with pytest.raises(ValueError, match="invalid_title"):
        snap.create_event({"title": " ", "date": "2024-10-01"})
    with pytest.raises(ValueError, match="invalid_date"):
        snap.create_event({"title": "X", "date": "tomorrow"})
    with pytest.raises(ValueError, match="invalid_event_type"):
        snap.create_event({"title": "X", "date": "2024-10-01", "type": "party"})


def test_update_event_and_missing_event(snap):
    updated = snap.update_event(1, {"title": "Science Expo", "date": "2024-09-16", "type": "academic"})
    assert updated.title == "Science Expo"
    assert snap.get_event(1).date == "2024-09-16"
    with pytest.raises(LookupError):
        snap.update_event(42, {"title": "X", "date": "2024-10-01"})


def test_score_bounds(snap):
    for score in (-1, 101, "abc", True):
        with pytest.raises(ValueError, match="invalid_score"):
            snap.create_result({"student_id": 1, "subject": "Math", "score": score, "date": "2024-09-01"})
    result = snap.create_result({"student_id": 1, "subject": "Math", "score": "100", "date": "2024-09-01"})
    assert result.score == 100


def test_student_grade_must_be_known(snap):
    with pytest.raises(ValueError, match="invalid_grade"):
        snap.create_student({"name": "Zed", "grade": "Grade 9"})


def test_student_results_rows_key_subjects_in_lowercase(snap):
    rows = snap.student_results("Grade 1")
    alice = next(row for row in rows if row["id"] == 1)
    assert alice == {"id": 1, "student": "Alice Johnson", "math": 85, "english": 78, "science": 92}
    assert snap.student_results("Grade 5") == []


def test_materials_create_and_delete_per_grade():
    snap = SchoolSnapshot.demo()
    snap._today = lambda: date(2024, 9, 30)
    material = snap.create_material({"name": "Poems", "grade": "Grade 3", "type": "doc"})
    assert material.id == 5
    assert material.upload_date == "2024-09-30"
    assert material.size == "1.0 MB"
    assert [m.name for m in snap.materials_for("Grade 3")] == ["Poems"]
    assert snap.delete_material("Grade 1", material.id) is False
    assert snap.delete_material("Grade 3", material.id) is True
    assert snap.materials_for("Grade 3") == []


def test_material_type_validation(snap):
    with pytest.raises(ValueError, match="invalid_material_type"):
        snap.create_material({"name": "Clip", "grade": "Grade 1", "type": "exe"})


def test_as_dict_is_json_ready(snap):
    data = snap.as_dict()
    assert set(data) == {"events", "school_images", "materials", "students", "results"}
    assert data["students"][0]["name"] == "Alice Johnson"
