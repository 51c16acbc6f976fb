"""
Role-based write access to the school data areas.
"""
from __future__ import annotations

import pytest

from identity_access.domain import ADMIN, PARENT, TEACHER
from school.access import AREAS, EVENTS, MATERIALS, RESULTS, STUDENTS, can_edit


@pytest.mark.parametrize("area", AREAS)
def test_admin_edits_everything(area):
    assert can_edit(ADMIN, area)


@pytest.mark.parametrize("area", AREAS)
def test_parents_and_anonymous_only_read(area):
    assert not can_edit(PARENT, area)
    assert not can_edit(None, area)


def test_teacher_maintains_results_and_materials_only():
    assert can_edit(TEACHER, RESULTS)
    assert can_edit(TEACHER, MATERIALS)
    assert not can_edit(TEACHER, EVENTS)
    assert not can_edit(TEACHER, STUDENTS)


def test_unknown_area_is_never_writable():
    assert not can_edit(ADMIN, "timetable")
