"""
Write access to the school data areas by role.

Admins edit everything; teachers maintain results and materials; parents only
read. Reading is open to every set-up role.
"""
from __future__ import annotations

from typing import Optional

from identity_access.domain import ADMIN, TEACHER

EVENTS = "events"
STUDENTS = "students"
RESULTS = "results"
MATERIALS = "materials"

AREAS = (EVENTS, STUDENTS, RESULTS, MATERIALS)

_WRITERS = {
    EVENTS: frozenset({ADMIN}),
    STUDENTS: frozenset({ADMIN}),
    RESULTS: frozenset({ADMIN, TEACHER}),
    MATERIALS: frozenset({ADMIN, TEACHER}),
}


def can_edit(role: Optional[str], area: str) -> bool:
    return role in _WRITERS.get(area, frozenset())
