"""
School data JSON API over the caller's session snapshot.

Why:
    The SSR pages and scripted clients share one set of CRUD semantics; both
    delegate to `school.snapshot.SchoolSnapshot`, which validates input and
    keeps the student/result invariant.

Permissions:
    Reading requires a set-up session. Writing is role-based
    (`school.access.can_edit`): ADMIN everything, TEACHER results and
    materials, PARENT nothing.

Errors:
    400 `{"error": "<invalid_*>"}` for validation failures, 404 for unknown
    ids, 403 for missing write access or cross-site requests.
"""
from __future__ import annotations

from dataclasses import asdict
from typing import Any, Callable, Dict

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field

from context import current_session
from routes.security import _is_same_origin, private_no_store
from school.access import EVENTS, MATERIALS, RESULTS, STUDENTS, can_edit
from school.models import GRADES

school_router = APIRouter(tags=["School"])


class EventPayload(BaseModel):
    title: str = Field(..., max_length=200)
    date: str = Field(..., max_length=10)
    type: str = Field(default="academic", max_length=16)
    description: str = Field(default="", max_length=2000)


class StudentPayload(BaseModel):
    name: str = Field(..., max_length=200)
    grade: str = Field(..., max_length=16)
    email: str = Field(default="", max_length=200)
    phone: str = Field(default="", max_length=40)


class ResultPayload(BaseModel):
    student_id: int
    subject: str = Field(..., max_length=40)
    score: int
    date: str = Field(..., max_length=10)
    term: str = Field(default="Q1", max_length=8)


class MaterialPayload(BaseModel):
    name: str = Field(..., max_length=200)
    grade: str = Field(..., max_length=16)
    type: str = Field(default="pdf", max_length=8)
    size: str = Field(default="", max_length=20)


def _private_response(body: Any, *, status_code: int = 200) -> JSONResponse:
    return JSONResponse(body, status_code=status_code, headers=private_no_store())


def _require_writer(request: Request, area: str):
    """Return (snapshot, None) if the caller may edit `area`, else (None, error response)."""
    rec = current_session(request)
    if not _is_same_origin(request):
        return None, _private_response({"error": "forbidden", "detail": "csrf_violation"}, status_code=403)
    if not can_edit(rec.role, area):
        return None, _private_response({"error": "forbidden"}, status_code=403)
    return rec.snapshot, None


def _apply(op: Callable[[], Any], *, status_code: int = 200) -> JSONResponse:
    try:
        record = op()
    except LookupError as exc:
        return _private_response({"error": str(exc.args[0]) if exc.args else "not_found"}, status_code=404)
    except ValueError as exc:
        return _private_response({"error": str(exc)}, status_code=400)
    return _private_response(asdict(record), status_code=status_code)


def _no_content() -> Response:
    return Response(status_code=204, headers=private_no_store())


def _not_found(code: str) -> JSONResponse:
    return _private_response({"error": code}, status_code=404)


def _grade_or_default(grade: str | None) -> str | None:
    grade = grade or GRADES[0]
    return grade if grade in GRADES else None


# --- reads ------------------------------------------------------------------


@school_router.get("/api/school")
async def school_overview(request: Request):
    """Full snapshot of the caller's school data (events, images, materials, students, results)."""
    return _private_response(current_session(request).snapshot.as_dict())


@school_router.get("/api/school/averages")
async def school_averages(request: Request):
    """Average score per grade level (rounded half-up; 0 without data)."""
    return _private_response(current_session(request).snapshot.grade_averages())


@school_router.get("/api/school/results")
async def school_results(request: Request, grade: str | None = None):
    selected = _grade_or_default(grade)
    if selected is None:
        return _private_response({"error": "invalid_grade"}, status_code=400)
    return _private_response(current_session(request).snapshot.student_results(selected))


@school_router.get("/api/school/materials")
async def school_materials(request: Request, grade: str | None = None):
    selected = _grade_or_default(grade)
    if selected is None:
        return _private_response({"error": "invalid_grade"}, status_code=400)
    items = current_session(request).snapshot.materials_for(selected)
    return _private_response([asdict(m) for m in items])


# --- events -----------------------------------------------------------------


@school_router.post("/api/school/events")
async def create_event(request: Request, payload: EventPayload):
    snapshot, error = _require_writer(request, EVENTS)
    if error:
        return error
    return _apply(lambda: snapshot.create_event(payload.model_dump()), status_code=201)


@school_router.put("/api/school/events/{event_id}")
async def update_event(request: Request, event_id: int, payload: EventPayload):
    snapshot, error = _require_writer(request, EVENTS)
    if error:
        return error
    return _apply(lambda: snapshot.update_event(event_id, payload.model_dump()))


@school_router.delete("/api/school/events/{event_id}")
async def delete_event(request: Request, event_id: int):
    snapshot, error = _require_writer(request, EVENTS)
    if error:
        return error
    return _no_content() if snapshot.delete_event(event_id) else _not_found("event_not_found")


# --- students -----------------------------------------------------------------


@school_router.post("/api/school/students")
async def create_student(request: Request, payload: StudentPayload):
    snapshot, error = _require_writer(request, STUDENTS)
    if error:
        return error
    return _apply(lambda: snapshot.create_student(payload.model_dump()), status_code=201)


@school_router.put("/api/school/students/{student_id}")
async def update_student(request: Request, student_id: int, payload: StudentPayload):
    snapshot, error = _require_writer(request, STUDENTS)
    if error:
        return error
    return _apply(lambda: snapshot.update_student(student_id, payload.model_dump()))


@school_router.delete("/api/school/students/{student_id}")
async def delete_student(request: Request, student_id: int):
    """Delete a student together with all of their results."""
    snapshot, error = _require_writer(request, STUDENTS)
    if error:
        return error
    return _no_content() if snapshot.delete_student(student_id) else _not_found("student_not_found")


# --- results ----------------------------------------------------------------


@school_router.post("/api/school/results")
async def create_result(request: Request, payload: ResultPayload):
    snapshot, error = _require_writer(request, RESULTS)
    if error:
        return error
    return _apply(lambda: snapshot.create_result(payload.model_dump()), status_code=201)


@school_router.put("/api/school/results/{result_id}")
async def update_result(request: Request, result_id: int, payload: ResultPayload):
    snapshot, error = _require_writer(request, RESULTS)
    if error:
        return error
    return _apply(lambda: snapshot.update_result(result_id, payload.model_dump()))


@school_router.delete("/api/school/results/{result_id}")
async def delete_result(request: Request, result_id: int):
    snapshot, error = _require_writer(request, RESULTS)
    if error:
        return error
    return _no_content() if snapshot.delete_result(result_id) else _not_found("result_not_found")


# --- materials ----------------------------------------------------------------


@school_router.post("/api/school/materials")
async def create_material(request: Request, payload: MaterialPayload):
    snapshot, error = _require_writer(request, MATERIALS)
    if error:
        return error
    values: Dict[str, Any] = payload.model_dump()
    if not values.get("size"):
        values.pop("size")
    return _apply(lambda: snapshot.create_material(values), status_code=201)


@school_router.delete("/api/school/materials/{material_id}")
async def delete_material(request: Request, material_id: int, grade: str):
    snapshot, error = _require_writer(request, MATERIALS)
    if error:
        return error
    return _no_content() if snapshot.delete_material(grade, material_id) else _not_found("material_not_found")
