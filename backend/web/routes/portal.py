"""
Server-rendered portal pages and their form posts.

Pages: dashboard (`/`), results, materials and admin. Form posts under
`/school/...` mutate the caller's session snapshot and follow
Post/Redirect/Get; invalid input re-renders the page with status 400 and the
submitted values.

Permissions:
    Set-up sessions only (enforced by the auth middleware). Writes require
    `school.access.can_edit`; every form post carries the session CSRF token.
"""
from __future__ import annotations

from typing import Any, Callable, Dict, Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, JSONResponse, Response
import logging

from components import DashboardPage, EventForm, MaterialsPage, ResultForm, ResultsPage, StudentForm
from context import current_session
from rendering import layout_response, see_other
from routes.security import csrf_token_for, private_no_store, validate_csrf
from school.access import EVENTS, MATERIALS, RESULTS, STUDENTS, can_edit
from school.models import GRADES

portal_router = APIRouter(tags=["Portal"])
logger = logging.getLogger("portal.web.portal")


def _selected_grade(grade: Optional[str]) -> str:
    return grade if grade in GRADES else GRADES[0]


def _grade_url(path: str, grade: str, notice: str) -> str:
    """`_grade_url("/results", "Grade 1", "saved")` -> "/results?grade=Grade+1&notice=saved"."""
    return f"{path}?{urlencode({'grade': grade, 'notice': notice})}"


async def _guarded_form(request: Request, area: str):
    """Parse a form post and check CSRF plus write access.

    Returns (record, form, None) or (None, None, error response).
    """
    rec = current_session(request)
    form = await request.form()
    if not validate_csrf(rec.session_id, form.get("csrf_token")):
        return None, None, JSONResponse(
            {"error": "forbidden", "detail": "csrf_violation"}, status_code=403, headers=private_no_store()
        )
    if not can_edit(rec.role, area):
        return None, None, JSONResponse({"error": "forbidden"}, status_code=403, headers=private_no_store())
    return rec, {k: str(v) for k, v in form.items() if k != "csrf_token"}, None


def _error_code(exc: Exception) -> str:
    return str(exc.args[0]) if exc.args else "error"


# --- pages ----------------------------------------------------------------------


def _dashboard(request: Request, *, error: Optional[str] = None, values: Optional[Dict[str, Any]] = None,
               status_code: int = 200) -> HTMLResponse:
    rec = current_session(request)
    page = DashboardPage(
        rec.snapshot, user=request.state.user, csrf_token=csrf_token_for(rec.session_id), error=error, values=values
    )
    return layout_response(request, title="Dashboard", content=page.render(), status_code=status_code)


def _results(request: Request, grade: Optional[str], *, status_code: int = 200, **errors: Any) -> HTMLResponse:
    rec = current_session(request)
    page = ResultsPage(
        rec.snapshot,
        grade=_selected_grade(grade),
        role=rec.role,
        csrf_token=csrf_token_for(rec.session_id),
        **errors,
    )
    return layout_response(request, title="Results", content=page.render(), status_code=status_code)


def _materials(request: Request, grade: Optional[str], *, error: Optional[str] = None,
               values: Optional[Dict[str, Any]] = None, status_code: int = 200) -> HTMLResponse:
    rec = current_session(request)
    page = MaterialsPage(
        rec.snapshot,
        grade=_selected_grade(grade),
        role=rec.role,
        csrf_token=csrf_token_for(rec.session_id),
        error=error,
        values=values,
    )
    return layout_response(request, title="Learning materials", content=page.render(), status_code=status_code)


@portal_router.get("/", response_class=HTMLResponse)
async def dashboard(request: Request):
    return _dashboard(request)


@portal_router.get("/results", response_class=HTMLResponse)
async def results_page(request: Request, grade: Optional[str] = None):
    return _results(request, grade)


@portal_router.get("/materials", response_class=HTMLResponse)
async def materials_page(request: Request, grade: Optional[str] = None):
    return _materials(request, grade)


# --- edit pages ---------------------------------------------------------------------


def _edit_page(request: Request, title: str, form_html: str, back: str, *, status_code: int = 200) -> HTMLResponse:
    content = f"""
    <section class="page-header"><h1>{title}</h1></section>
    <section class="card">{form_html}<p><a href="{back}">Cancel</a></p></section>
    """
    return layout_response(request, title=title, content=content, status_code=status_code)


def _forbidden_page(request: Request) -> HTMLResponse:
    return layout_response(
        request,
        title="Forbidden",
        content="<p>Your role cannot change this data.</p>",
        status_code=403,
    )


def _missing_page(request: Request) -> HTMLResponse:
    return layout_response(request, title="Not found", content="<p>This entry does not exist.</p>", status_code=404)


@portal_router.get("/school/events/{event_id}/edit", response_class=HTMLResponse)
async def edit_event_page(request: Request, event_id: int):
    rec = current_session(request)
    if not can_edit(rec.role, EVENTS):
        return _forbidden_page(request)
    try:
        event = rec.snapshot.get_event(event_id)
    except LookupError:
        return _missing_page(request)
    form = EventForm(csrf_token_for(rec.session_id), action=f"/school/events/{event_id}", values=vars(event))
    return _edit_page(request, "Edit event", form.render(), "/")


@portal_router.get("/school/students/{student_id}/edit", response_class=HTMLResponse)
async def edit_student_page(request: Request, student_id: int):
    rec = current_session(request)
    if not can_edit(rec.role, STUDENTS):
        return _forbidden_page(request)
    try:
        student = rec.snapshot.get_student(student_id)
    except LookupError:
        return _missing_page(request)
    form = StudentForm(csrf_token_for(rec.session_id), action=f"/school/students/{student_id}", values=vars(student))
    return _edit_page(request, "Edit student", form.render(), f"/results?{urlencode({'grade': student.grade})}")


@portal_router.get("/school/results/{result_id}/edit", response_class=HTMLResponse)
async def edit_result_page(request: Request, result_id: int):
    rec = current_session(request)
    if not can_edit(rec.role, RESULTS):
        return _forbidden_page(request)
    try:
        result = rec.snapshot.get_result(result_id)
    except LookupError:
        return _missing_page(request)
    form = ResultForm(
        csrf_token_for(rec.session_id),
        students=rec.snapshot.data.students,
        action=f"/school/results/{result_id}",
        values=vars(result),
    )
    return _edit_page(request, "Edit result", form.render(), "/results")


# --- form posts -------------------------------------------------------------------


def _mutate(op: Callable[[], Any], on_error: Callable[[str, int], Response], success_url: str) -> Response:
    try:
        op()
    except LookupError as exc:
        return on_error(_error_code(exc), 404)
    except ValueError as exc:
        return on_error(_error_code(exc), 400)
    return see_other(success_url)


@portal_router.post("/school/events")
async def create_event_form(request: Request):
    rec, values, error = await _guarded_form(request, EVENTS)
    if error:
        return error
    return _mutate(
        lambda: rec.snapshot.create_event(values),
        lambda code, status: _dashboard(request, error=code, values=values, status_code=status),
        "/?notice=saved",
    )


@portal_router.post("/school/events/{event_id}")
async def update_event_form(request: Request, event_id: int):
    rec, values, error = await _guarded_form(request, EVENTS)
    if error:
        return error

    def on_error(code: str, status: int) -> Response:
        form = EventForm(
            csrf_token_for(rec.session_id), action=f"/school/events/{event_id}", values=values, error=code
        )
        return _edit_page(request, "Edit event", form.render(), "/", status_code=status)

    return _mutate(lambda: rec.snapshot.update_event(event_id, values), on_error, "/?notice=saved")


@portal_router.post("/school/events/{event_id}/delete")
async def delete_event_form(request: Request, event_id: int):
    rec, _, error = await _guarded_form(request, EVENTS)
    if error:
        return error
    if not rec.snapshot.delete_event(event_id):
        return _missing_page(request)
    return see_other("/?notice=deleted")


@portal_router.post("/school/students")
async def create_student_form(request: Request):
    rec, values, error = await _guarded_form(request, STUDENTS)
    if error:
        return error
    grade = values.get("grade")
    return _mutate(
        lambda: rec.snapshot.create_student(values),
        lambda code, status: _results(request, grade, status_code=status, student_error=code, values=values),
        _grade_url("/results", _selected_grade(grade), "saved"),
    )


@portal_router.post("/school/students/{student_id}")
async def update_student_form(request: Request, student_id: int):
    rec, values, error = await _guarded_form(request, STUDENTS)
    if error:
        return error

    def on_error(code: str, status: int) -> Response:
        form = StudentForm(
            csrf_token_for(rec.session_id), action=f"/school/students/{student_id}", values=values, error=code
        )
        return _edit_page(request, "Edit student", form.render(), "/results", status_code=status)

    grade = _selected_grade(values.get("grade"))
    return _mutate(
        lambda: rec.snapshot.update_student(student_id, values), on_error, _grade_url("/results", grade, "saved")
    )


@portal_router.post("/school/students/{student_id}/delete")
async def delete_student_form(request: Request, student_id: int):
    """Delete a student and, with it, all of the student's results."""
    rec, _, error = await _guarded_form(request, STUDENTS)
    if error:
        return error
    try:
        grade = rec.snapshot.get_student(student_id).grade
    except LookupError:
        return _missing_page(request)
    rec.snapshot.delete_student(student_id)
    return see_other(_grade_url("/results", grade, "deleted"))


def _grade_of_student(rec, student_id: Any) -> Optional[str]:
    try:
        return rec.snapshot.get_student(int(student_id)).grade
    except (LookupError, TypeError, ValueError):
        return None


@portal_router.post("/school/results")
async def create_result_form(request: Request):
    rec, values, error = await _guarded_form(request, RESULTS)
    if error:
        return error
    grade = _grade_of_student(rec, values.get("student_id"))
    return _mutate(
        lambda: rec.snapshot.create_result(values),
        lambda code, status: _results(request, grade, status_code=status, result_error=code, values=values),
        _grade_url("/results", _selected_grade(grade), "saved"),
    )


@portal_router.post("/school/results/{result_id}")
async def update_result_form(request: Request, result_id: int):
    rec, values, error = await _guarded_form(request, RESULTS)
    if error:
        return error

    def on_error(code: str, status: int) -> Response:
        form = ResultForm(
            csrf_token_for(rec.session_id),
            students=rec.snapshot.data.students,
            action=f"/school/results/{result_id}",
            values=values,
            error=code,
        )
        return _edit_page(request, "Edit result", form.render(), "/results", status_code=status)

    grade = _selected_grade(_grade_of_student(rec, values.get("student_id")))
    return _mutate(
        lambda: rec.snapshot.update_result(result_id, values), on_error, _grade_url("/results", grade, "saved")
    )


@portal_router.post("/school/results/{result_id}/delete")
async def delete_result_form(request: Request, result_id: int):
    rec, _, error = await _guarded_form(request, RESULTS)
    if error:
        return error
    try:
        grade = _grade_of_student(rec, rec.snapshot.get_result(result_id).student_id)
    except LookupError:
        return _missing_page(request)
    rec.snapshot.delete_result(result_id)
    return see_other(_grade_url("/results", _selected_grade(grade), "deleted"))


@portal_router.post("/school/materials")
async def create_material_form(request: Request):
    rec, values, error = await _guarded_form(request, MATERIALS)
    if error:
        return error
    if not values.get("size"):
        values.pop("size", None)
    grade = values.get("grade")
    return _mutate(
        lambda: rec.snapshot.create_material(values),
        lambda code, status: _materials(request, grade, error=code, values=values, status_code=status),
        _grade_url("/materials", _selected_grade(grade), "saved"),
    )


@portal_router.post("/school/materials/{material_id}/delete")
async def delete_material_form(request: Request, material_id: int):
    rec, values, error = await _guarded_form(request, MATERIALS)
    if error:
        return error
    grade = _selected_grade(values.get("grade"))
    if not rec.snapshot.delete_material(grade, material_id):
        return _missing_page(request)
    return see_other(_grade_url("/materials", grade, "deleted"))
