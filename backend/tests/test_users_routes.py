"""
Admin user management over JSON and the admin page.
"""
from __future__ import annotations

import pytest

from identity_access.domain import ADMIN, PARENT, TEACHER
from utils.portal_client import client, csrf, portal, seed_account, signed_in

pytestmark = pytest.mark.anyio


def _admin():
    return seed_account("admin@school.org", role=ADMIN, display_name="Head Admin")


async def test_user_api_is_admin_only():
    parent = seed_account("p@school.org", role=PARENT)
    async with client() as http:
        signed_in(http, parent)
        listed = await http.get("/api/users")
        invite = await http.post(
            "/api/users", json={"email": "x@school.org", "display_name": "Xavier", "role": TEACHER}
        )
        page = await http.get("/admin")
    assert listed.status_code == 403
    assert invite.status_code == 403
    assert page.status_code == 403
    assert portal().identity.called("create_account") == []


async def test_admin_lists_users_newest_first():
    admin = _admin()
    seed_account("old@school.org", role=PARENT, createdAt="2023-01-01T00:00:00+00:00")
    seed_account("new@school.org", role=TEACHER, createdAt="2025-01-01T00:00:00+00:00")
    async with client() as http:
        signed_in(http, admin)
        r = await http.get("/api/users")
    assert r.status_code == 200
    assert [u["email"] for u in r.json()] == ["new@school.org", "admin@school.org", "old@school.org"]
    assert r.json()[1]["uid"] == admin.uid


async def test_invite_user():
    admin = _admin()
    async with client() as http:
        signed_in(http, admin)
        r = await http.post(
            "/api/users", json={"email": "t@school.org", "display_name": "Tess Teacher", "role": TEACHER}
        )
    assert r.status_code == 201
    uid = r.json()["uid"]
    doc = portal().metadata.get(uid)
    assert doc["role"] == TEACHER
    assert doc["createdBy"] == admin.uid
    assert doc["emailVerified"] is False
    assert portal().identity.called("send_password_reset") == [{"email": "t@school.org"}]


async def test_invalid_invite_never_reaches_identity_provider():
    admin = _admin()
    async with client() as http:
        signed_in(http, admin)
        r = await http.post("/api/users", json={"email": "nope", "display_name": "T", "role": "JANITOR"})
    assert r.status_code == 400
    assert set(r.json()["detail"]) == {"email", "display_name", "role"}
    assert portal().identity.called("create_account") == []


async def test_invite_existing_email_conflicts():
    admin = _admin()
    seed_account("t@school.org", role=TEACHER)
    async with client() as http:
        signed_in(http, admin)
        r = await http.post(
            "/api/users", json={"email": "t@school.org", "display_name": "Tess", "role": TEACHER}
        )
    assert r.status_code == 409
    assert r.json()["error"] == "email-already-in-use"


async def test_admin_cannot_delete_or_demote_self():
    admin = _admin()
    async with client() as http:
        signed_in(http, admin)
        deleted = await http.delete(f"/api/users/{admin.uid}")
        demoted = await http.patch(f"/api/users/{admin.uid}/role", json={"role": PARENT})
    assert deleted.status_code == 403
    assert demoted.status_code == 403
    assert portal().metadata.get(admin.uid)["role"] == ADMIN


async def test_soft_delete_closes_live_sessions():
    admin = _admin()
    parent = seed_account("p@school.org", role=PARENT)
    async with client() as http:
        signed_in(http, admin)
        async with client() as parent_http:
            signed_in_record = signed_in(parent_http, parent)
            r = await http.delete(f"/api/users/{parent.uid}")
            victim = await parent_http.get("/api/me")
        missing = await http.delete("/api/users/nobody")
    assert r.status_code == 204
    assert portal().metadata.get(parent.uid)["disabled"] is True
    assert portal().sessions.get(signed_in_record.session_id) is None
    assert victim.status_code == 401
    assert missing.status_code == 404


async def test_role_change_updates_live_session():
    admin = _admin()
    parent = seed_account("p@school.org", role=PARENT)
    async with client() as http:
        signed_in(http, admin)
        async with client() as parent_http:
            open_parent = signed_in(parent_http, parent)
            r = await http.patch(f"/api/users/{parent.uid}/role", json={"role": "teacher"})
            parent_rec = (await parent_http.get("/api/me")).json()
        invalid = await http.patch(f"/api/users/{parent.uid}/role", json={"role": "owner"})
    assert r.status_code == 204
    assert open_parent.role == TEACHER
    assert parent_rec["role"] == TEACHER
    assert invalid.status_code == 400


async def test_pending_requests_approve_and_reject():
    admin = _admin()
    asker = seed_account(
        "asker@school.org", role=PARENT, setupRequested=True, requestedRole=ADMIN,
        createdAt="2024-09-02T00:00:00+00:00",
    )
    other = seed_account(
        "other@school.org", role=PARENT, setupRequested=True, requestedRole=ADMIN,
        createdAt="2024-09-03T00:00:00+00:00",
    )
    async with client() as http:
        signed_in(http, admin)
        async with client() as asker_http:
            asker_rec = signed_in(asker_http, asker)
            pending = (await http.get("/api/users/pending")).json()
            approved = await http.post(f"/api/users/{asker.uid}/approve", json={"role": ADMIN})
            asker_admin = await asker_http.get("/api/users")
        rejected = await http.post(f"/api/users/{other.uid}/reject")
        after = (await http.get("/api/users/pending")).json()
    assert [p["uid"] for p in pending] == [asker.uid, other.uid]
    assert approved.status_code == 204
    assert asker_rec.role == ADMIN
    assert asker_rec.setup_requested is False
    assert asker_admin.status_code == 200
    assert rejected.status_code == 204
    assert portal().metadata.get(other.uid)["role"] == PARENT
    assert portal().metadata.get(other.uid)["approvedBy"] == admin.uid
    assert after == []


async def test_resend_invite():
    admin = _admin()
    invited = seed_account("t@school.org", role=TEACHER)
    async with client() as http:
        signed_in(http, admin)
        ok = await http.post(f"/api/users/{invited.uid}/resend-invite")
        missing = await http.post("/api/users/nobody/resend-invite")
    assert ok.status_code == 204
    assert missing.status_code == 404
    assert portal().identity.called("send_password_reset") == [{"email": "t@school.org"}]


async def test_admin_page_and_forms():
    admin = _admin()
    asker = seed_account("asker@school.org", role=PARENT, setupRequested=True, requestedRole=ADMIN)
    async with client() as http:
        rec = signed_in(http, admin)
        page = await http.get("/admin")
        invited = await http.post(
            "/admin/users",
            data={"csrf_token": csrf(rec), "email": "t@school.org", "display_name": "Tess", "role": TEACHER},
            follow_redirects=False,
        )
        invalid = await http.post(
            "/admin/users",
            data={"csrf_token": csrf(rec), "email": "bad", "display_name": "Tess", "role": TEACHER},
        )
        no_token = await http.post(f"/admin/users/{asker.uid}/reject", data={})
        rejected = await http.post(
            f"/admin/users/{asker.uid}/reject", data={"csrf_token": csrf(rec)}, follow_redirects=False
        )
        deleted = await http.post(
            f"/admin/users/{asker.uid}/delete", data={"csrf_token": csrf(rec)}, follow_redirects=False
        )
        self_delete = await http.post(f"/admin/users/{admin.uid}/delete", data={"csrf_token": csrf(rec)})
    assert page.status_code == 200
    assert f"/admin/users/{asker.uid}/approve" in page.text
    assert invited.status_code == 303
    assert invited.headers["location"] == "/admin?notice=saved"
    assert "t@school.org" in portal().identity.accounts
    assert invalid.status_code == 400
    assert 'value="Tess"' in invalid.text
    assert no_token.status_code == 403
    assert rejected.headers["location"] == "/admin?notice=saved"
    assert deleted.headers["location"] == "/admin?notice=deleted"
    assert portal().metadata.get(asker.uid)["disabled"] is True
    assert self_delete.status_code == 403


async def test_admin_cannot_approve_or_reject_own_account():
    admin = _admin()
    async with client() as http:
        rec = signed_in(http, admin)
        rejected = await http.post(f"/api/users/{admin.uid}/reject")
        approved = await http.post(f"/api/users/{admin.uid}/approve", json={"role": PARENT})
        form = await http.post(f"/admin/users/{admin.uid}/reject", data={"csrf_token": csrf(rec)})
    assert rejected.status_code == 403
    assert approved.status_code == 403
    assert form.status_code == 403
    assert portal().metadata.get(admin.uid)["role"] == ADMIN
    assert rec.role == ADMIN


async def test_decisions_need_a_pending_request():
    admin = _admin()
    teacher = seed_account("t@school.org", role=TEACHER)
    async with client() as http:
        signed_in(http, admin)
        approved = await http.post(f"/api/users/{teacher.uid}/approve", json={"role": ADMIN})
        rejected = await http.post(f"/api/users/{teacher.uid}/reject")
    assert approved.status_code == 409
    assert approved.json()["error"] == "no-pending-request"
    assert rejected.status_code == 409
    assert portal().metadata.get(teacher.uid)["role"] == TEACHER
