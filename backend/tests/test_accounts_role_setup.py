"""
Role setup workflow: direct roles, first-admin bootstrap, approval queue.
"""
from __future__ import annotations

import threading

import pytest

from accounts.role_setup import RoleSetup
from accounts.store import AccountsError, InMemoryMetadataStore
from identity_access.domain import ADMIN, PARENT, TEACHER, AuthUser


def _user(uid: str) -> AuthUser:
    return AuthUser(uid=uid, email=f"{uid}@school.org", display_name=None)


@pytest.fixture
def store() -> InMemoryMetadataStore:
    return InMemoryMetadataStore()


@pytest.fixture
def setup(store) -> RoleSetup:
    return RoleSetup(store, clock=lambda: "2024-09-01T00:00:00+00:00")


def test_parent_and_teacher_are_granted_directly(setup, store):
    setup.setup_user_role(_user("p1"), "parent")
    setup.setup_user_role(_user("t1"), TEACHER)
    assert store.get("p1")["role"] == PARENT
    assert store.get("t1")["role"] == TEACHER
    assert store.get("t1")["setupRequested"] is False


def test_document_fields(setup, store):
    doc = setup.setup_user_role(_user("p1"), PARENT)
    assert doc["displayName"] == "p1@school.org"
    assert doc["createdBy"] == "p1"
    assert doc["createdAt"] == "2024-09-01T00:00:00+00:00"
    assert doc["status"] == "active"
    assert doc["disabled"] is False
    assert store.get("p1")["uid"] == "p1"


def test_unknown_role_is_rejected(setup, store):
    with pytest.raises(AccountsError) as exc:
        setup.setup_user_role(_user("x"), "principal")
    assert exc.value.code == "invalid-role"
    assert store.get("x") is None


def test_first_admin_is_granted(setup, store):
    doc = setup.setup_user_role(_user("a1"), ADMIN)
    assert doc["role"] == ADMIN
    assert store.get("a1")["role"] == ADMIN


def test_second_admin_request_becomes_pending_parent(setup, store):
    setup.setup_user_role(_user("a1"), ADMIN)
    doc = setup.setup_user_role(_user("a2"), ADMIN)
    assert doc["role"] == PARENT
    assert doc["setupRequested"] is True
    assert doc["requestedRole"] == ADMIN
    assert [d["uid"] for d in setup.list_pending_requests()] == ["a2"]


def test_disabled_admin_does_not_block_bootstrap(setup, store):
    store.set("old", {"role": ADMIN, "disabled": True})
    assert setup.setup_user_role(_user("a1"), ADMIN)["role"] == ADMIN


def test_request_admin_flag_with_non_admin_role(setup, store):
    setup.setup_user_role(_user("a1"), ADMIN)
    doc = setup.setup_user_role(_user("t2"), TEACHER, request_admin=True)
    assert doc["setupRequested"] is True
    assert doc["role"] == PARENT


def test_bootstrap_override_grants_admin_even_with_existing_admin(store):
    store.set("a1", {"role": ADMIN})
    setup = RoleSetup(store, allow_first_admin=True)
    assert setup.setup_user_role(_user("a2"), ADMIN)["role"] == ADMIN


def test_concurrent_first_admin_claims_grant_exactly_one(store):
    setup = RoleSetup(store)
    barrier = threading.Barrier(8)
    roles: list[str] = []

    def claim(uid: str) -> None:
        barrier.wait()
        roles.append(setup.setup_user_role(_user(uid), ADMIN)["role"])

    threads = [threading.Thread(target=claim, args=(f"u{i}",)) for i in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert roles.count(ADMIN) == 1
    assert len(setup.list_pending_requests()) == 7


def test_approve_clears_request_and_records_actor(setup, store):
    setup.setup_user_role(_user("a1"), ADMIN)
    setup.setup_user_role(_user("a2"), ADMIN)
    setup.approve_user_role("a2", ADMIN, actor="a1")
    doc = store.get("a2")
    assert doc["role"] == ADMIN
    assert doc["setupRequested"] is False
    assert doc["requestedRole"] is None
    assert doc["approvedBy"] == "a1"
    assert setup.list_pending_requests() == []


def test_reject_keeps_parent(setup, store):
    setup.setup_user_role(_user("a1"), ADMIN)
    setup.setup_user_role(_user("a2"), ADMIN)
    setup.reject_user_role("a2", actor="a1")
    assert store.get("a2")["role"] == PARENT
    assert store.get("a2")["setupRequested"] is False


def test_approve_unknown_user_or_role(setup):
    with pytest.raises(AccountsError) as exc:
        setup.approve_user_role("ghost", TEACHER, actor="a1")
    assert exc.value.code == "not-found"
    with pytest.raises(AccountsError) as exc:
        setup.approve_user_role("ghost", "root", actor="a1")
    assert exc.value.code == "invalid-role"


def test_pending_list_skips_disabled_and_sorts_oldest_first(store):
    store.set("late", {"setupRequested": True, "createdAt": "2024-09-03"})
    store.set("early", {"setupRequested": True, "createdAt": "2024-09-01"})
    store.set("gone", {"setupRequested": True, "createdAt": "2024-09-02", "disabled": True})
    assert [d["uid"] for d in RoleSetup(store).list_pending_requests()] == ["early", "late"]


def test_admin_cannot_decide_own_request(setup, store):
    setup.setup_user_role(_user("a1"), ADMIN)
    with pytest.raises(AccountsError) as exc:
        setup.reject_user_role("a1", actor="a1")
    assert exc.value.code == "permission-denied"
    with pytest.raises(AccountsError) as exc:
        setup.approve_user_role("a1", PARENT, actor="a1")
    assert exc.value.code == "permission-denied"
    assert store.get("a1")["role"] == ADMIN


def test_decisions_require_a_pending_request(setup, store):
    setup.setup_user_role(_user("t1"), TEACHER)
    with pytest.raises(AccountsError) as exc:
        setup.approve_user_role("t1", ADMIN, actor="a1")
    assert exc.value.code == "no-pending-request"
    with pytest.raises(AccountsError) as exc:
        setup.reject_user_role("t1", actor="a1")
    assert exc.value.code == "no-pending-request"
    assert store.get("t1")["role"] == TEACHER
    assert "approvedBy" not in store.get("t1")


def test_setup_never_overwrites_a_provisioned_account(setup, store):
    store.set("d1", {"role": PARENT, "disabled": True, "disabledBy": "a1", "disabledAt": "2024-09-05"})
    store.set("p1", {"role": PARENT, "setupRequested": True, "requestedRole": ADMIN})
    for uid in ("d1", "p1"):
        with pytest.raises(AccountsError) as exc:
            setup.setup_user_role(_user(uid), TEACHER)
        assert exc.value.code == "permission-denied"
    assert store.get("d1")["disabled"] is True
    assert store.get("d1")["disabledBy"] == "a1"
    assert store.get("p1")["role"] == PARENT
    assert store.get("p1")["setupRequested"] is True


def test_setup_completes_a_document_without_role(setup, store):
    store.set("n1", {"email": "n1@school.org"})
    assert setup.setup_user_role(_user("n1"), TEACHER)["role"] == TEACHER
    assert store.get("n1")["role"] == TEACHER
