"""
Admin user management against the fake identity provider.
"""
from __future__ import annotations

import pytest

from accounts.management import UserManagement, generate_temp_password
from accounts.store import AccountsError, InMemoryMetadataStore
from identity_access.domain import ADMIN, PARENT, TEACHER
from identity_access.errors import IdentityError
from utils.fakes import FakeIdentityProvider
import validation  # type: ignore


@pytest.fixture
def idp() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture
def store() -> InMemoryMetadataStore:
    return InMemoryMetadataStore()


@pytest.fixture
def users(store, idp) -> UserManagement:
    ticks = iter(f"2024-09-0{i}T00:00:00+00:00" for i in range(1, 10))
    return UserManagement(store, idp, password_factory=lambda: "Tmp12345", clock=lambda: next(ticks))


def test_temp_password_meets_signup_policy():
    for _ in range(20):
        password = generate_temp_password()
        assert len(password) == 16
        assert validation.PASSWORD_COMPLEXITY_PATTERN.match(password)


def test_invite_creates_account_document_and_sends_setup_mail(users, store, idp):
    uid = users.invite_user(email="t@school.org", display_name="Teacher T", role="teacher", actor="admin-1")
    doc = store.get(uid)
    assert doc["role"] == TEACHER
    assert doc["createdBy"] == "admin-1"
    assert doc["emailVerified"] is False
    assert idp.accounts["t@school.org"].password == "Tmp12345"
    assert idp.called("send_password_reset") == [{"email": "t@school.org"}]


def test_invite_with_invalid_role_never_calls_the_provider(users, idp):
    with pytest.raises(AccountsError) as exc:
        users.invite_user(email="t@school.org", display_name="T", role="janitor", actor="a")
    assert exc.value.code == "invalid-role"
    assert idp.calls == []


def test_invite_existing_email_propagates_identity_error(users, store, idp):
    idp.add_account("t@school.org")
    with pytest.raises(IdentityError) as exc:
        users.invite_user(email="t@school.org", display_name="T", role=PARENT, actor="a")
    assert exc.value.code == "email-already-in-use"
    assert store.list_ordered() == []


def test_fetch_users_newest_first(users):
    first = users.invite_user(email="a@school.org", display_name="A", role=PARENT, actor="x")
    second = users.invite_user(email="b@school.org", display_name="B", role=PARENT, actor="x")
    assert [d["uid"] for d in users.fetch_users()] == [second, first]


def test_delete_is_a_soft_delete(users, store):
    uid = users.invite_user(email="a@school.org", display_name="A", role=ADMIN, actor="x")
    users.delete_user(uid, actor="admin-1")
    doc = store.get(uid)
    assert doc["disabled"] is True
    assert doc["status"] == "disabled"
    assert doc["disabledBy"] == "admin-1"


def test_admins_cannot_delete_or_demote_themselves(users, store):
    store.set("me", {"role": ADMIN})
    for op in (
        lambda: users.delete_user("me", actor="me"),
        lambda: users.update_user_role("me", PARENT, actor="me"),
    ):
        with pytest.raises(AccountsError) as exc:
            op()
        assert exc.value.code == "permission-denied"
    assert store.get("me")["role"] == ADMIN


def test_delete_unknown_user(users):
    with pytest.raises(AccountsError) as exc:
        users.delete_user("ghost", actor="me")
    assert exc.value.code == "not-found"


def test_update_role(users, store):
    store.set("u", {"role": PARENT})
    users.update_user_role("u", "Teacher", actor="me")
    assert store.get("u")["role"] == TEACHER
    assert store.get("u")["updatedBy"] == "me"


def test_resend_invite_sends_reset_mail(users, idp):
    idp.add_account("p@school.org")
    users.resend_invite(email="p@school.org")
    assert idp.called("send_password_reset") == [{"email": "p@school.org"}]
