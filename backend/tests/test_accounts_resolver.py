"""
Session resolver: metadata lookup on identity-state changes.
"""
from __future__ import annotations

from accounts.resolver import SessionResolver
from accounts.store import InMemoryMetadataStore, MetadataStoreError
from identity_access.domain import ADMIN, PARENT, AuthUser
from identity_access.events import REFRESHED, SIGNED_IN, SIGNED_OUT, AuthStateChange, AuthStateHub
from identity_access.stores import SessionStore

USER = AuthUser(uid="u1", email="u1@school.org", display_name="U One")


class _BrokenStore(InMemoryMetadataStore):
    def get(self, uid):
        raise MetadataStoreError("unavailable")


def test_signed_out_resolves_to_nothing():
    res = SessionResolver(InMemoryMetadataStore(), SessionStore()).resolve(None)
    assert res.user is None
    assert res.needs_setup is False


def test_missing_document_needs_setup():
    res = SessionResolver(InMemoryMetadataStore(), SessionStore()).resolve(USER)
    assert res.needs_setup is True
    assert res.role is None


def test_document_without_role_needs_setup():
    store = InMemoryMetadataStore({"u1": {"email": "u1@school.org"}})
    assert SessionResolver(store, SessionStore()).resolve(USER).needs_setup is True


def test_document_with_role_is_set_up():
    store = InMemoryMetadataStore(
        {"u1": {"role": PARENT, "setupRequested": True, "requestedRole": ADMIN}}
    )
    res = SessionResolver(store, SessionStore()).resolve(USER)
    assert res.role == PARENT
    assert res.needs_setup is False
    assert res.setup_requested is True
    assert res.requested_role == ADMIN


def test_lookup_failure_is_not_fatal():
    res = SessionResolver(_BrokenStore(), SessionStore()).resolve(USER)
    assert res.user == USER
    assert res.needs_setup is True


def test_disabled_flag_is_carried():
    store = InMemoryMetadataStore({"u1": {"role": PARENT, "disabled": True}})
    assert SessionResolver(store, SessionStore()).resolve(USER).disabled is True


def test_state_changes_update_the_session_record():
    store = InMemoryMetadataStore()
    sessions = SessionStore()
    resolver = SessionResolver(store, sessions)
    hub = AuthStateHub()
    sub = hub.subscribe(resolver.on_auth_state_change)
    rec = sessions.create(user=USER)

    hub.publish(AuthStateChange(SIGNED_IN, rec.session_id, USER))
    assert rec.needs_setup is True

    store.set("u1", {"role": ADMIN})
    hub.publish(AuthStateChange(REFRESHED, rec.session_id, USER))
    assert rec.role == ADMIN
    assert rec.needs_setup is False

    # Sign-out leaves nothing to resolve; the record is already gone.
    hub.publish(AuthStateChange(SIGNED_OUT, rec.session_id, None))
    assert rec.role == ADMIN
    sub.cancel()


def test_refresh_user_touches_every_live_session():
    store = InMemoryMetadataStore({"u1": {"role": PARENT}})
    sessions = SessionStore()
    resolver = SessionResolver(store, sessions)
    first = sessions.create(user=USER)
    second = sessions.create(user=USER)
    store.set("u1", {"role": ADMIN})
    resolver.refresh_user("u1")
    assert first.role == ADMIN
    assert second.role == ADMIN


def test_refresh_unknown_session_returns_none():
    assert SessionResolver(InMemoryMetadataStore(), SessionStore()).refresh_session("nope") is None
