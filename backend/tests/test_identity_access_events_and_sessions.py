"""
Identity-state hub subscriptions and the in-memory session store.
"""
from __future__ import annotations

import logging

from identity_access.domain import AuthUser
from identity_access.events import SIGNED_IN, AuthStateChange, AuthStateHub
from identity_access.stores import SessionStore

USER = AuthUser(uid="u1", email="u1@school.org", display_name=None)


def test_listeners_receive_changes_until_cancelled():
    hub = AuthStateHub()
    seen: list[str] = []
    sub = hub.subscribe(lambda change: seen.append(change.session_id))
    hub.publish(AuthStateChange(SIGNED_IN, "s1", USER))
    sub.cancel()
    sub.cancel()
    hub.publish(AuthStateChange(SIGNED_IN, "s2", USER))
    assert seen == ["s1"]
    assert sub.active is False
    assert hub.listener_count == 0


def test_failing_listener_does_not_stop_others(caplog):
    hub = AuthStateHub()
    seen: list[str] = []

    def broken(change):
        raise RuntimeError("boom")

    hub.subscribe(broken)
    hub.subscribe(lambda change: seen.append(change.kind))
    with caplog.at_level(logging.WARNING, logger="portal.identity_access.events"):
        hub.publish(AuthStateChange(SIGNED_IN, "s1", USER))
    assert seen == [SIGNED_IN]
    assert "RuntimeError" in caplog.text


def test_session_store_roundtrip_and_delete():
    store = SessionStore(ttl_seconds=60)
    rec = store.create(user=USER, refresh_token="r")
    assert store.get(rec.session_id) is rec
    assert store.sessions_for("u1") == [rec]
    assert store.delete(rec.session_id) is rec
    assert store.get(rec.session_id) is None


def test_expired_sessions_are_dropped():
    store = SessionStore()
    rec = store.create(user=USER, ttl_seconds=-10)
    assert store.get(rec.session_id) is None


def test_session_ids_are_unique_and_long():
    store = SessionStore()
    ids = {store.create(user=USER).session_id for _ in range(50)}
    assert len(ids) == 50
    assert all(len(sid) >= 32 for sid in ids)


def test_user_context_uses_email_as_name_fallback():
    rec = SessionStore().create(user=USER)
    ctx = rec.as_user_context()
    assert ctx["name"] == "u1@school.org"
    assert ctx["needs_setup"] is True
    assert "refresh_token" not in ctx


def test_expired_sessions_are_not_listed_and_swept_on_create():
    store = SessionStore()
    stale = store.create(user=USER, ttl_seconds=-10)
    assert store.sessions_for("u1") == []
    live = store.create(user=USER)
    assert store.sessions_for("u1") == [live]
    assert stale.session_id not in store._data
