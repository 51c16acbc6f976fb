"""
Application context for the portal web adapter.

Why:
    Routes need the identity provider, the metadata store, the session store
    and the account workflows. Instead of module globals they are bundled in a
    `PortalContext` stored on `app.state.portal`; tests replace it with one
    built around fakes.

Lifecycle:
    `build_context()` subscribes the role resolver to identity-state changes.
    The app lifespan calls `close()` on shutdown, which cancels that
    subscription.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
import logging

from fastapi import Request

from accounts.management import UserManagement
from accounts.resolver import SessionResolver
from accounts.role_setup import RoleSetup
from accounts.store import InMemoryMetadataStore, MetadataStore
from identity_access.errors import IdentityError
from identity_access.events import (
    REFRESHED,
    SIGNED_IN,
    SIGNED_OUT,
    AuthStateChange,
    AuthStateHub,
    Subscription,
)
from identity_access.ports import IdentityProvider, SignInResult
from identity_access.stores import SessionRecord, SessionStore
from routes.security import forget_csrf
from school.snapshot import SchoolSnapshot

import config

logger = logging.getLogger("portal.web.context")


@dataclass
class PortalContext:
    identity: IdentityProvider
    metadata: MetadataStore
    sessions: SessionStore
    hub: AuthStateHub
    resolver: SessionResolver
    role_setup: RoleSetup
    users: UserManagement
    subscription: Optional[Subscription] = None

    def start(self) -> None:
        if self.subscription is None or not self.subscription.active:
            self.subscription = self.hub.subscribe(self.resolver.on_auth_state_change)

    def close(self) -> None:
        if self.subscription is not None:
            self.subscription.cancel()

    def open_session(self, result: SignInResult) -> SessionRecord:
        """Create a session for a signed-in user.

        Each session starts from a fresh copy of the demo school data; the
        SIGNED_IN notification lets the subscribed resolver attach the role.
        """
        rec = self.sessions.create(
            user=result.user,
            refresh_token=result.refresh_token,
            id_token=result.id_token,
            snapshot=SchoolSnapshot.demo(),
        )
        self.hub.publish(AuthStateChange(SIGNED_IN, rec.session_id, rec.user))
        return rec

    def refresh(self, session_id: str) -> None:
        rec = self.sessions.get(session_id)
        if rec is not None:
            self.hub.publish(AuthStateChange(REFRESHED, session_id, rec.user))

    def close_session(self, session_id: str) -> None:
        """Sign out: end the IdP session (best effort) and drop local state."""
        rec = self.sessions.delete(session_id)
        forget_csrf(session_id)
        if rec is None:
            return
        try:
            self.identity.sign_out(refresh_token=rec.refresh_token)
        except IdentityError as exc:
            logger.warning("IdP sign-out failed: %s", exc.code)
        self.hub.publish(AuthStateChange(SIGNED_OUT, session_id, None))

    def close_sessions_for(self, uid: str) -> None:
        for rec in self.sessions.sessions_for(uid):
            self.close_session(rec.session_id)


def build_metadata_store() -> MetadataStore:
    if config.metadata_backend() == "db":
        from accounts.store_db import DBMetadataStore

        store = DBMetadataStore()
        store.ensure_schema()
        return store
    return InMemoryMetadataStore()


def build_identity_provider() -> IdentityProvider:
    from identity_access.keycloak_client import KeycloakIdentityProvider
    from identity_access.oidc import load_oidc_config

    return KeycloakIdentityProvider(load_oidc_config())


def build_context(
    *,
    identity: IdentityProvider | None = None,
    metadata: MetadataStore | None = None,
    sessions: SessionStore | None = None,
    allow_first_admin: bool | None = None,
) -> PortalContext:
    identity = identity if identity is not None else build_identity_provider()
    metadata = metadata if metadata is not None else build_metadata_store()
    sessions = sessions if sessions is not None else SessionStore(ttl_seconds=config.session_ttl_seconds())
    if allow_first_admin is None:
        allow_first_admin = config.allow_first_admin()
    resolver = SessionResolver(metadata, sessions)
    ctx = PortalContext(
        identity=identity,
        metadata=metadata,
        sessions=sessions,
        hub=AuthStateHub(),
        resolver=resolver,
        role_setup=RoleSetup(metadata, allow_first_admin=allow_first_admin),
        users=UserManagement(metadata, identity),
    )
    ctx.start()
    return ctx


def get_portal(request: Request) -> PortalContext:
    return request.app.state.portal


def current_session(request: Request) -> Optional[SessionRecord]:
    """Session record attached by the auth middleware (None on public paths)."""
    return getattr(request.state, "session", None)
