"""
Session/role resolution on identity-state changes.

On every transition the resolver looks up the metadata document of the
current identity and decides whether the user is fully provisioned:

- document with a role      -> set up, role attached
- no document / no role     -> needs setup (role selection screen)
- lookup failure            -> needs setup as well; logged, never fatal
- signed out                -> no user, nothing to set up

No retries or caching; each transition performs one lookup.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
import logging

from identity_access.domain import AuthUser, normalize_role
from identity_access.events import SIGNED_OUT, AuthStateChange
from identity_access.stores import SessionStore

from .store import MetadataStore

logger = logging.getLogger("portal.accounts.resolver")


@dataclass(frozen=True)
class Resolution:
    user: Optional[AuthUser]
    role: Optional[str] = None
    needs_setup: bool = False
    setup_requested: bool = False
    requested_role: Optional[str] = None
    disabled: bool = False


class SessionResolver:
    def __init__(self, metadata: MetadataStore, sessions: SessionStore) -> None:
        self.metadata = metadata
        self.sessions = sessions

    def resolve(self, user: Optional[AuthUser]) -> Resolution:
        if user is None:
            return Resolution(user=None)
        try:
            doc = self.metadata.get(user.uid)
        except Exception as exc:
            logger.warning("Metadata lookup failed for %s: %s", user.uid, exc.__class__.__name__)
            return Resolution(user=user, needs_setup=True)
        role = normalize_role((doc or {}).get("role"))
        if not doc or role is None:
            return Resolution(user=user, needs_setup=True, disabled=bool((doc or {}).get("disabled", False)))
        return Resolution(
            user=user,
            role=role,
            needs_setup=False,
            setup_requested=bool(doc.get("setupRequested", False)),
            requested_role=normalize_role(doc.get("requestedRole")),
            disabled=bool(doc.get("disabled", False)),
        )

    def refresh_session(self, session_id: str) -> Optional[Resolution]:
        """Re-resolve one live session and copy the outcome onto its record."""
        rec = self.sessions.get(session_id)
        if rec is None:
            return None
        res = self.resolve(rec.user)
        rec.role = res.role
        rec.needs_setup = res.needs_setup
        rec.setup_requested = res.setup_requested
        rec.requested_role = res.requested_role
        rec.disabled = res.disabled
        return res

    def refresh_user(self, uid: str) -> None:
        """Re-resolve every live session of `uid` (after approvals or role edits)."""
        for rec in self.sessions.sessions_for(uid):
            self.refresh_session(rec.session_id)

    def on_auth_state_change(self, change: AuthStateChange) -> None:
        if change.kind == SIGNED_OUT:
            return
        self.refresh_session(change.session_id)
