"""
In-memory session store for the portal.

Why: Keep the authenticated-session scope server-side. The cookie carries only
an opaque session id; the resolved user, role and the per-session school data
snapshot live in the `SessionRecord` and are discarded with it on sign-out or
expiry.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional
import secrets
import threading
import time

from .domain import AuthUser


def _now() -> int:
    return int(time.time())


def _expired(rec: "SessionRecord", now: int) -> bool:
    return bool(rec.expires_at and rec.expires_at < now)


@dataclass
class SessionRecord:
    session_id: str
    user: AuthUser
    expires_at: Optional[int] = None
    refresh_token: Optional[str] = None
    id_token: Optional[str] = None
    # Filled in by the role resolver on every identity-state change.
    role: Optional[str] = None
    needs_setup: bool = True
    setup_requested: bool = False
    requested_role: Optional[str] = None
    disabled: bool = False
    # Per-session school data (see school.snapshot); opaque to this module.
    snapshot: Any = None

    def as_user_context(self) -> Dict[str, Any]:
        """Minimal, read-only user context exposed on `request.state.user`."""
        return {
            "uid": self.user.uid,
            "email": self.user.email,
            "name": self.user.label,
            "email_verified": self.user.email_verified,
            "role": self.role,
            "needs_setup": self.needs_setup,
            "setup_requested": self.setup_requested,
            "requested_role": self.requested_role,
        }


class SessionStore:
    def __init__(self, ttl_seconds: int = 3600):
        self.ttl_seconds = ttl_seconds
        self._data: Dict[str, SessionRecord] = {}
        self._lock = threading.Lock()

    def create(
        self,
        *,
        user: AuthUser,
        refresh_token: Optional[str] = None,
        id_token: Optional[str] = None,
        snapshot: Any = None,
        ttl_seconds: Optional[int] = None,
    ) -> SessionRecord:
        sid = secrets.token_urlsafe(24)
        ttl = ttl_seconds if ttl_seconds is not None else self.ttl_seconds
        rec = SessionRecord(
            session_id=sid,
            user=user,
            expires_at=_now() + ttl,
            refresh_token=refresh_token,
            id_token=id_token,
            snapshot=snapshot,
        )
        with self._lock:
            self._sweep_expired()
            self._data[sid] = rec
        return rec

    def _sweep_expired(self) -> None:
        # Caller holds the lock.
        now = _now()
        for sid in [sid for sid, rec in self._data.items() if _expired(rec, now)]:
            del self._data[sid]

    def get(self, session_id: str) -> Optional[SessionRecord]:
        with self._lock:
            rec = self._data.get(session_id)
            if not rec:
                return None
            if _expired(rec, _now()):
                self._data.pop(session_id, None)
                return None
            return rec

    def delete(self, session_id: str) -> Optional[SessionRecord]:
        with self._lock:
            return self._data.pop(session_id, None)

    def sessions_for(self, uid: str) -> list[SessionRecord]:
        """Return live sessions of a user (used to re-resolve after approvals)."""
        now = _now()
        with self._lock:
            return [rec for rec in self._data.values() if rec.user.uid == uid and not _expired(rec, now)]
