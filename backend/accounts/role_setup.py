"""
Role setup, first-admin bootstrap and the admin approval queue.

Why:
    A freshly authenticated user has no metadata document and must pick a
    role. PARENT and TEACHER are granted directly. ADMIN is granted only to
    the first admin (or when the bootstrap override is enabled); everyone else
    who asks for ADMIN gets PARENT as an interim role plus a pending request
    that an existing admin approves or rejects.

Concurrency:
    The first-admin decision is delegated to `MetadataStore.claim_first_admin`,
    a single atomic check-and-set, so two users racing for the first admin
    seat cannot both win.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, List, Optional
import logging

from identity_access.domain import ADMIN, PARENT, AuthUser, normalize_role

from .store import AccountsError, Document, MetadataStore

logger = logging.getLogger("portal.accounts.setup")


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class RoleSetup:
    def __init__(
        self,
        metadata: MetadataStore,
        *,
        allow_first_admin: bool = False,
        clock: Callable[[], str] = utc_now_iso,
    ) -> None:
        self.metadata = metadata
        self.allow_first_admin = allow_first_admin
        self._clock = clock

    def setup_user_role(self, user: AuthUser, role: str, *, request_admin: bool = False) -> Document:
        """Create the metadata document for a self-provisioning user.

        Only users without a stored role may set one up; an existing role or a
        disabled (soft-deleted) document is never overwritten.

        Returns the document as written.
        """
        selected = normalize_role(role)
        if selected is None:
            raise AccountsError("invalid-role")
        existing = self.metadata.get(user.uid)
        if existing and (normalize_role(existing.get("role")) or existing.get("disabled")):
            logger.warning("Role setup refused for %s: account already provisioned", user.uid)
            raise AccountsError("permission-denied")
        doc: Document = {
            "uid": user.uid,
            "email": user.email or "",
            "displayName": user.display_name or user.email or "",
            # Assume verified if they can sign in
            "emailVerified": True,
            "createdAt": self._clock(),
            "createdBy": user.uid,
            "status": "active",
            "disabled": False,
            "setupRequested": False,
            "requestedRole": None,
        }
        if selected != ADMIN and not request_admin:
            doc["role"] = selected
            self.metadata.set(user.uid, doc)
            logger.info("Role %s set up for %s", selected, user.uid)
            return doc

        if self.allow_first_admin:
            doc["role"] = ADMIN
            self.metadata.set(user.uid, doc)
            logger.info("Admin granted to %s via bootstrap override", user.uid)
            return doc

        if self.metadata.claim_first_admin(user.uid, {**doc, "role": ADMIN}):
            logger.info("First admin granted to %s", user.uid)
            return {**doc, "role": ADMIN}

        doc.update({"role": PARENT, "setupRequested": True, "requestedRole": ADMIN})
        self.metadata.set(user.uid, doc)
        logger.info("Admin access requested by %s; pending approval", user.uid)
        return doc

    def _pending_request(self, uid: str, actor: Optional[str]) -> Document:
        # Admins never decide their own request; only pending requests are decided.
        if uid == actor:
            raise AccountsError("permission-denied")
        doc = self.metadata.get(uid)
        if doc is None:
            raise AccountsError("not-found")
        if not doc.get("setupRequested") or doc.get("disabled", False):
            raise AccountsError("no-pending-request")
        return doc

    def approve_user_role(self, uid: str, role: str, *, actor: Optional[str]) -> None:
        approved = normalize_role(role)
        if approved is None:
            raise AccountsError("invalid-role")
        self._pending_request(uid, actor)
        self.metadata.update(
            uid,
            {
                "role": approved,
                "setupRequested": False,
                "requestedRole": None,
                "approvedAt": self._clock(),
                "approvedBy": actor,
            },
        )
        logger.info("Role request of %s approved as %s", uid, approved)

    def reject_user_role(self, uid: str, *, actor: Optional[str]) -> None:
        self._pending_request(uid, actor)
        self.metadata.update(
            uid,
            {
                "role": PARENT,
                "setupRequested": False,
                "requestedRole": None,
                "approvedAt": self._clock(),
                "approvedBy": actor,
            },
        )
        logger.info("Role request of %s rejected", uid)

    def list_pending_requests(self) -> List[Document]:
        docs = self.metadata.list_ordered("createdAt", descending=False)
        return [d for d in docs if d.get("setupRequested") and not d.get("disabled", False)]
