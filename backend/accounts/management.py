"""
Admin user management: invitations, listing, soft delete and role edits.

Why:
    Admins provision parents and teachers without self-service signup. An
    invitation creates the identity account with a throwaway password, writes
    the metadata document and mails a password-reset link the invitee uses to
    choose their own password.

Deletion:
    The portal cannot remove identity accounts, so deletion is a soft delete:
    the metadata document is kept and marked `disabled`. Disabled users are
    refused at sign-in and no longer count as admins.
"""
from __future__ import annotations

from typing import Callable, List, Optional
import logging
import secrets
import string

from identity_access.domain import normalize_role
from identity_access.ports import IdentityProvider

from .role_setup import utc_now_iso
from .store import AccountsError, Document, MetadataStore

logger = logging.getLogger("portal.accounts.management")

_ALPHABET = string.ascii_letters + string.digits


def generate_temp_password(length: int = 16) -> str:
    """Random password satisfying the signup policy (upper, lower, digit)."""
    while True:
        candidate = "".join(secrets.choice(_ALPHABET) for _ in range(length))
        if (
            any(c.islower() for c in candidate)
            and any(c.isupper() for c in candidate)
            and any(c.isdigit() for c in candidate)
        ):
            return candidate


class UserManagement:
    def __init__(
        self,
        metadata: MetadataStore,
        identity: IdentityProvider,
        *,
        password_factory: Callable[[], str] = generate_temp_password,
        clock: Callable[[], str] = utc_now_iso,
    ) -> None:
        self.metadata = metadata
        self.identity = identity
        self._password_factory = password_factory
        self._clock = clock

    def invite_user(self, *, email: str, display_name: str, role: str, actor: Optional[str]) -> str:
        """Create the account, its metadata document and send the setup mail.

        Returns the new user id. Identity failures propagate as `IdentityError`.
        """
        selected = normalize_role(role)
        if selected is None:
            raise AccountsError("invalid-role")
        uid = self.identity.create_account(
            email=email, password=self._password_factory(), display_name=display_name
        )
        self.metadata.set(
            uid,
            {
                "uid": uid,
                "email": email,
                "displayName": display_name,
                "role": selected,
                "emailVerified": False,
                "createdAt": self._clock(),
                "createdBy": actor,
                "status": "active",
                "disabled": False,
                "setupRequested": False,
                "requestedRole": None,
            },
        )
        self.identity.send_password_reset(email=email)
        logger.info("Invited %s as %s", uid, selected)
        return uid

    def fetch_users(self) -> List[Document]:
        return self.metadata.list_ordered("createdAt", descending=True)

    def get_user_metadata(self, uid: str) -> Optional[Document]:
        return self.metadata.get(uid)

    def delete_user(self, uid: str, *, actor: Optional[str]) -> None:
        if uid == actor:
            raise AccountsError("permission-denied")
        if self.metadata.get(uid) is None:
            raise AccountsError("not-found")
        self.metadata.merge(
            uid,
            {"disabled": True, "status": "disabled", "disabledAt": self._clock(), "disabledBy": actor},
        )
        logger.info("Disabled %s", uid)

    def resend_invite(self, *, email: str) -> None:
        self.identity.send_password_reset(email=email)

    def update_user_role(self, uid: str, role: str, *, actor: Optional[str]) -> None:
        selected = normalize_role(role)
        if selected is None:
            raise AccountsError("invalid-role")
        if uid == actor:
            raise AccountsError("permission-denied")
        self.metadata.update(uid, {"role": selected, "updatedAt": self._clock(), "updatedBy": actor})
        logger.info("Role of %s changed to %s", uid, selected)
