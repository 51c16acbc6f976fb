"""
Metadata document store for the `users` collection.

Why:
    The identity provider knows who a user is; the portal keeps role and
    provisioning state in a separate per-user document keyed by the identity
    id. This module defines the store contract and an in-memory implementation
    for development and tests. `store_db.DBMetadataStore` persists the same
    documents in Postgres.

Contract:
    - `get(uid)` returns a copy of the document (or None).
    - `set(uid, doc)` replaces the document; `merge(uid, fields)` upserts the
      given fields into it; `update(uid, fields)` requires it to exist.
    - `list_ordered(field, descending)` sorts by one field; documents missing
      the field sort last.
    - `claim_first_admin(uid, doc)` writes `doc` only if no enabled ADMIN
      document exists, as one atomic check-and-set. Returns whether it wrote.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol
import copy
import threading

from identity_access.domain import ADMIN

Document = Dict[str, Any]


class AccountsError(Exception):
    """Raised by the account workflow; `code` maps to a user-management message."""

    def __init__(self, code: str):
        super().__init__(code)
        self.code = code


class MetadataStoreError(AccountsError):
    """Raised when the document store cannot complete an operation."""


def is_active_admin(doc: Document | None) -> bool:
    return bool(doc) and doc.get("role") == ADMIN and not doc.get("disabled", False)


class MetadataStore(Protocol):
    def get(self, uid: str) -> Optional[Document]: ...

    def set(self, uid: str, doc: Document) -> None: ...

    def merge(self, uid: str, fields: Document) -> None: ...

    def update(self, uid: str, fields: Document) -> None: ...

    def delete(self, uid: str) -> None: ...

    def list_ordered(self, field: str = "createdAt", *, descending: bool = False) -> List[Document]: ...

    def claim_first_admin(self, uid: str, doc: Document) -> bool: ...


def _sort_documents(docs: List[Document], field: str, descending: bool) -> List[Document]:
    present = [d for d in docs if d.get(field) is not None]
    missing = [d for d in docs if d.get(field) is None]
    present.sort(key=lambda d: d[field], reverse=descending)
    return present + missing


class InMemoryMetadataStore:
    """Dict-backed store; one lock serializes all writes and the admin claim."""

    def __init__(self, docs: Optional[Dict[str, Document]] = None) -> None:
        self._docs: Dict[str, Document] = {}
        self._lock = threading.Lock()
        for uid, doc in (docs or {}).items():
            self.set(uid, doc)

    def get(self, uid: str) -> Optional[Document]:
        with self._lock:
            doc = self._docs.get(uid)
            return copy.deepcopy(doc) if doc is not None else None

    def set(self, uid: str, doc: Document) -> None:
        with self._lock:
            self._docs[uid] = {**copy.deepcopy(doc), "uid": uid}

    def merge(self, uid: str, fields: Document) -> None:
        with self._lock:
            current = self._docs.get(uid, {"uid": uid})
            current.update(copy.deepcopy(fields))
            self._docs[uid] = current

    def update(self, uid: str, fields: Document) -> None:
        with self._lock:
            if uid not in self._docs:
                raise MetadataStoreError("not-found")
            self._docs[uid].update(copy.deepcopy(fields))

    def delete(self, uid: str) -> None:
        with self._lock:
            self._docs.pop(uid, None)

    def list_ordered(self, field: str = "createdAt", *, descending: bool = False) -> List[Document]:
        with self._lock:
            docs = [copy.deepcopy(d) for d in self._docs.values()]
        return _sort_documents(docs, field, descending)

    def claim_first_admin(self, uid: str, doc: Document) -> bool:
        with self._lock:
            if any(is_active_admin(d) for d in self._docs.values()):
                return False
            self._docs[uid] = {**copy.deepcopy(doc), "uid": uid, "role": ADMIN}
            return True
