"""
Postgres-backed metadata store (JSONB documents keyed by identity id).

Why: The in-memory store is not durable and does not work across instances.
This store keeps each metadata document in one JSONB column so fields can be
added without migrations, and closes the first-admin race with a
transaction-scoped advisory lock around the check-and-set.

Security:
- Use an environment-specific login role; never the superuser.
- Table identifiers are validated and composed with `psycopg.sql`.

Note: This module uses psycopg3. It is imported only when enabled via
`METADATA_BACKEND=db`. Tests use the in-memory store unless a DSN is set.
"""
from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, List, Optional
import os
import re

import psycopg
from psycopg import sql
from psycopg.types.json import Jsonb

from identity_access.domain import ADMIN

from .store import Document, MetadataStoreError

# Arbitrary but stable key for pg_advisory_xact_lock (first-admin claim).
_FIRST_ADMIN_LOCK_KEY = 7_310_042

_TABLE_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]{0,62}(?:\.[A-Za-z_][A-Za-z0-9_]{0,62})?$")


class DBMetadataStore:
    """Metadata store on a `(uid text primary key, doc jsonb, created_at)` table.

    Parameters
    ----------
    dsn:
        Psycopg3 connection string; defaults to `DATABASE_URL`.
    table:
        Fully qualified table name; defaults to `METADATA_TABLE` or `public.users`.
    """

    def __init__(self, dsn: str | None = None, table: str | None = None) -> None:
        self._dsn = dsn or os.getenv("DATABASE_URL", "")
        if not self._dsn:
            raise RuntimeError("No database DSN provided for DBMetadataStore")
        table = table or os.getenv("METADATA_TABLE", "public.users")
        if not _TABLE_PATTERN.match(table or ""):
            raise ValueError("Invalid table name")
        schema, name = table.split(".", 1) if "." in table else ("public", table)
        self._table = sql.Identifier(schema, name)

    @contextmanager
    def _cursor(self, *, autocommit: bool = True) -> Iterator[psycopg.Cursor]:
        try:
            with psycopg.connect(self._dsn, autocommit=autocommit) as conn:
                with conn.cursor() as cur:
                    yield cur
        except psycopg.errors.InsufficientPrivilege as exc:
            raise MetadataStoreError("permission-denied") from exc
        except psycopg.OperationalError as exc:
            raise MetadataStoreError("unavailable") from exc

    def ensure_schema(self) -> None:
        stmt = sql.SQL(
            "create table if not exists {} ("
            " uid text primary key,"
            " doc jsonb not null default '{{}}'::jsonb,"
            " created_at timestamptz not null default now())"
        ).format(self._table)
        with self._cursor() as cur:
            cur.execute(stmt)

    def get(self, uid: str) -> Optional[Document]:
        stmt = sql.SQL("select doc from {} where uid = %s").format(self._table)
        with self._cursor() as cur:
            cur.execute(stmt, (uid,))
            row = cur.fetchone()
        if not row:
            return None
        doc = dict(row[0] or {})
        doc["uid"] = uid
        return doc

    def set(self, uid: str, doc: Document) -> None:
        stmt = sql.SQL(
            "insert into {} (uid, doc) values (%s, %s) on conflict (uid) do update set doc = excluded.doc"
        ).format(self._table)
        with self._cursor() as cur:
            cur.execute(stmt, (uid, Jsonb({**doc, "uid": uid})))

    def merge(self, uid: str, fields: Document) -> None:
        stmt = sql.SQL(
            "insert into {tbl} (uid, doc) values (%s, %s) "
            "on conflict (uid) do update set doc = {tbl}.doc || excluded.doc"
        ).format(tbl=self._table)
        with self._cursor() as cur:
            cur.execute(stmt, (uid, Jsonb({**fields, "uid": uid})))

    def update(self, uid: str, fields: Document) -> None:
        stmt = sql.SQL("update {} set doc = doc || %s where uid = %s").format(self._table)
        with self._cursor() as cur:
            cur.execute(stmt, (Jsonb(fields), uid))
            if cur.rowcount == 0:
                raise MetadataStoreError("not-found")

    def delete(self, uid: str) -> None:
        stmt = sql.SQL("delete from {} where uid = %s").format(self._table)
        with self._cursor() as cur:
            cur.execute(stmt, (uid,))

    def list_ordered(self, field: str = "createdAt", *, descending: bool = False) -> List[Document]:
        direction = sql.SQL("desc") if descending else sql.SQL("asc")
        stmt = sql.SQL("select uid, doc from {} order by doc ->> %s {} nulls last").format(self._table, direction)
        with self._cursor() as cur:
            cur.execute(stmt, (field,))
            rows = cur.fetchall()
        return [{**dict(doc or {}), "uid": uid} for uid, doc in rows]

    def claim_first_admin(self, uid: str, doc: Document) -> bool:
        exists_stmt = sql.SQL(
            "select 1 from {} where doc ->> 'role' = %s "
            "and coalesce((doc ->> 'disabled')::boolean, false) = false limit 1"
        ).format(self._table)
        upsert_stmt = sql.SQL(
            "insert into {} (uid, doc) values (%s, %s) on conflict (uid) do update set doc = excluded.doc"
        ).format(self._table)
        payload: dict[str, Any] = {**doc, "uid": uid, "role": ADMIN}
        # One transaction: the advisory lock is held until commit, so a second
        # claimant only sees the table after the first one has written.
        with self._cursor(autocommit=False) as cur:
            cur.execute("select pg_advisory_xact_lock(%s)", (_FIRST_ADMIN_LOCK_KEY,))
            cur.execute(exists_stmt, (ADMIN,))
            if cur.fetchone():
                cur.connection.rollback()
                return False
            cur.execute(upsert_stmt, (uid, Jsonb(payload)))
            cur.connection.commit()
        return True
