"""
Test DB utilities: skip Postgres-backed tests when no database is reachable.

The DSN comes from `TEST_DATABASE_URL`, then `DATABASE_URL`. Tests create
their own throwaway table and drop it afterwards.
"""
from __future__ import annotations

import os
import pytest


def database_dsn() -> str:
    return os.getenv("TEST_DATABASE_URL") or os.getenv("DATABASE_URL") or ""


def require_db_or_skip() -> str:
    """Return a reachable DSN or skip the calling test."""
    import psycopg

    dsn = database_dsn()
    if not dsn:
        pytest.skip("Set TEST_DATABASE_URL or DATABASE_URL to run Postgres tests")
    try:
        with psycopg.connect(dsn, connect_timeout=1):
            return dsn
    except psycopg.OperationalError:
        pytest.skip("Database not reachable")
