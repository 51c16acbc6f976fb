"""
Pytest configuration for backend tests.

Why: Force AnyIO to use the asyncio backend to avoid sandbox restrictions
that can affect the Trio backend (e.g., socketpair permission errors).
"""
import os
import sys
from pathlib import Path

import pytest

# Ensure modules in backend/ and backend/web are importable across tests
REPO_ROOT = Path(__file__).resolve().parents[2]
BACKEND_DIR = REPO_ROOT / "backend"
WEB_DIR = BACKEND_DIR / "web"
TESTS_DIR = BACKEND_DIR / "tests"
for p in (str(REPO_ROOT), str(BACKEND_DIR), str(WEB_DIR), str(TESTS_DIR)):
    if p not in sys.path:
        sys.path.insert(0, p)

# The app module builds its default context at import time; keep it in memory.
os.environ.setdefault("METADATA_BACKEND", "memory")


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def _clear_env_toggles(monkeypatch: pytest.MonkeyPatch):
    """Clear env-driven toggles that may leak across tests.

    Behavior:
        - Default to dev semantics unless a test opts into prod explicitly.
        - Keep the metadata store in memory and the bootstrap override off.
    """
    for var in (
        "PORTAL_ENV",
        "PORTAL_TRUST_PROXY",
        "ALLOW_FIRST_ADMIN",
        "SESSION_TTL_SECONDS",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("METADATA_BACKEND", "memory")
    yield


@pytest.fixture(autouse=True)
def _reset_portal_context():
    """Replace the app's portal context with one built around fakes.

    Why:
        Route tests mutate sessions, metadata and identity state. A fresh
        context per test keeps them independent and avoids any network call
        to the identity provider.
    """
    try:
        import main  # type: ignore
        from context import build_context  # type: ignore
        from accounts.store import InMemoryMetadataStore  # type: ignore
        from utils.fakes import FakeIdentityProvider
    except Exception:
        yield
        return

    previous = main.app.state.portal
    ctx = build_context(
        identity=FakeIdentityProvider(),
        metadata=InMemoryMetadataStore(),
        allow_first_admin=False,
    )
    main.app.state.portal = ctx
    yield
    ctx.close()
    main.app.state.portal = previous
