"""
Configuration and startup security checks for the school portal.

Why: Parent and staff accounts live behind this app; we must prevent
accidental insecure deployments. This module provides a single guard that
enforces minimal production safety constraints without burdening local
development, plus small typed accessors for the portal's feature flags.

Permissions: The caller needs no special privileges. The functions simply read
environment variables; the guard raises `SystemExit` on fatal misconfiguration.
"""
from __future__ import annotations

import os


def _is_prod_like(env: str) -> bool:
    env_l = (env or "").lower()
    return env_l in {"prod", "production", "stage", "staging"}


def _flag(name: str, default: str = "false") -> bool:
    return (os.getenv(name, default) or "").strip().lower() in {"1", "true", "yes"}


def portal_env() -> str:
    return (os.getenv("PORTAL_ENV", "dev") or "dev").lower()


def allow_first_admin() -> bool:
    """Bootstrap override: grant ADMIN on request regardless of existing admins."""
    return _flag("ALLOW_FIRST_ADMIN")


def metadata_backend() -> str:
    return (os.getenv("METADATA_BACKEND", "memory") or "memory").strip().lower()


def session_ttl_seconds() -> int:
    try:
        return max(60, int(os.getenv("SESSION_TTL_SECONDS", "3600")))
    except ValueError:
        return 3600


def ensure_secure_config_on_startup() -> None:
    """Fail fast on insecure production configuration.

    Intent: Abort process startup when obviously insecure settings are detected
    in production/staging. Development remains permissive for convenience.

    Checks:
    - Keycloak admin client secret must be configured (no password grant).
    - The first-admin bootstrap override must be off.
    - Metadata must be stored in the database, not in process memory.
    - DATABASE_URL must not explicitly disable TLS.
    - Keycloak endpoints must use HTTPS.
    """
    if not _is_prod_like(portal_env()):
        return  # dev/test remain permissive

    kc_secret = (os.getenv("KC_ADMIN_CLIENT_SECRET", "") or "").strip()
    if not kc_secret or kc_secret.upper().startswith("CHANGE_ME"):
        raise SystemExit(
            "Refusing to start: KC_ADMIN_CLIENT_SECRET is unset or a placeholder in production."
        )

    if allow_first_admin():
        raise SystemExit(
            "Refusing to start: ALLOW_FIRST_ADMIN must be false in production/staging."
        )

    if metadata_backend() != "db":
        raise SystemExit(
            "Refusing to start: METADATA_BACKEND=db is mandatory in production/staging."
        )

    dsn = os.getenv("DATABASE_URL", "")
    if not dsn:
        raise SystemExit("Refusing to start: DATABASE_URL is unset in production.")
    if "sslmode=disable" in dsn:
        raise SystemExit(
            "Refusing to start: DATABASE_URL contains sslmode=disable in production. Use sslmode=require or verify TLS."
        )

    for var_name in ("KC_BASE_URL", "KC_PUBLIC_BASE_URL"):
        value = (os.getenv(var_name, "") or "").strip().lower()
        if value.startswith("http://"):
            raise SystemExit(
                f"Refusing to start: {var_name} must use https in production (got http)."
            )
