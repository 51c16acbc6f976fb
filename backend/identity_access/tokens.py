"""
ID token verification against the realm JWKS.

Sign-in returns an ID token; identity claims (sub, email, name,
email_verified) are trusted only after the RS256 signature, issuer and
audience have been checked. Unknown key ids trigger one JWKS refetch so a
realm key rotation does not lock everybody out until the cache expires.
"""
from __future__ import annotations

from typing import Callable, Dict, Optional, Tuple
import threading
import time

import requests
from jose import jwt
from jose.exceptions import JOSEError

from .domain import AuthUser
from .oidc import OIDCConfig

Claims = Dict[str, object]
JWKS = Dict[str, object]

MAX_CLOCK_SKEW_SECONDS = 5


class IDTokenVerificationError(Exception):
    def __init__(self, code: str):
        super().__init__(code)
        self.code = code


class JWKSCache:
    """Per-realm JWKS documents, kept for `ttl_seconds`."""

    def __init__(self, ttl_seconds: int = 300, *, clock: Callable[[], float] = time.time):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[Tuple[str, str], Tuple[JWKS, float]] = {}
        self._lock = threading.Lock()

    def get(self, cfg: OIDCConfig, *, refresh: bool = False) -> JWKS:
        key = (cfg.base_url, cfg.realm)
        with self._lock:
            cached = self._entries.get(key)
        if cached and not refresh and cached[1] > self._clock():
            return cached[0]
        jwks = _fetch_jwks(cfg.certs_endpoint)
        with self._lock:
            self._entries[key] = (jwks, self._clock() + self.ttl_seconds)
        return jwks


def _fetch_jwks(url: str) -> JWKS:
    try:
        resp = requests.get(url, timeout=5)
    except requests.RequestException as exc:
        raise IDTokenVerificationError("jwks_fetch_failed") from exc
    if resp.status_code != 200:
        raise IDTokenVerificationError("jwks_fetch_failed")
    try:
        body = resp.json()
    except ValueError as exc:
        raise IDTokenVerificationError("jwks_invalid") from exc
    if not isinstance(body, dict) or not isinstance(body.get("keys"), list):
        raise IDTokenVerificationError("jwks_invalid")
    return body


JWKS_CACHE = JWKSCache()


def _key_for(jwks: JWKS, kid: str) -> Optional[Dict[str, object]]:
    for key in jwks.get("keys") or []:
        if isinstance(key, dict) and key.get("kid") == kid:
            return key
    return None


def _check_time_claims(claims: Claims, now: float) -> None:
    # exp is mandatory; iat/nbf only when present. Each may be off by the skew.
    exp = claims.get("exp")
    if not isinstance(exp, (int, float)) or exp + MAX_CLOCK_SKEW_SECONDS < now:
        raise IDTokenVerificationError("token_expired")
    for name in ("iat", "nbf"):
        value = claims.get(name)
        if isinstance(value, (int, float)) and value - MAX_CLOCK_SKEW_SECONDS > now:
            raise IDTokenVerificationError("token_not_yet_valid")


def verify_id_token(
    *,
    id_token: str,
    cfg: OIDCConfig,
    cache: JWKSCache | None = None,
    now: Callable[[], float] = time.time,
) -> Claims:
    """Return the claims of a valid ID token.

    Raises `IDTokenVerificationError` with codes `invalid_id_token`,
    `missing_kid`, `unknown_kid`, `token_expired`, `token_not_yet_valid` or a
    JWKS fetch code.
    """
    cache = cache or JWKS_CACHE
    try:
        kid = jwt.get_unverified_header(id_token).get("kid")
    except JOSEError as exc:
        raise IDTokenVerificationError("invalid_id_token") from exc
    if not kid:
        raise IDTokenVerificationError("missing_kid")

    key = _key_for(cache.get(cfg), kid) or _key_for(cache.get(cfg, refresh=True), kid)
    if key is None:
        raise IDTokenVerificationError("unknown_kid")

    try:
        # Time claims are checked below with an explicit skew allowance.
        claims = jwt.decode(
            id_token,
            key,
            algorithms=["RS256"],
            audience=cfg.client_id,
            issuer=cfg.issuer,
            options={"verify_exp": False, "verify_iat": False, "verify_nbf": False, "verify_at_hash": False},
        )
    except JOSEError as exc:
        raise IDTokenVerificationError("invalid_id_token") from exc
    _check_time_claims(claims, now())
    return claims


def user_from_claims(claims: Claims) -> AuthUser:
    """Map verified claims onto an `AuthUser`.

    Display name: `name`, else `given_name`, else none (the UI shows the email).
    """
    sub = claims.get("sub")
    if not isinstance(sub, str) or not sub:
        raise IDTokenVerificationError("missing_sub")
    email = claims.get("email")
    name = claims.get("name") or claims.get("given_name")
    return AuthUser(
        uid=sub,
        email=str(email) if email else None,
        display_name=str(name) if name else None,
        email_verified=bool(claims.get("email_verified", False)),
    )
