"""
Identity-state change notifications.

Why:
    Sign-in, sign-up, sign-out and explicit refreshes are identity-state
    transitions. Instead of a global callback, listeners subscribe to an
    `AuthStateHub` and receive a `Subscription` they own and cancel when their
    scope ends (the app lifespan for the role resolver).

Behavior:
    - `publish` calls listeners synchronously in subscription order.
    - A listener that raises is logged and skipped; other listeners still run.
    - Cancelling is idempotent.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Optional
import itertools
import logging
import threading

from .domain import AuthUser

logger = logging.getLogger("portal.identity_access.events")

SIGNED_IN = "signed_in"
SIGNED_OUT = "signed_out"
REFRESHED = "refreshed"


@dataclass(frozen=True)
class AuthStateChange:
    kind: str
    session_id: str
    user: Optional[AuthUser]


Listener = Callable[[AuthStateChange], None]


class Subscription:
    def __init__(self, hub: "AuthStateHub", token: int) -> None:
        self._hub = hub
        self._token = token
        self.active = True

    def cancel(self) -> None:
        if self.active:
            self._hub._remove(self._token)
            self.active = False


class AuthStateHub:
    def __init__(self) -> None:
        self._listeners: Dict[int, Listener] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def subscribe(self, listener: Listener) -> Subscription:
        with self._lock:
            token = next(self._ids)
            self._listeners[token] = listener
        return Subscription(self, token)

    def _remove(self, token: int) -> None:
        with self._lock:
            self._listeners.pop(token, None)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def publish(self, change: AuthStateChange) -> None:
        with self._lock:
            listeners = list(self._listeners.values())
        for listener in listeners:
            try:
                listener(change)
            except Exception as exc:
                logger.warning("Auth state listener failed: %s", exc.__class__.__name__)
