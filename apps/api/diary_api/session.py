from __future__ import annotations

import logging
from typing import Callable

from diary_api.diagnostics import Diagnostics
from diary_api.domain.entities import Identity
from diary_api.domain.ports import IdentityProvider, Unsubscribe
from diary_api.notes import GUEST_SCOPE

logger = logging.getLogger("diary.session")

ScopeListener = Callable[[str], None]


def scope_for(identity: Identity | None) -> str:
    if identity is None:
        return GUEST_SCOPE
    return identity.email or identity.uid or GUEST_SCOPE


def username_for(identity: Identity | None) -> str:
    if identity is None:
        return "Guest"
    if identity.display_name:
        return identity.display_name
    if identity.email:
        return identity.email.split("@")[0] or "Guest"
    return "Guest"


class SessionState:
    """Mirror of the identity provider's current user.

    `start()` registers with the provider and `stop()` unregisters; in between
    every auth state change updates `identity` and is forwarded to scope
    listeners (the note store switches collections on it).
    """

    def __init__(self, provider: IdentityProvider, diagnostics: Diagnostics) -> None:
        self.provider = provider
        self.diagnostics = diagnostics
        self.identity: Identity | None = None
        self._unsubscribe: Unsubscribe | None = None
        self._scope_listeners: list[ScopeListener] = []

    @property
    def started(self) -> bool:
        return self._unsubscribe is not None

    @property
    def signed_in(self) -> bool:
        return self.identity is not None

    @property
    def scope_key(self) -> str:
        return scope_for(self.identity)

    @property
    def username(self) -> str:
        return username_for(self.identity)

    def start(self) -> None:
        if self._unsubscribe is not None:
            return
        self._unsubscribe = self.provider.on_auth_state_changed(self._on_auth_state_changed)

    def stop(self) -> None:
        if self._unsubscribe is None:
            return
        self._unsubscribe()
        self._unsubscribe = None

    def add_scope_listener(self, listener: ScopeListener) -> None:
        self._scope_listeners.append(listener)

    def remove_scope_listener(self, listener: ScopeListener) -> None:
        if listener in self._scope_listeners:
            self._scope_listeners.remove(listener)

    def _on_auth_state_changed(self, identity: Identity | None) -> None:
        previous = self.scope_key
        self.identity = identity
        logger.info("auth_state", extra={"scope": self.scope_key, "signed_in": identity is not None})
        if self.scope_key != previous:
            for listener in list(self._scope_listeners):
                listener(self.scope_key)

    def sign_in(self, identity: Identity) -> None:
        try:
            self.provider.sign_in(identity)
        except Exception as e:
            self.diagnostics.report("sign_in_failed", e)

    def sign_out(self) -> None:
        try:
            self.provider.sign_out()
        except Exception as e:
            self.diagnostics.report("sign_out_failed", e)
