from __future__ import annotations

from diary_api.domain.entities import Identity
from diary_api.domain.exceptions import IdentityProviderError
from diary_api.domain.ports import AuthStateCallback, Unsubscribe


class LocalIdentityProvider:
    """In-process stand-in for the external identity provider.

    The sign-in popup runs in the client; what arrives here is the identity
    the provider already asserted. Listeners are notified synchronously, and
    once on subscription with the current identity.
    """

    def __init__(self, initial: Identity | None = None) -> None:
        self._current = initial
        self._listeners: list[AuthStateCallback] = []

    def current_identity(self) -> Identity | None:
        return self._current

    def on_auth_state_changed(self, callback: AuthStateCallback) -> Unsubscribe:
        self._listeners.append(callback)
        callback(self._current)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def listener_count(self) -> int:
        return len(self._listeners)

    def sign_in(self, identity: Identity) -> None:
        if not (identity.email or identity.uid):
            raise IdentityProviderError("identity_missing_subject")
        self._set(identity)

    def sign_out(self) -> None:
        self._set(None)

    def _set(self, identity: Identity | None) -> None:
        self._current = identity
        for listener in list(self._listeners):
            listener(identity)
