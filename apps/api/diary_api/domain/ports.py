from __future__ import annotations

from typing import Callable, Protocol, runtime_checkable

from diary_api.domain.entities import Identity

AuthStateCallback = Callable[[Identity | None], None]
Unsubscribe = Callable[[], None]


@runtime_checkable
class KeyValueStorage(Protocol):
    def get_item(self, key: str) -> str | None:
        ...

    def set_item(self, key: str, value: str) -> None:
        ...

    def remove_item(self, key: str) -> None:
        ...


@runtime_checkable
class IdentityProvider(Protocol):
    def current_identity(self) -> Identity | None:
        ...

    def on_auth_state_changed(self, callback: AuthStateCallback) -> Unsubscribe:
        ...

    def sign_in(self, identity: Identity) -> None:
        ...

    def sign_out(self) -> None:
        ...
