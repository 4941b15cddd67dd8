from functools import lru_cache

from diary_api.config import load_settings
from diary_api.diagnostics import Diagnostics
from diary_api.infrastructure.identity import LocalIdentityProvider
from diary_api.infrastructure.storage import FileStorage
from diary_api.notes import NoteStore
from diary_api.session import SessionState
from diary_api.theme import DisplayMode, ThemeState

@lru_cache()
def get_settings():
    return load_settings()

@lru_cache()
def get_diagnostics():
    return Diagnostics(limit=get_settings().diagnostics_limit)

@lru_cache()
def get_storage():
    return FileStorage(get_settings().data_dir)

@lru_cache()
def get_identity_provider():
    return LocalIdentityProvider()

@lru_cache()
def get_session():
    return SessionState(get_identity_provider(), get_diagnostics())

@lru_cache()
def get_store():
    return NoteStore(get_storage(), get_diagnostics(), get_session().scope_key)

@lru_cache()
def get_display():
    return DisplayMode()

@lru_cache()
def get_theme():
    return ThemeState(get_storage(), get_display(), get_diagnostics())


CACHED_GETTERS = (
    get_settings,
    get_diagnostics,
    get_storage,
    get_identity_provider,
    get_session,
    get_store,
    get_display,
    get_theme,
)


def reset_dependencies() -> None:
    for getter in CACHED_GETTERS:
        getter.cache_clear()
