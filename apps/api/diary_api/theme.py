from __future__ import annotations

import logging
from typing import Literal

from diary_api.diagnostics import Diagnostics
from diary_api.domain.exceptions import InvalidThemeError, StorageError
from diary_api.domain.ports import KeyValueStorage

Theme = Literal["light", "dark"]

THEME_KEY = "diary.theme"
THEMES: tuple[str, ...] = ("light", "dark")
DEFAULT_THEME: Theme = "light"

logger = logging.getLogger("diary.theme")


class DisplayMode:
    """Display mode shared by everything rendered in this process."""

    def __init__(self) -> None:
        self.dark = False

    def apply(self, theme: str) -> None:
        self.dark = theme == "dark"


class ThemeState:
    def __init__(self, storage: KeyValueStorage, display: DisplayMode, diagnostics: Diagnostics) -> None:
        self.storage = storage
        self.display = display
        self.diagnostics = diagnostics
        self._theme: str = self._load()
        self.display.apply(self._theme)

    @property
    def theme(self) -> str:
        return self._theme

    def _load(self) -> str:
        try:
            stored = self.storage.get_item(THEME_KEY)
        except StorageError as e:
            self.diagnostics.report("theme_load_failed", e, key=THEME_KEY)
            return DEFAULT_THEME
        if stored in THEMES:
            return stored
        return DEFAULT_THEME

    def set(self, theme: str) -> str:
        if theme not in THEMES:
            raise InvalidThemeError(theme)
        self._theme = theme
        self.display.apply(theme)
        try:
            self.storage.set_item(THEME_KEY, theme)
        except StorageError as e:
            self.diagnostics.report("theme_save_failed", e, key=THEME_KEY)
        logger.info("theme_change", extra={"theme": theme})
        return theme

    def toggle(self) -> str:
        return self.set("light" if self._theme == "dark" else "dark")
