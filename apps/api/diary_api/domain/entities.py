from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class Note:
    id: str
    title: str
    content: str
    tags: tuple[str, ...]
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class NoteDraft:
    title: str | None = None
    content: str | None = None
    tags: list[str] | None = None


@dataclass(frozen=True)
class NotePatch:
    """Fields left as ``None`` are kept from the existing note."""

    title: str | None = None
    content: str | None = None
    tags: list[str] | None = None


@dataclass(frozen=True)
class Identity:
    uid: str | None = None
    email: str | None = None
    display_name: str | None = None


@dataclass(frozen=True)
class DiagnosticEvent:
    event: str
    error: str
    at: str
    context: dict = field(default_factory=dict)
