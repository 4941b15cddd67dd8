from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field


class NoteOut(BaseModel):
    id: str
    title: str
    content: str
    tags: list[str] = Field(default_factory=list)
    created_at: str
    updated_at: str
    title_html: str
    content_html: str


class NoteListOut(BaseModel):
    items: list[NoteOut] = Field(default_factory=list)
    total: int


class NoteUpdateOut(BaseModel):
    item: Optional[NoteOut] = None


class NoteCreateIn(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None
    tags: Optional[list[str]] = None
    tags_input: Optional[str] = None


class NoteUpdateIn(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None
    tags: Optional[list[str]] = None
    tags_input: Optional[str] = None


class SignInIn(BaseModel):
    uid: Optional[str] = None
    email: Optional[str] = None
    display_name: Optional[str] = None


class SessionOut(BaseModel):
    signed_in: bool
    username: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    scope: str


class ThemeIn(BaseModel):
    theme: Literal["light", "dark"]


class ThemeOut(BaseModel):
    theme: Literal["light", "dark"]


class QuoteOut(BaseModel):
    quote: str


class DiagnosticOut(BaseModel):
    event: str
    error: str
    at: str
    context: dict = Field(default_factory=dict)


class DiagnosticsOut(BaseModel):
    items: list[DiagnosticOut] = Field(default_factory=list)
