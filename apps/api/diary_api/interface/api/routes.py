import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request

from diary_api.config import Settings
from diary_api.dependencies import (
    get_diagnostics,
    get_session,
    get_settings,
    get_store,
    get_theme,
)
from diary_api.diagnostics import Diagnostics
from diary_api.domain.entities import Identity, Note, NoteDraft, NotePatch
from diary_api.domain.filtering import filter_notes, parse_tags_input
from diary_api.domain.schemas import (
    DiagnosticOut,
    DiagnosticsOut,
    NoteCreateIn,
    NoteListOut,
    NoteOut,
    NoteUpdateIn,
    NoteUpdateOut,
    QuoteOut,
    SessionOut,
    SignInIn,
    ThemeIn,
    ThemeOut,
)
from diary_api.notes import NoteStore
from diary_api.quotes import pick_quote
from diary_api.rendering import render_content, render_title
from diary_api.session import SessionState
from diary_api.theme import ThemeState
from diary_api.util import rfc3339

router = APIRouter()
logger = logging.getLogger("diary.api")


def _note_out(note: Note, settings: Settings) -> NoteOut:
    return NoteOut(
        id=note.id,
        title=note.title,
        content=note.content,
        tags=list(note.tags),
        created_at=rfc3339(note.created_at),
        updated_at=rfc3339(note.updated_at),
        title_html=render_title(note.title, sanitize=settings.sanitize_html),
        content_html=render_content(note.content, sanitize=settings.sanitize_html),
    )


def _session_out(session: SessionState) -> SessionOut:
    identity = session.identity
    return SessionOut(
        signed_in=session.signed_in,
        username=session.username,
        email=identity.email if identity else None,
        display_name=identity.display_name if identity else None,
        scope=session.scope_key,
    )


def _tags_from(tags: Optional[list[str]], tags_input: Optional[str]) -> Optional[list[str]]:
    if tags is not None:
        return tags
    if tags_input is not None:
        return parse_tags_input(tags_input)
    return None


def require_notes_access(
    settings: Settings = Depends(get_settings),
    session: SessionState = Depends(get_session),
) -> None:
    if settings.require_sign_in and not session.signed_in:
        raise HTTPException(status_code=401, detail="sign_in_required")


@router.get("/health")
def health():
    return {"ok": True}


@router.get("/session", response_model=SessionOut)
def read_session(session: SessionState = Depends(get_session)):
    return _session_out(session)


@router.post("/session/sign-in", response_model=SessionOut)
def sign_in(payload: SignInIn, request: Request, session: SessionState = Depends(get_session)):
    session.sign_in(Identity(uid=payload.uid, email=payload.email, display_name=payload.display_name))
    logger.info("sign_in", extra={"rid": getattr(request.state, "request_id", ""), "signed_in": session.signed_in})
    return _session_out(session)


@router.post("/session/sign-out", response_model=SessionOut)
def sign_out(request: Request, session: SessionState = Depends(get_session)):
    session.sign_out()
    logger.info("sign_out", extra={"rid": getattr(request.state, "request_id", "")})
    return _session_out(session)


@router.get("/theme", response_model=ThemeOut)
def read_theme(theme: ThemeState = Depends(get_theme)):
    return ThemeOut(theme=theme.theme)


@router.put("/theme", response_model=ThemeOut)
def set_theme(payload: ThemeIn, theme: ThemeState = Depends(get_theme)):
    return ThemeOut(theme=theme.set(payload.theme))


@router.post("/theme/toggle", response_model=ThemeOut)
def toggle_theme(theme: ThemeState = Depends(get_theme)):
    return ThemeOut(theme=theme.toggle())


@router.get("/notes", response_model=NoteListOut, dependencies=[Depends(require_notes_access)])
def list_notes(
    q: str = "",
    tag: str = "",
    store: NoteStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    items = filter_notes(store.notes, q, tag)
    return NoteListOut(items=[_note_out(n, settings) for n in items], total=len(items))


@router.post("/notes", response_model=NoteOut, dependencies=[Depends(require_notes_access)])
def create_note(
    payload: NoteCreateIn,
    request: Request,
    store: NoteStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    note = store.create(
        NoteDraft(
            title=payload.title,
            content=payload.content,
            tags=_tags_from(payload.tags, payload.tags_input),
        )
    )
    logger.info("note_create", extra={"rid": getattr(request.state, "request_id", ""), "id": note.id, "scope": store.scope})
    return _note_out(note, settings)


@router.get("/notes/{note_id}", response_model=NoteOut, dependencies=[Depends(require_notes_access)])
def get_note(
    note_id: str,
    store: NoteStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    note = store.get(note_id)
    if note is None:
        raise HTTPException(status_code=404, detail="note_not_found")
    return _note_out(note, settings)


@router.put("/notes/{note_id}", response_model=NoteUpdateOut, dependencies=[Depends(require_notes_access)])
def update_note(
    note_id: str,
    payload: NoteUpdateIn,
    request: Request,
    store: NoteStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    note = store.update(
        note_id,
        NotePatch(
            title=payload.title,
            content=payload.content,
            tags=_tags_from(payload.tags, payload.tags_input),
        ),
    )
    logger.info("note_update", extra={"rid": getattr(request.state, "request_id", ""), "id": note_id, "found": note is not None})
    return NoteUpdateOut(item=_note_out(note, settings) if note else None)


@router.delete("/notes/{note_id}", dependencies=[Depends(require_notes_access)])
def delete_note(note_id: str, request: Request, store: NoteStore = Depends(get_store)):
    store.delete(note_id)
    logger.info("note_delete", extra={"rid": getattr(request.state, "request_id", ""), "id": note_id})
    return {"ok": True}


@router.get("/quote", response_model=QuoteOut)
def quote():
    return QuoteOut(quote=pick_quote())


@router.get("/admin/diagnostics", response_model=DiagnosticsOut)
def diagnostics(diag: Diagnostics = Depends(get_diagnostics)):
    return DiagnosticsOut(
        items=[DiagnosticOut(event=e.event, error=e.error, at=e.at, context=e.context) for e in diag.events()]
    )
