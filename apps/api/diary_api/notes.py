from __future__ import annotations

import json
import logging
import uuid
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Callable

from diary_api.diagnostics import Diagnostics
from diary_api.domain.entities import Note, NoteDraft, NotePatch
from diary_api.domain.exceptions import StorageError
from diary_api.domain.ports import KeyValueStorage
from diary_api.util import parse_rfc3339, rfc3339, utc_now

GUEST_SCOPE = "guest"
DEFAULT_TITLE = "Untitled"

logger = logging.getLogger("diary.store")


def notes_key(scope: str | None) -> str:
    return f"diary.notes.{scope or GUEST_SCOPE}"


def note_to_record(note: Note) -> dict:
    return {
        "id": note.id,
        "title": note.title,
        "html": note.content,
        "tags": list(note.tags),
        "createdAt": rfc3339(note.created_at),
        "updatedAt": rfc3339(note.updated_at),
    }


def note_from_record(record: object) -> Note | None:
    if not isinstance(record, dict):
        return None
    note_id = record.get("id")
    if not isinstance(note_id, str) or not note_id:
        return None
    try:
        created_at = parse_rfc3339(str(record["createdAt"]))
        updated_at = parse_rfc3339(str(record.get("updatedAt") or record["createdAt"]))
    except (KeyError, ValueError, OverflowError):
        return None
    title = record.get("title")
    content = record.get("html")
    raw_tags = record.get("tags")
    tags = tuple(t for t in raw_tags if isinstance(t, str)) if isinstance(raw_tags, list) else ()
    return Note(
        id=note_id,
        title=title if isinstance(title, str) else DEFAULT_TITLE,
        content=content if isinstance(content, str) else "",
        tags=tags,
        created_at=created_at,
        updated_at=max(updated_at, created_at),
    )


def serialize_notes(notes: list[Note]) -> str:
    return json.dumps([note_to_record(n) for n in notes], ensure_ascii=False)


def deserialize_notes(text: str | None) -> list[Note]:
    """Decode a persisted collection.

    Raises ValueError when the payload is not a JSON array. Records that
    cannot be read back as notes are skipped.
    """
    if not text:
        return []
    data = json.loads(text)
    if not isinstance(data, list):
        raise ValueError("notes_not_sequence")
    notes: list[Note] = []
    seen: set[str] = set()
    for record in data:
        note = note_from_record(record)
        if note is None or note.id in seen:
            continue
        seen.add(note.id)
        notes.append(note)
    return notes


class NoteStore:
    """Collection of notes for the active identity scope.

    Every mutation rewrites the whole collection to storage. Storage
    failures are reported to diagnostics and otherwise ignored: a failed
    read yields an empty collection, a failed write keeps the in-memory one.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        diagnostics: Diagnostics,
        scope: str = GUEST_SCOPE,
        *,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
    ) -> None:
        self.storage = storage
        self.diagnostics = diagnostics
        self.clock = clock
        self.id_factory = id_factory
        self.scope = scope or GUEST_SCOPE
        self._notes: list[Note] = self._load()

    @property
    def key(self) -> str:
        return notes_key(self.scope)

    @property
    def notes(self) -> list[Note]:
        return list(self._notes)

    def _load(self) -> list[Note]:
        try:
            return deserialize_notes(self.storage.get_item(self.key))
        except (StorageError, ValueError, RecursionError) as e:
            self.diagnostics.report("notes_load_failed", e, key=self.key)
            return []

    def _persist(self) -> None:
        try:
            self.storage.set_item(self.key, serialize_notes(self._notes))
        except StorageError as e:
            self.diagnostics.report("notes_save_failed", e, key=self.key)

    def switch_scope(self, scope: str | None) -> None:
        scope = scope or GUEST_SCOPE
        if scope == self.scope:
            return
        logger.info("scope_switch", extra={"scope": scope})
        self.scope = scope
        self._notes = self._load()

    def get(self, note_id: str) -> Note | None:
        for note in self._notes:
            if note.id == note_id:
                return note
        return None

    def _new_id(self) -> str:
        existing = {n.id for n in self._notes}
        note_id = self.id_factory()
        while note_id in existing:
            note_id = self.id_factory()
        return note_id

    def create(self, draft: NoteDraft) -> Note:
        now = self.clock()
        title = (draft.title or "").strip() or DEFAULT_TITLE
        note = Note(
            id=self._new_id(),
            title=title,
            content=draft.content or "",
            tags=tuple(draft.tags or ()),
            created_at=now,
            updated_at=now,
        )
        self._notes.insert(0, note)
        self._persist()
        return note

    def update(self, note_id: str, patch: NotePatch) -> Note | None:
        for idx, note in enumerate(self._notes):
            if note.id != note_id:
                continue
            now = self.clock()
            if now <= note.updated_at:
                now = note.updated_at + timedelta(microseconds=1)
            changes: dict = {"updated_at": now}
            if patch.title is not None:
                changes["title"] = patch.title
            if patch.content is not None:
                changes["content"] = patch.content
            if patch.tags is not None:
                changes["tags"] = tuple(patch.tags)
            updated = replace(note, **changes)
            self._notes[idx] = updated
            self._persist()
            return updated
        self._persist()
        return None

    def delete(self, note_id: str) -> None:
        self._notes = [n for n in self._notes if n.id != note_id]
        self._persist()
