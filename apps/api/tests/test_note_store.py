from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

import pytest

from diary_api.diagnostics import Diagnostics
from diary_api.domain.entities import NoteDraft, NotePatch
from diary_api.domain.exceptions import StorageError
from diary_api.infrastructure.storage import FileStorage
from diary_api.notes import NoteStore, deserialize_notes, notes_key, serialize_notes


class StepClock:
    def __init__(self, start: datetime, step: timedelta = timedelta(seconds=1)) -> None:
        self.now = start
        self.step = step

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + self.step
        return current


class MemoryStorage:
    def __init__(self, items: dict[str, str] | None = None) -> None:
        self.items = dict(items or {})
        self.writes = 0

    def get_item(self, key: str) -> str | None:
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.writes += 1
        self.items[key] = value

    def remove_item(self, key: str) -> None:
        self.items.pop(key, None)


class BrokenStorage:
    def get_item(self, key: str) -> str | None:
        raise StorageError("disk on fire")

    def set_item(self, key: str, value: str) -> None:
        raise StorageError("disk on fire")

    def remove_item(self, key: str) -> None:
        raise StorageError("disk on fire")


T0 = datetime(2025, 1, 1, 8, 0, tzinfo=timezone.utc)


@pytest.fixture
def store() -> NoteStore:
    return NoteStore(MemoryStorage(), Diagnostics(), "me@example.com", clock=StepClock(T0))


def test_create_then_lookup_returns_same_fields(store: NoteStore) -> None:
    note = store.create(NoteDraft(title="Morning Run", content="<p>felt great</p>", tags=["fitness", "fitness"]))

    found = store.get(note.id)
    assert found is not None
    assert found.title == "Morning Run"
    assert found.content == "<p>felt great</p>"
    assert found.tags == ("fitness", "fitness")
    assert found.created_at == found.updated_at == T0


@pytest.mark.parametrize("title", [None, "", "   "])
def test_blank_title_defaults_to_untitled(store: NoteStore, title) -> None:
    note = store.create(NoteDraft(title=title))
    assert note.title == "Untitled"
    assert note.content == ""
    assert note.tags == ()


def test_new_notes_go_to_the_front_and_update_does_not_reorder(store: NoteStore) -> None:
    first = store.create(NoteDraft(title="first"))
    second = store.create(NoteDraft(title="second"))
    assert [n.id for n in store.notes] == [second.id, first.id]

    store.update(first.id, NotePatch(title="first, edited"))
    assert [n.id for n in store.notes] == [second.id, first.id]


def test_update_changes_only_title_and_updated_at(store: NoteStore) -> None:
    note = store.create(NoteDraft(title="Old", content="body", tags=["a"]))

    updated = store.update(note.id, NotePatch(title="X"))

    assert updated is not None
    assert updated.id == note.id
    assert updated.title == "X"
    assert updated.content == "body"
    assert updated.tags == ("a",)
    assert updated.created_at == note.created_at
    assert updated.updated_at > note.updated_at


def test_update_is_strictly_later_even_when_clock_stalls() -> None:
    store = NoteStore(MemoryStorage(), Diagnostics(), clock=lambda: T0)
    note = store.create(NoteDraft(title="a"))

    first = store.update(note.id, NotePatch(content="1"))
    second = store.update(note.id, NotePatch(content="2"))

    assert first.updated_at > note.updated_at
    assert second.updated_at > first.updated_at
    assert second.created_at == T0


def test_update_unknown_id_is_silent_noop(store: NoteStore) -> None:
    store.create(NoteDraft(title="a"))
    before = store.notes

    assert store.update("missing", NotePatch(title="X")) is None
    assert store.notes == before


def test_delete_is_idempotent(store: NoteStore) -> None:
    keep = store.create(NoteDraft(title="keep"))
    gone = store.create(NoteDraft(title="gone"))

    store.delete(gone.id)
    once = store.notes
    store.delete(gone.id)

    assert store.notes == once
    assert [n.id for n in once] == [keep.id]


def test_every_mutation_persists_under_scope_key() -> None:
    storage = MemoryStorage()
    store = NoteStore(storage, Diagnostics(), "me@example.com", clock=StepClock(T0))

    note = store.create(NoteDraft(title="a"))
    store.update(note.id, NotePatch(title="b"))
    store.delete(note.id)

    assert storage.writes == 3
    assert json.loads(storage.items["diary.notes.me@example.com"]) == []


def test_notes_reload_from_storage(tmp_path) -> None:
    storage = FileStorage(tmp_path)
    store = NoteStore(storage, Diagnostics(), "me@example.com", clock=StepClock(T0))
    a = store.create(NoteDraft(title="a", content="<b>x</b>", tags=["t"]))
    b = store.create(NoteDraft(title="b"))

    reloaded = NoteStore(FileStorage(tmp_path), Diagnostics(), "me@example.com")
    assert reloaded.notes == [b, a]


def test_serialize_then_deserialize_is_identity(store: NoteStore) -> None:
    store.create(NoteDraft(title="one", content="<p>ü</p>", tags=["x", "y"]))
    note = store.create(NoteDraft(title="two"))
    store.update(note.id, NotePatch(tags=["z"]))

    assert deserialize_notes(serialize_notes(store.notes)) == store.notes


def test_persisted_records_use_browser_field_names(store: NoteStore) -> None:
    store.create(NoteDraft(title="a", content="c", tags=["t"]))
    record = json.loads(serialize_notes(store.notes))[0]
    assert set(record) == {"id", "title", "html", "tags", "createdAt", "updatedAt"}
    assert record["createdAt"] == "2025-01-01T08:00:00.000000Z"


@pytest.mark.parametrize(
    "raw",
    ["{not json", '{"id": "x"}', '"text"', "42", "null", pytest.param("[" * 100000 + "]" * 100000, id="deeply-nested")],
)
def test_malformed_storage_loads_empty(raw: str) -> None:
    diagnostics = Diagnostics()
    storage = MemoryStorage({notes_key("guest"): raw})

    store = NoteStore(storage, diagnostics)

    assert store.notes == []
    assert [e.event for e in diagnostics.events()] == ["notes_load_failed"]


def test_malformed_records_are_skipped() -> None:
    raw = json.dumps(
        [
            "junk",
            {"title": "no id"},
            {"id": "bad-ts", "createdAt": "yesterday"},
            {"id": "out-of-range", "createdAt": "9999-12-31T23:59:59.999999-01:00"},
            {"id": "ok", "title": "fine", "html": "", "tags": ["a", 3], "createdAt": "2025-01-01T00:00:00.000Z"},
        ]
    )
    notes = deserialize_notes(raw)
    assert [n.id for n in notes] == ["ok"]
    assert notes[0].tags == ("a",)
    assert notes[0].updated_at == notes[0].created_at


def test_storage_failures_are_reported_not_raised() -> None:
    diagnostics = Diagnostics()
    store = NoteStore(BrokenStorage(), diagnostics, clock=StepClock(T0))

    note = store.create(NoteDraft(title="still works"))

    assert store.get(note.id) == note
    assert [e.event for e in diagnostics.events()] == ["notes_load_failed", "notes_save_failed"]
    assert "disk on fire" in diagnostics.events()[-1].error


def test_switch_scope_swaps_collection_wholesale() -> None:
    storage = MemoryStorage()
    store = NoteStore(storage, Diagnostics(), clock=StepClock(T0))
    guest_note = store.create(NoteDraft(title="guest"))

    store.switch_scope("me@example.com")
    assert store.notes == []
    mine = store.create(NoteDraft(title="mine"))

    store.switch_scope(None)
    assert store.scope == "guest"
    assert store.notes == [guest_note]

    store.switch_scope("me@example.com")
    assert store.notes == [mine]


def test_ids_are_unique_even_if_factory_repeats() -> None:
    ids = iter(["a", "a", "b"])
    store = NoteStore(MemoryStorage(), Diagnostics(), id_factory=lambda: next(ids))
    first = store.create(NoteDraft())
    second = store.create(NoteDraft())
    assert (first.id, second.id) == ("a", "b")


def test_snapshot_cannot_change_stored_tags(store: NoteStore) -> None:
    draft_tags = ["a"]
    note = store.create(NoteDraft(title="t", tags=draft_tags))
    draft_tags.append("b")

    assert store.get(note.id).tags == ("a",)
    with pytest.raises(AttributeError):
        store.notes[0].tags.append("c")
