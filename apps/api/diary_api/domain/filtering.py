from __future__ import annotations

from typing import Iterable

from diary_api.domain.entities import Note


def matches_query(note: Note, query: str) -> bool:
    if not query:
        return True
    text = (note.title + " " + note.content).lower()
    return query.lower() in text


def matches_tag(note: Note, tag_filter: str) -> bool:
    # A leading "#" on the filter is kept: tags are compared in their "#tag"
    # display form, so "happy" and "#happy" both match the tag "happy".
    if not tag_filter:
        return True
    needle = tag_filter.lower()
    return any(needle in f"#{tag}".lower() for tag in note.tags)


def filter_notes(notes: Iterable[Note], query: str = "", tag_filter: str = "") -> list[Note]:
    return [n for n in notes if matches_query(n, query) and matches_tag(n, tag_filter)]


def parse_tags_input(text: str) -> list[str]:
    """Split the editor's "tags, comma, separated" field."""
    return [t for t in (part.strip() for part in text.split(",")) if t]
