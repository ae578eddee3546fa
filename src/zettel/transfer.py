"""Bulk import/export of the note collection.

Independent of the active storage backend: these functions turn notes into
JSON or Markdown text and back. Writing the text somewhere is left to the
caller (see :meth:`zettel.app.Zettelkasten.export_json`).
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable, Sequence

from zettel.errors import MalformedImportError, NoteIOError
from zettel.markdown import NOTE_EXTENSION, decode_note, render_combined
from zettel.note import Note

JSON_EXPORT_NAME = "zettelkasten-notes.json"
MARKDOWN_EXPORT_NAME = "zettelkasten-notes.md"


def export_json(notes: Iterable[Note]) -> str:
    """Serialize *notes* as a JSON array of note records."""
    return json.dumps([note.to_dict() for note in notes], indent=2, ensure_ascii=False)


def import_json(text: str) -> list[Note]:
    """Parse a JSON export.

    Raises :class:`MalformedImportError` when the payload is not JSON, its
    top level is not an array, or any element is not a note record. Nothing
    is returned in that case, so callers never apply a partial import.
    """
    try:
        records = json.loads(text)
    except json.JSONDecodeError as exc:
        raise MalformedImportError(f"Import is not valid JSON: {exc}") from exc
    if not isinstance(records, list):
        raise MalformedImportError(
            f"Import must be a JSON array of notes, got {type(records).__name__}"
        )
    return [Note.from_dict(record) for record in records]


def export_markdown(notes: Iterable[Note]) -> str:
    """Render every note into one Markdown document separated by rules."""
    return render_combined(notes)


def import_markdown_files(paths: Sequence[Path | str]) -> list[Note]:
    """Decode each Markdown file into a note, using the file stem as its id."""
    notes: list[Note] = []
    for path in map(Path, paths):
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise NoteIOError(path, f"Failed to read {path.name}: {exc}") from exc
        stem = path.name[: -len(NOTE_EXTENSION)] if path.name.endswith(NOTE_EXTENSION) else path.stem
        notes.append(decode_note(text, stem))
    return notes
