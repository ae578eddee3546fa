"""Directory storage backend: one Markdown file per note.

Files are named after the note id by default (``<id>.md``). The ``"title"``
strategy names them after the sanitized title instead, matching folders
written by older versions; under that strategy two titles that sanitize to
the same name share one file and the later write wins.

Ids that are not a plain file name (empty, ``..``, or containing a path
separator) are sanitized before use, so no note is ever written or deleted
outside the granted directory.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal, Sequence

from zettel.errors import NoteIOError
from zettel.markdown import NOTE_EXTENSION, decode_note, encode_note, sanitize_title
from zettel.note import Note, is_safe_id

logger = logging.getLogger(__name__)

FilenameStrategy = Literal["id", "title"]
FILENAME_STRATEGIES: tuple[str, ...] = ("id", "title")


class DirectoryBackend:
    """Per-note Markdown files inside a granted directory."""

    granular = True

    def __init__(self, directory: Path | str, *, filenames: FilenameStrategy = "id") -> None:
        if filenames not in FILENAME_STRATEGIES:
            raise ValueError(f"Unknown filename strategy {filenames!r}")
        self.directory = Path(directory)
        self.filenames = filenames
        #: Per-file errors from the most recent :meth:`load`
        self.last_errors: list[NoteIOError] = []

    def filename_for(self, note: Note) -> str:
        if self.filenames == "title":
            stem = sanitize_title(note.title)
        elif is_safe_id(note.id):
            stem = note.id
        else:
            stem = sanitize_title(note.id) or "untitled"
        return stem + NOTE_EXTENSION

    def path_for(self, note: Note) -> Path:
        return self.directory / self.filename_for(note)

    # ------------------------------------------------------------------
    # StorageBackend
    # ------------------------------------------------------------------

    def load(self) -> list[Note]:
        """Read every top-level ``*.md`` file; unreadable files are skipped."""
        self.last_errors = []
        notes: list[Note] = []
        for path in sorted(self.directory.iterdir()):
            if not path.name.endswith(NOTE_EXTENSION) or not path.is_file():
                continue
            try:
                text = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                logger.warning("Skipping unreadable note file %s: %s", path, exc)
                self.last_errors.append(NoteIOError(path, f"Failed to read {path.name}: {exc}"))
                continue
            notes.append(decode_note(text, path.name[: -len(NOTE_EXTENSION)]))
        logger.info("Loaded %d notes from %s", len(notes), self.directory)
        return notes

    def save_one(self, note: Note) -> bool:
        path = self.path_for(note)
        try:
            path.write_text(encode_note(note), encoding="utf-8")
        except OSError:
            logger.exception("Failed to save note %r to %s", note.title, path)
            return False
        return True

    def save_all(self, notes: Sequence[Note]) -> int:
        saved = 0
        for note in notes:
            if self.save_one(note):
                saved += 1
        return saved

    def delete_one(self, note: Note) -> bool:
        path = self.path_for(note)
        try:
            path.unlink()
        except OSError as exc:
            logger.warning("Failed to delete note file %s: %s", path, exc)
            return False
        return True
