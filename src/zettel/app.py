"""Zettelkasten: application state tying the repository to its backends.

Usage::

    zk = Zettelkasten(Settings.load(), picker=my_directory_dialog)
    zk.initialize()                     # key-value store, or ZETTEL_NOTES_DIR

    note = zk.new_note("Cats", "I like #animals, see [[Dogs]].")
    target = zk.follow_link("Dogs")     # Draft: no note titled "Dogs" yet
    zk.save_draft()

    zk.select_directory()               # asks the picker, switches to files
    zk.save_all_to_files()
    print(zk.status_message)            # "Saved 2 of 2 notes to files."

Only one backend is active at a time. The key-value store is used until a
directory is granted; granting one replaces the visible notes with that
directory's contents (there is no merge). Every failure becomes a
``status_message`` and a log record; none of them stop the session.
"""

from __future__ import annotations

import functools
import logging
from pathlib import Path
from typing import Any, Callable, Sequence

from zettel import transfer
from zettel.config import Settings
from zettel.errors import (
    MalformedImportError,
    NoteIOError,
    UnsupportedPlatformError,
    UserCancelledError,
)
from zettel.note import Draft, Note
from zettel.repository import NoteRepository
from zettel.storage.base import StorageBackend
from zettel.storage.directory import DirectoryBackend
from zettel.storage.keyvalue import KeyValueBackend

logger = logging.getLogger(__name__)

#: Returns the directory the user chose, or ``None`` when they cancel.
DirectoryPicker = Callable[[], Path | str | None]


def _guarded(method: Callable[..., Any]) -> Callable[..., Any]:
    """Ignore the call while a load/save is running; flag it as running."""

    @functools.wraps(method)
    def wrapper(self: "Zettelkasten", *args: Any, **kwargs: Any) -> Any:
        if self.is_loading:
            logger.debug("Ignoring %s while another operation runs", method.__name__)
            return None
        self.is_loading = True
        try:
            return method(self, *args, **kwargs)
        finally:
            self.is_loading = False

    return wrapper


class Zettelkasten:
    """Owns the active backend, the repository, and the user-facing status."""

    def __init__(self, settings: Settings | None = None, *, picker: DirectoryPicker | None = None) -> None:
        self.settings = settings or Settings()
        self.picker = picker
        self.status_message = ""
        self.is_loading = False
        self.draft: Draft | None = None
        self.directory: Path | None = None
        self.fallback = KeyValueBackend(self.settings.store_path, key=self.settings.store_key)
        self.backend: StorageBackend = self.fallback
        self.repository = NoteRepository(self.backend, on_status=self._set_status)

    # ------------------------------------------------------------------
    # Startup / backend selection
    # ------------------------------------------------------------------

    def initialize(self) -> "Zettelkasten":
        """Load the key-value store, then grant ``settings.notes_dir`` if set."""
        self.repository.replace_all(self.fallback.load(), persist=False)
        logger.info("Loaded %d notes from key-value store", len(self.repository))
        if self.settings.notes_dir is not None:
            self.select_directory(self.settings.notes_dir)
        return self

    @property
    def notes(self) -> list[Note]:
        return self.repository.notes

    @_guarded
    def select_directory(self, path: Path | str | None = None) -> Path | None:
        """Grant a directory and make it the authoritative store.

        Without *path* the configured picker is asked. Failures leave the
        current backend and notes untouched.
        """
        try:
            directory = self._resolve_directory(path)
        except UnsupportedPlatformError as exc:
            logger.warning("%s", exc)
            self._set_status("Directory access is not supported on this platform.")
            return None
        except UserCancelledError as exc:
            logger.info("Directory selection failed: %s", exc)
            self._set_status("Directory selection was canceled or failed.")
            return None

        backend = DirectoryBackend(directory, filenames=self.settings.filenames)
        self._set_status("Loading notes...")
        try:
            loaded = backend.load()
        except OSError:
            logger.exception("Error loading notes from %s", directory)
            self._set_status("Failed to load notes from directory.")
            return None

        self.directory = directory
        self.backend = backend
        self.repository.backend = backend
        self.repository.replace_all(loaded, persist=False)
        logger.info('Directory "%s" selected for note storage', directory)
        message = f"Loaded {len(loaded)} notes."
        if backend.last_errors:
            message += f" {len(backend.last_errors)} files could not be read."
        self._set_status(message)
        return directory

    def _resolve_directory(self, path: Path | str | None) -> Path:
        if path is None:
            if self.picker is None:
                raise UnsupportedPlatformError("No directory picker is available")
            path = self.picker()
            if path is None:
                raise UserCancelledError("Directory picker was dismissed")
        directory = Path(path).expanduser()
        if not directory.is_dir():
            raise UserCancelledError(f"{directory} is not a directory")
        return directory

    # ------------------------------------------------------------------
    # Notes
    # ------------------------------------------------------------------

    def new_note(self, title: str = "", content: str = "") -> Note:
        note = self.repository.create(title or f"Note {len(self.repository) + 1}", content)
        self.draft = None
        return note

    def edit_note(self, note_id: str, title: str, content: str) -> Note | None:
        note = self.repository.update(note_id, title, content)
        if note is not None:
            self.repository.select(note.id)
        return note

    def delete_note(self, note_id: str) -> Note | None:
        return self.repository.delete(note_id)

    def view_note(self, note_id: str) -> Note | None:
        return self.repository.select(note_id)

    def search(self, term: str) -> list[Note]:
        return self.repository.search(term)

    def follow_link(self, title: str) -> Note | Draft:
        """Open the note titled *title*, or stage a draft for it."""
        note = self.repository.resolve_link(title)
        if note is not None:
            self.repository.select(note.id)
            return note
        self.draft = Draft(title=title, content=f"This is a new note about {title}")
        return self.draft

    def save_draft(self, title: str | None = None, content: str | None = None) -> Note | None:
        if self.draft is None:
            return None
        draft = self.draft
        note = self.new_note(
            draft.title if title is None else title,
            draft.content if content is None else content,
        )
        self.repository.select(note.id)
        return note

    def discard_draft(self) -> None:
        self.draft = None

    @_guarded
    def save_all_to_files(self) -> int:
        if self.directory is None:
            self._set_status("No directory selected for saving notes.")
            return 0
        self._set_status("Saving notes...")
        saved = self.repository.save_all()
        self._set_status(f"Saved {saved} of {len(self.repository)} notes to files.")
        return saved

    # ------------------------------------------------------------------
    # Import / export
    # ------------------------------------------------------------------

    @_guarded
    def import_json(self, text: str) -> list[Note] | None:
        """Replace the collection with a JSON export; malformed input changes nothing."""
        try:
            imported = transfer.import_json(text)
        except MalformedImportError as exc:
            logger.warning("Rejected JSON import: %s", exc)
            self._set_status("Invalid notes format in the imported file.")
            return None
        self.repository.replace_all(imported)
        self._set_status(f"Imported {len(imported)} notes.")
        return imported

    def import_json_file(self, path: Path | str) -> list[Note] | None:
        try:
            text = Path(path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            logger.exception("Error importing notes from %s", path)
            self._set_status("Failed to import notes.")
            return None
        return self.import_json(text)

    @_guarded
    def import_markdown(self, paths: Sequence[Path | str]) -> list[Note] | None:
        """Append one note per Markdown file."""
        try:
            imported = transfer.import_markdown_files(paths)
        except NoteIOError as exc:
            logger.warning("Markdown import failed: %s", exc)
            self._set_status("Failed to import some markdown notes.")
            return None
        added = self.repository.extend(imported)
        self._set_status(f"Imported {len(added)} notes.")
        return added

    def export_json(self, path: Path | str | None = None) -> str:
        text = transfer.export_json(self.notes)
        if self._write_export(text, path, transfer.JSON_EXPORT_NAME):
            self._set_status("Notes exported as JSON.")
        return text

    def export_markdown(self, path: Path | str | None = None) -> str:
        text = transfer.export_markdown(self.notes)
        if self._write_export(text, path, transfer.MARKDOWN_EXPORT_NAME):
            self._set_status("Notes exported as markdown.")
        return text

    def _write_export(self, text: str, path: Path | str | None, default_name: str) -> bool:
        if path is None:
            return True
        target = Path(path)
        if target.is_dir():
            target = target / default_name
        try:
            target.write_text(text, encoding="utf-8")
        except OSError as exc:
            error = NoteIOError(target, f"Failed to export notes: {exc}")
            logger.warning("%s", error)
            self._set_status(str(error))
            return False
        return True

    # ------------------------------------------------------------------
    # Status / lifecycle
    # ------------------------------------------------------------------

    def _set_status(self, message: str) -> None:
        self.status_message = message

    def close(self) -> None:
        self.fallback.close()

    def __enter__(self) -> "Zettelkasten":
        return self

    def __exit__(self, *_: object) -> None:
        self.close()
