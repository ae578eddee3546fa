"""NoteRepository: the in-memory note collection and its write-through."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, Iterable

from zettel.note import IdGenerator, Note
from zettel.storage.base import StorageBackend

logger = logging.getLogger(__name__)

StatusCallback = Callable[[str], None]


class NoteRepository:
    """Holds the current notes and the selected note; persists every change.

    The ``notes`` list is replaced wholesale on each mutation, never edited
    in place. Granular backends receive ``save_one``/``delete_one`` for the
    affected note; other backends receive the whole collection.
    """

    def __init__(
        self,
        backend: StorageBackend,
        notes: Iterable[Note] = (),
        *,
        on_status: StatusCallback | None = None,
        ids: IdGenerator | None = None,
    ) -> None:
        self.backend = backend
        self.notes: list[Note] = list(notes)
        self.selected: str | None = None
        self._on_status = on_status
        self._ids = ids or IdGenerator()

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get(self, note_id: str) -> Note | None:
        for note in self.notes:
            if note.id == note_id:
                return note
        return None

    def __len__(self) -> int:
        return len(self.notes)

    def __contains__(self, note_id: object) -> bool:
        return any(note.id == note_id for note in self.notes)

    @property
    def selected_note(self) -> Note | None:
        return self.get(self.selected) if self.selected is not None else None

    def select(self, note_id: str) -> Note | None:
        note = self.get(note_id)
        if note is not None:
            self.selected = note_id
        return note

    def clear_selection(self) -> None:
        self.selected = None

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create(self, title: str, content: str) -> Note:
        note = Note.create(self._ids.next_id(n.id for n in self.notes), title, content)
        self.notes = [*self.notes, note]
        self._persist(note)
        return note

    def update(self, note_id: str, title: str, content: str) -> Note | None:
        current = self.get(note_id)
        if current is None:
            logger.debug("Ignoring update of unknown note %s", note_id)
            return None
        updated = current.revise(title, content)
        self.notes = [updated if n.id == note_id else n for n in self.notes]
        self._persist(updated)
        return updated

    def delete(self, note_id: str) -> Note | None:
        """Remove a note. Backend failures are reported, never rolled back."""
        note = self.get(note_id)
        if note is None:
            return None
        if self.backend.granular and not self.backend.delete_one(note):
            self._report(f'Failed to delete file for note "{note.title}".')
        self.notes = [n for n in self.notes if n.id != note_id]
        if self.selected == note_id:
            self.selected = None
        if not self.backend.granular:
            self._write_collection()
        return note

    def replace_all(self, notes: Iterable[Note], *, persist: bool = True) -> int:
        """Swap in a whole new collection; returns how many notes were saved."""
        self.notes = list(notes)
        if self.selected is not None and self.selected not in self:
            self.selected = None
        return self.save_all() if persist else 0

    def extend(self, notes: Iterable[Note]) -> list[Note]:
        """Append *notes*; any id already taken is replaced by a fresh one."""
        added: list[Note] = []
        taken = {n.id for n in self.notes}
        for note in notes:
            if note.id in taken:
                note = replace(note, id=self._ids.next_id(taken))
            taken.add(note.id)
            added.append(note)
        self.notes = [*self.notes, *added]
        self.save_all()
        return added

    def save_all(self) -> int:
        saved = self.backend.save_all(self.notes)
        if saved < len(self.notes):
            logger.warning("Saved %d of %d notes", saved, len(self.notes))
        return saved

    # ------------------------------------------------------------------
    # Query helpers
    # ------------------------------------------------------------------

    def search(self, term: str) -> list[Note]:
        """Case-insensitive substring match on title, content, or any tag."""
        q = term.lower()
        return [
            n
            for n in self.notes
            if q in n.title.lower() or q in n.content.lower() or any(q in t.lower() for t in n.tags)
        ]

    def resolve_link(self, title: str) -> Note | None:
        """Exact, case-sensitive title lookup."""
        for note in self.notes:
            if note.title == title:
                return note
        return None

    def backlinks(self, title: str) -> list[Note]:
        """Notes whose ``[[links]]`` point at *title*."""
        return [n for n in self.notes if title in n.links]

    def notes_with_tag(self, tag: str) -> list[Note]:
        return [n for n in self.notes if tag in n.tags]

    # ------------------------------------------------------------------
    # Write-through
    # ------------------------------------------------------------------

    def _persist(self, note: Note) -> None:
        if not self.backend.granular:
            self._write_collection()
        elif not self.backend.save_one(note):
            self._report(f'Failed to save note "{note.title}".')

    def _write_collection(self) -> None:
        if self.backend.save_all(self.notes) < len(self.notes):
            self._report("Failed to save notes.")

    def _report(self, message: str) -> None:
        logger.warning(message)
        if self._on_status is not None:
            self._on_status(message)
