"""Storage backend protocol."""

from __future__ import annotations

from typing import Protocol, Sequence, runtime_checkable

from zettel.note import Note


@runtime_checkable
class StorageBackend(Protocol):
    """Common interface shared by the key-value and directory backends.

    The repository depends only on this protocol, so the application can
    swap backends without changing call sites.
    """

    #: ``True`` when notes are persisted one at a time (``save_one`` does
    #: real work); ``False`` when only whole-collection writes exist.
    granular: bool

    def load(self) -> list[Note]:
        """Return every persisted note."""
        ...

    def save_all(self, notes: Sequence[Note]) -> int:
        """Persist *notes* and return how many were saved."""
        ...

    def save_one(self, note: Note) -> bool:
        """Write or overwrite a single note."""
        ...

    def delete_one(self, note: Note) -> bool:
        """Remove *note* from the store (best effort)."""
        ...
