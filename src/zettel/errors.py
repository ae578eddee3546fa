"""Exception hierarchy for the notes library."""

from __future__ import annotations

from pathlib import Path


class ZettelError(Exception):
    """Base class for every error raised by :mod:`zettel`."""


class UnsupportedPlatformError(ZettelError):
    """Directory access is not available (no picker was supplied)."""


class UserCancelledError(ZettelError):
    """The directory picker was dismissed or returned an unusable path."""


class NoteIOError(ZettelError):
    """A note file could not be read, written, or removed."""

    def __init__(self, path: Path | str, message: str = "") -> None:
        self.path = Path(path)
        super().__init__(message or f"I/O failure on {self.path}")


class MalformedImportError(ZettelError):
    """An imported payload does not have the export shape."""
