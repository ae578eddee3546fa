"""Storage backends for the note collection."""

from zettel.storage.base import StorageBackend
from zettel.storage.directory import DirectoryBackend
from zettel.storage.keyvalue import KeyValueBackend

__all__ = ["StorageBackend", "DirectoryBackend", "KeyValueBackend"]
