"""Zettel: a small networked-notes library."""

from zettel.app import Zettelkasten
from zettel.config import Settings
from zettel.markdown import decode_note, encode_note, sanitize_title
from zettel.note import Draft, Note
from zettel.parser import extract_links, extract_tags
from zettel.repository import NoteRepository
from zettel.storage import DirectoryBackend, KeyValueBackend, StorageBackend

__all__ = [
    "Note",
    "Draft",
    "NoteRepository",
    "Settings",
    "Zettelkasten",
    "extract_tags",
    "extract_links",
    "encode_note",
    "decode_note",
    "sanitize_title",
    "StorageBackend",
    "KeyValueBackend",
    "DirectoryBackend",
]
