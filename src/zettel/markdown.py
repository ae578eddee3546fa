"""Markdown codec: one note per document, title as a level-1 heading.

File layout::

    # Title

    Body text with #tags and [[links]].

Decoding also accepts an optional leading YAML front-matter block (as written
by other Markdown vaults). Its ``title`` and timestamps are used when present,
and the block itself is kept on the note and written back verbatim on encode.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Iterable

from zettel.errors import MalformedImportError
from zettel.note import Note, parse_timestamp, utcnow
from zettel.parser import extract_links, extract_tags, parse_frontmatter

NOTE_EXTENSION = ".md"
HEADING_PREFIX = "# "
HORIZONTAL_RULE = "---"

_UNSAFE_FILENAME_RE = re.compile(r"[^A-Za-z0-9]")


def sanitize_title(title: str) -> str:
    """Replace every character outside ``[A-Za-z0-9]`` with ``-`` and lowercase."""
    return _UNSAFE_FILENAME_RE.sub("-", title).lower()


def encode_note(note: Note) -> str:
    return f"{note.frontmatter}{HEADING_PREFIX}{note.title}\n\n{note.content}"


def _frontmatter_time(meta: dict, *keys: str) -> datetime | None:
    for key in keys:
        value = meta.get(key)
        if value is None:
            continue
        if isinstance(value, datetime):
            return parse_timestamp(value)
        try:
            return parse_timestamp(str(value))
        except MalformedImportError:
            continue
    return None


def decode_note(text: str, fallback_id: str, *, now: datetime | None = None) -> Note:
    """Parse a Markdown document into a :class:`Note` whose id is *fallback_id*.

    When the first line is ``# <title>`` it supplies the title and the
    remainder (stripped) is the content. Otherwise the whole text is the
    content and the title falls back to the front-matter ``title`` or
    *fallback_id*. Timestamps come from front matter when present and default
    to decode time otherwise. The raw front-matter block is kept on
    ``Note.frontmatter`` so saving the note does not drop its keys.
    """
    now = now or utcnow()
    meta, body = parse_frontmatter(text)
    frontmatter = text[: len(text) - len(body)]
    if frontmatter and not frontmatter.endswith("\n"):
        frontmatter += "\n"

    title = str(meta.get("title") or fallback_id)
    content = body
    first_line, _, rest = body.partition("\n")
    if first_line.startswith(HEADING_PREFIX):
        title = first_line[len(HEADING_PREFIX) :].strip()
        content = rest.strip()

    created = _frontmatter_time(meta, "createdAt", "created") or now
    updated = _frontmatter_time(meta, "updatedAt", "updated") or created

    return Note(
        id=fallback_id,
        title=title,
        content=content,
        tags=extract_tags(content),
        links=extract_links(content),
        created_at=created,
        updated_at=max(created, updated),
        frontmatter=frontmatter,
    )


def render_combined(notes: Iterable[Note]) -> str:
    """Concatenate every note's Markdown form, each followed by a horizontal rule."""
    return "".join(f"{encode_note(note)}\n\n{HORIZONTAL_RULE}\n\n" for note in notes)
