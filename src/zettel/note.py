"""Core Note dataclass and its JSON record form."""

from __future__ import annotations

import time
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Callable, Iterable

from zettel.errors import MalformedImportError
from zettel.parser import extract_links, extract_tags


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def is_safe_id(value: str) -> bool:
    """True when *value* can be used verbatim as a single file-name component."""
    if value in ("", ".", ".."):
        return False
    return not any(ch in value for ch in ("/", "\\", "\0"))


def format_timestamp(value: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision and a ``Z`` suffix."""
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO-8601 string; naive values are taken as UTC."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError as exc:
            raise MalformedImportError(f"Invalid timestamp: {value!r}") from exc
    else:
        raise MalformedImportError(f"Invalid timestamp: {value!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class Note:
    """A single note in the collection.

    ``tags`` and ``links`` are derived from ``content``; build notes through
    :meth:`create`, :meth:`revise` or :meth:`from_dict` so they stay in step.
    """

    id: str
    title: str
    content: str
    tags: list[str] = field(default_factory=list)
    #: Titles this note links to via [[WikiLinks]]
    links: list[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    #: Verbatim YAML front-matter block read from a Markdown file, re-emitted on save
    frontmatter: str = ""

    @classmethod
    def create(
        cls,
        note_id: str,
        title: str,
        content: str,
        *,
        now: datetime | None = None,
    ) -> "Note":
        now = now or utcnow()
        return cls(
            id=note_id,
            title=title,
            content=content,
            tags=extract_tags(content),
            links=extract_links(content),
            created_at=now,
            updated_at=now,
        )

    def revise(self, title: str, content: str, *, now: datetime | None = None) -> "Note":
        """Return a new record with *title*/*content* replaced and ``updated_at`` bumped."""
        return replace(
            self,
            title=title,
            content=content,
            tags=extract_tags(content),
            links=extract_links(content),
            updated_at=now or utcnow(),
        )

    def to_dict(self) -> dict[str, Any]:
        record = {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "tags": list(self.tags),
            "links": list(self.links),
            "createdAt": format_timestamp(self.created_at),
            "updatedAt": format_timestamp(self.updated_at),
        }
        if self.frontmatter:
            record["frontmatter"] = self.frontmatter
        return record

    @classmethod
    def from_dict(cls, data: Any) -> "Note":
        """Build a note from an exported record.

        Stored ``tags``/``links`` are ignored and recomputed from ``content``.
        """
        if not isinstance(data, dict):
            raise MalformedImportError(f"Note record must be an object, got {type(data).__name__}")
        for key in ("id", "title", "content"):
            if not isinstance(data.get(key), str):
                raise MalformedImportError(f"Note record field {key!r} must be a string")
        if not is_safe_id(data["id"]):
            raise MalformedImportError(f"Note id {data['id']!r} is not a valid file name")
        frontmatter = data.get("frontmatter", "")
        if not isinstance(frontmatter, str):
            raise MalformedImportError("Note record field 'frontmatter' must be a string")
        now = utcnow()
        created = data.get("createdAt")
        updated = data.get("updatedAt")
        return cls(
            id=data["id"],
            title=data["title"],
            content=data["content"],
            tags=extract_tags(data["content"]),
            links=extract_links(data["content"]),
            created_at=parse_timestamp(created) if created is not None else now,
            updated_at=parse_timestamp(updated) if updated is not None else now,
            frontmatter=frontmatter,
        )


@dataclass
class Draft:
    """A note staged by following a link to a missing title; not yet persisted."""

    title: str
    content: str


class IdGenerator:
    """Issues millisecond-timestamp ids that are never reused within a session."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._last = 0

    def next_id(self, taken: Iterable[str] = ()) -> str:
        taken = set(taken)
        candidate = max(int(self._clock() * 1000), self._last + 1)
        while str(candidate) in taken:
            candidate += 1
        self._last = candidate
        return str(candidate)
