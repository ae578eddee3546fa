"""Key-value storage backend.

The whole note collection lives as one JSON array under a single namespaced
key in a DuckDB table::

    kv_store(name VARCHAR PRIMARY KEY, payload JSON)

``:memory:`` keeps everything for the life of the process; pass a file path
to keep notes between sessions; its parent directory is created if
missing. This backend has no per-note granularity: ``save_one`` and
``delete_one`` are no-ops and callers rely on the next ``save_all``.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Sequence

import duckdb

from zettel.errors import MalformedImportError
from zettel.note import Note

logger = logging.getLogger(__name__)

DEFAULT_KEY = "zettelkasten-notes"


class KeyValueBackend:
    """Whole-collection store backed by a DuckDB key-value table."""

    granular = False

    def __init__(self, db_path: Path | str = ":memory:", *, key: str = DEFAULT_KEY) -> None:
        self.key = key
        if str(db_path) == ":memory:":
            self._db_path = ":memory:"
        else:
            path = Path(db_path).expanduser()
            path.parent.mkdir(parents=True, exist_ok=True)
            self._db_path = str(path)
        self.conn: duckdb.DuckDBPyConnection = duckdb.connect(self._db_path)
        self._ensure_schema()

    # ------------------------------------------------------------------
    # Internal setup
    # ------------------------------------------------------------------

    def _ensure_schema(self) -> None:
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS kv_store (
                name    VARCHAR PRIMARY KEY,
                payload JSON NOT NULL
            );
        """)

    # ------------------------------------------------------------------
    # Raw entry access
    # ------------------------------------------------------------------

    def get_raw(self) -> str | None:
        row = self.conn.execute("SELECT payload FROM kv_store WHERE name = ?", [self.key]).fetchone()
        if row is None:
            return None
        raw = row[0]
        return raw if isinstance(raw, str) else json.dumps(raw)

    def put_raw(self, value: str) -> None:
        self.conn.execute(
            """
            INSERT INTO kv_store (name, payload) VALUES (?, ?)
            ON CONFLICT (name) DO UPDATE SET payload = excluded.payload;
            """,
            [self.key, value],
        )

    # ------------------------------------------------------------------
    # StorageBackend
    # ------------------------------------------------------------------

    def load(self) -> list[Note]:
        raw = self.get_raw()
        if raw is None:
            return []
        try:
            records = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Stored notes under %r are not valid JSON; ignoring", self.key)
            return []
        if not isinstance(records, list):
            logger.warning("Stored notes under %r are not a JSON array; ignoring", self.key)
            return []
        try:
            return [Note.from_dict(record) for record in records]
        except MalformedImportError as exc:
            logger.warning("Stored notes under %r are malformed: %s", self.key, exc)
            return []

    def save_all(self, notes: Sequence[Note]) -> int:
        payload = json.dumps([note.to_dict() for note in notes])
        try:
            self.put_raw(payload)
        except duckdb.Error:
            logger.exception("Failed to write notes to key-value store")
            return 0
        return len(notes)

    def save_one(self, note: Note) -> bool:
        return True

    def delete_one(self, note: Note) -> bool:
        return True

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        self.conn.close()

    def __enter__(self) -> "KeyValueBackend":
        return self

    def __exit__(self, *_: object) -> None:
        self.close()
