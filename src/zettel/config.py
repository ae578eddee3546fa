"""Settings for the notes application.

Values are resolved in order of increasing precedence: defaults, a
``[zettel]`` table in a TOML file, environment variables, then keyword
overrides::

    [zettel]
    notes_dir  = "~/notes"          # grant this directory at startup
    store_path = "~/.zettel/notes.duckdb"  # key-value fallback store
    store_key  = "zettelkasten-notes"
    filenames  = "id"               # or "title" for legacy folders
    log_level  = "INFO"

Environment variables:
    ZETTEL_NOTES_DIR, ZETTEL_STORE_PATH, ZETTEL_STORE_KEY,
    ZETTEL_FILENAMES, ZETTEL_LOG_LEVEL
"""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from zettel.storage.directory import FILENAME_STRATEGIES
from zettel.storage.keyvalue import DEFAULT_KEY

_ENV_PREFIX = "ZETTEL_"

DEFAULT_STORE_PATH = "~/.zettel/notes.duckdb"


@dataclass
class Settings:
    notes_dir: Path | None = None
    #: ``":memory:"`` keeps notes only for the life of the process
    store_path: str = DEFAULT_STORE_PATH
    store_key: str = DEFAULT_KEY
    filenames: str = "id"
    log_level: str = "WARNING"

    def __post_init__(self) -> None:
        if self.notes_dir is not None:
            self.notes_dir = Path(self.notes_dir).expanduser()
        if self.store_path != ":memory:":
            self.store_path = str(Path(self.store_path).expanduser())
        if self.filenames not in FILENAME_STRATEGIES:
            raise ValueError(
                f"filenames must be one of {', '.join(FILENAME_STRATEGIES)}, got {self.filenames!r}"
            )

    @classmethod
    def load(cls, path: Path | str | None = None, **overrides: Any) -> "Settings":
        """Build settings from *path* (TOML), the environment, and *overrides*."""
        names = {f.name for f in fields(cls)}
        values: dict[str, Any] = {}

        if path is not None:
            with open(Path(path).expanduser(), "rb") as fh:
                data = tomllib.load(fh)
            table = data.get("zettel", data)
            values.update({k: v for k, v in table.items() if k in names})

        for name in names:
            env = os.getenv(_ENV_PREFIX + name.upper())
            if env:
                values[name] = env

        values.update({k: v for k, v in overrides.items() if v is not None})
        unknown = set(values) - names
        if unknown:
            raise TypeError(f"Unknown settings: {', '.join(sorted(unknown))}")
        return cls(**values)


def configure_logging(level: str = "WARNING") -> None:
    """Basic console logging for hosts that do not set up their own."""
    resolved = getattr(logging, level.upper(), logging.WARNING)
    logging.basicConfig(
        level=resolved,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    # basicConfig is a no-op once the root logger has handlers
    logging.getLogger().setLevel(resolved)
