"""Tag, wiki-link, and YAML-frontmatter parser."""

from __future__ import annotations

import re
from typing import Any

import yaml

# [[Target]] -- non-greedy, no nested brackets, payload kept verbatim
_WIKILINK_RE = re.compile(r"\[\[(.*?)\]\]")
# Inline #tags; matches inside URLs and code spans too
_TAG_RE = re.compile(r"#(\w+)")
# YAML front-matter block
_FRONTMATTER_RE = re.compile(r"^---[ \t]*\n(.*?)\n?---[ \t]*(?:\n|$)", re.DOTALL)


def _distinct(values: list[str]) -> list[str]:
    return list(dict.fromkeys(values))


def extract_tags(content: str) -> list[str]:
    """Return every ``#tag`` body in *content* (de-duped, first-occurrence order)."""
    return _distinct([m.group(1) for m in _TAG_RE.finditer(content)])


def extract_links(content: str) -> list[str]:
    """Return every ``[[link]]`` payload in *content* (de-duped, ordered).

    Targets are not trimmed or case-folded; they resolve only against an
    identical note title.
    """
    return _distinct([m.group(1) for m in _WIKILINK_RE.finditer(content)])


def parse_frontmatter(content: str) -> tuple[dict[str, Any], str]:
    """Split YAML front-matter from body text.

    Returns ``(metadata_dict, body)``; ``metadata_dict`` is empty and the
    text is returned untouched when there is no usable front-matter block.
    """
    match = _FRONTMATTER_RE.match(content)
    if not match:
        return {}, content
    try:
        meta = yaml.safe_load(match.group(1)) or {}
    except yaml.YAMLError:
        return {}, content
    if not isinstance(meta, dict):
        return {}, content
    return meta, content[match.end() :]
