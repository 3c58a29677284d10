"""Index records: one TAG or LINK line of .meta/index."""

from __future__ import annotations

import re
from dataclasses import dataclass

from charcoal.config import NOTE_SUFFIX

_TAG_PREFIX = "TAG:"
_LINK_PREFIX = "LINK:"

# LINK:<source>.md:<target>.md; the source ends at the first ".md:"
_LINK_LINE_RE = re.compile(r"^LINK:(.+?\.md):(.+\.md)$")


def note_key(name: str) -> str:
    """Storage form of a note name: exactly one trailing .md."""
    return strip_suffix(name) + NOTE_SUFFIX


def strip_suffix(name: str) -> str:
    """Display form of a note name: one trailing .md removed."""
    return name[: -len(NOTE_SUFFIX)] if name.endswith(NOTE_SUFFIX) else name


@dataclass(frozen=True)
class TagRecord:
    """`#tag` occurrence in a note."""

    tag: str
    note: str           # relative path, with .md

    def to_line(self) -> str:
        return f"{_TAG_PREFIX}{self.tag}:{self.note}"

    @property
    def notes(self) -> tuple[str, ...]:
        return (self.note,)


@dataclass(frozen=True)
class LinkRecord:
    """`[[target]]` edge from source to target."""

    source: str         # relative path, with .md
    target: str         # relative path, with .md

    def to_line(self) -> str:
        return f"{_LINK_PREFIX}{self.source}:{self.target}"

    @property
    def notes(self) -> tuple[str, ...]:
        return (self.source, self.target)


Record = TagRecord | LinkRecord


def parse_line(line: str) -> Record | None:
    """Parse one index line. Returns None for blank or malformed lines."""
    line = line.rstrip("\r\n")
    if line.startswith(_TAG_PREFIX):
        tag, sep, note = line[len(_TAG_PREFIX):].partition(":")
        if not sep or not tag or not note.endswith(NOTE_SUFFIX):
            return None
        return TagRecord(tag=tag, note=note)
    if line.startswith(_LINK_PREFIX):
        m = _LINK_LINE_RE.match(line)
        if not m:
            return None
        return LinkRecord(source=m.group(1), target=m.group(2))
    return None
