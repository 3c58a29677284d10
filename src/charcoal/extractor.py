"""Tag and wikilink extraction: one note file -> index records.

A tag is `#` followed by [A-Za-z0-9_/]+. A wikilink is `[[target]]` where
target holds no `]` and no newline. Every occurrence yields one record;
repeats are kept and collapsed at query time.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import TYPE_CHECKING

from charcoal.config import META_DIRNAME, NOTE_SUFFIX
from charcoal.errors import NoteDecodeError, NotANoteError
from charcoal.models import LinkRecord, TagRecord, note_key

if TYPE_CHECKING:
    from collections.abc import Iterator

    from charcoal.models import Record

_TAG_RE = re.compile(r"#([A-Za-z0-9_/]+)")
_WIKILINK_RE = re.compile(r"\[\[([^\]\n]+)\]\]")


def relative_note_path(path: Path | str, root: Path) -> str:
    """POSIX path of a note relative to root, with its .md suffix.

    The file need not exist (deleted notes are still addressed by path).
    """
    path = Path(path)
    if not path.is_absolute():
        path = Path.cwd() / path
    rel: Path | None = None
    for candidate in (Path(os.path.abspath(path)), path.resolve()):
        try:
            rel = candidate.relative_to(root)
            break
        except ValueError:
            continue
    if rel is None:
        msg = f"Not inside the notes repository {root}: {path}"
        raise NotANoteError(msg)
    if rel.parts and rel.parts[0] == META_DIRNAME:
        msg = f"Not a note (inside {META_DIRNAME}/): {path}"
        raise NotANoteError(msg)
    if rel.suffix != NOTE_SUFFIX:
        msg = f"Not a note (expected a {NOTE_SUFFIX} file): {path}"
        raise NotANoteError(msg)
    return rel.as_posix()


def scan_text(text: str, note: str) -> Iterator[Record]:
    """Yield TAG records, then LINK records, for note's text."""
    for m in _TAG_RE.finditer(text):
        yield TagRecord(tag=m.group(1), note=note)
    for m in _WIKILINK_RE.finditer(text):
        yield LinkRecord(source=note, target=note_key(m.group(1)))


def extract(path: Path | str, root: Path) -> Iterator[Record]:
    """Yield the records implied by the note at path.

    Raises OSError (on first iteration) if the file can't be read or is
    not UTF-8.
    """
    note = relative_note_path(path, root)
    try:
        text = Path(path).read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        msg = f"Not a UTF-8 note: {path} ({exc.reason} at byte {exc.start})"
        raise NoteDecodeError(msg) from exc
    yield from scan_text(text, note)
