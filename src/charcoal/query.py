"""Read-only queries over the index (tags, tagged notes, links, backlinks).

Each call reads .meta/index once and filters it. Nothing here checks that a
returned note still exists on disk; `charcoal clean` prunes stale records.
Results keep index order with repeats collapsed.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from charcoal.errors import MissingArgumentError, NotANoteError, NoteNotFoundError
from charcoal.extractor import relative_note_path
from charcoal.models import LinkRecord, TagRecord, note_key, strip_suffix
from charcoal.store import IndexStore, iter_note_paths

if TYPE_CHECKING:
    from collections.abc import Iterable

    from charcoal.config import NotesConfig


def _require(value: str | None, what: str) -> str:
    if value is None or not value.strip():
        msg = f"Missing required argument: {what}"
        raise MissingArgumentError(msg)
    return value


def _unique(items: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(items))


def list_tags(cfg: NotesConfig) -> set[str]:
    """All distinct tags in the index."""
    return {r.tag for r in IndexStore(cfg).iter_records() if isinstance(r, TagRecord)}


def notes_by_tag(cfg: NotesConfig, tag: str) -> list[str]:
    """Notes carrying exactly this tag (no prefix matching)."""
    tag = _require(tag, "tag")
    return _unique(
        strip_suffix(r.note)
        for r in IndexStore(cfg).iter_records()
        if isinstance(r, TagRecord) and r.tag == tag
    )


def outgoing_links(cfg: NotesConfig, note: str) -> list[str]:
    """Targets linked from note."""
    source = note_key(_require(note, "note"))
    return _unique(
        strip_suffix(r.target)
        for r in IndexStore(cfg).iter_records()
        if isinstance(r, LinkRecord) and r.source == source
    )


def backlinks(cfg: NotesConfig, note: str) -> list[str]:
    """Notes linking to note."""
    target = note_key(_require(note, "note"))
    return _unique(
        strip_suffix(r.source)
        for r in IndexStore(cfg).iter_records()
        if isinstance(r, LinkRecord) and r.target == target
    )


# ---------------------------------------------------------------------------
# Filesystem helpers (note picker, go-to-link)
# ---------------------------------------------------------------------------

def list_notes(cfg: NotesConfig) -> list[str]:
    """Every note on disk, display form, sorted."""
    return [strip_suffix(p.relative_to(cfg.root).as_posix()) for p in iter_note_paths(cfg.root)]


def resolve_link(cfg: NotesConfig, target: str) -> Path:
    """Path of the note a [[target]] points at. Raises if it isn't readable."""
    target = _require(target, "link target").strip()
    path = cfg.root / note_key(target)
    if not path.is_file():
        msg = f"Note not found: {note_key(target)}"
        raise NoteNotFoundError(msg)
    return path


def note_name(cfg: NotesConfig, arg: str) -> str:
    """Turn an editor argument (path or note name) into a note name.

    A root-relative name of an existing note wins. Otherwise an existing
    file (absolute or relative to the cwd) inside the repository maps to
    its relative path. Anything else is taken as a note name as-is.
    """
    arg = _require(arg, "note")
    path = Path(arg)
    if not path.is_absolute() and (cfg.root / note_key(arg)).is_file():
        return arg
    if path.is_file():
        try:
            return relative_note_path(path, cfg.root)
        except NotANoteError:
            pass
    return arg


# ---------------------------------------------------------------------------
# Stats
# ---------------------------------------------------------------------------

@dataclass
class IndexStats:
    notes_on_disk: int
    tag_records: int
    link_records: int
    distinct_tags: int
    dangling_records: int


def index_stats(cfg: NotesConfig) -> IndexStats:
    """Counts for `charcoal status`. Dangling = records clean would drop."""
    store = IndexStore(cfg)
    records = store.read_records()
    on_disk = {p.relative_to(cfg.root).as_posix() for p in iter_note_paths(cfg.root)}
    tags = [r for r in records if isinstance(r, TagRecord)]
    return IndexStats(
        notes_on_disk=len(on_disk),
        tag_records=len(tags),
        link_records=len(records) - len(tags),
        distinct_tags=len({r.tag for r in tags}),
        dangling_records=sum(1 for r in records if not all(n in on_disk for n in r.notes)),
    )
