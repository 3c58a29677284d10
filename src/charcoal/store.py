"""Read and rewrite the flat index at .meta/index.

IndexStore is the public API:
    store = IndexStore(cfg)
    store.rebuild()                      # re-extract every note
    store.update_file(root / "a.md")     # re-extract one note (or drop it if deleted)
    store.clean()                        # drop records naming missing notes
    records = store.read_records()

Every rewrite is read-modify-replace under an exclusive flock on
.meta/index.lock: records are rebuilt in memory, written to .meta/index.tmp,
fsynced, then renamed over .meta/index. Readers never lock; they see either
the old file or the new one.
"""

from __future__ import annotations

import contextlib
import fcntl
import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING

from charcoal.config import META_DIRNAME, NOTE_SUFFIX
from charcoal.errors import IndexMissingError
from charcoal.extractor import extract, relative_note_path
from charcoal.models import LinkRecord, TagRecord, parse_line

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from charcoal.config import NotesConfig
    from charcoal.models import Record

logger = logging.getLogger("charcoal.store")


def iter_note_paths(root: Path) -> list[Path]:
    """All note files under root (sorted, .meta/ excluded)."""
    notes: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(root):
        if Path(dirpath) == root and META_DIRNAME in dirnames:
            dirnames.remove(META_DIRNAME)
        notes.extend(Path(dirpath) / name for name in filenames if Path(name).suffix == NOTE_SUFFIX)
    return sorted(notes, key=lambda p: p.relative_to(root).as_posix())


class IndexStore:
    """Flat-file TAG/LINK index for one repository."""

    def __init__(self, cfg: NotesConfig) -> None:
        self.cfg = cfg
        self.root = cfg.root

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def read_records(self) -> list[Record]:
        """Load every well-formed record. Malformed lines are skipped."""
        return list(self.iter_records())

    def iter_records(self) -> Iterator[Record]:
        path = self.cfg.index_path
        try:
            f = path.open(encoding="utf-8", errors="replace")
        except FileNotFoundError as exc:
            msg = f"Index not found: {path} (run `charcoal init` or `charcoal index`)"
            raise IndexMissingError(msg) from exc
        with f:
            for lineno, line in enumerate(f, 1):
                if not line.strip():
                    continue
                record = parse_line(line)
                if record is None:
                    logger.debug("skipping malformed index line %d: %r", lineno, line)
                    continue
                yield record

    def note_exists(self, note: str) -> bool:
        return (self.root / note).is_file()

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def rebuild(self) -> int:
        """Re-extract every note and replace the index. Returns the record count."""
        with self._locked():
            paths = iter_note_paths(self.root)
            records: list[Record] = []
            for path in paths:
                records.extend(extract(path, self.root))
            self._write(records)
        logger.info("index rebuilt: %d records from %d notes", len(records), len(paths))
        return len(records)

    def update_file(self, path: Path | str) -> int:
        """Replace one note's records with freshly extracted ones.

        A note that no longer exists is dropped: its tags, its outgoing
        links and links pointing at it. Returns the number of records added.
        """
        note = relative_note_path(path, self.root)
        abs_path = self.root / note
        with self._locked():
            exists = abs_path.is_file()
            fresh: list[Record] = list(extract(abs_path, self.root)) if exists else []
            kept = [r for r in self.iter_records() if not _owned_by(r, note, deleted=not exists)]
            self._write([*kept, *fresh])
        if exists:
            logger.info("note indexed: %s (%d records)", note, len(fresh))
        else:
            logger.info("note removed from index: %s", note)
        return len(fresh)

    def clean(self) -> int:
        """Drop records naming notes that are gone. Returns the number dropped."""
        with self._locked():
            records = self.read_records()
            kept = [r for r in records if all(self.note_exists(n) for n in r.notes)]
            self._write(kept)
        dropped = len(records) - len(kept)
        logger.info("index cleaned: %d stale records dropped", dropped)
        return dropped

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    @contextlib.contextmanager
    def _locked(self) -> Iterator[None]:
        """Hold an exclusive flock on .meta/index.lock."""
        lock_path = self.cfg.lock_path
        with lock_path.open("a") as f:
            fcntl.flock(f, fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(f, fcntl.LOCK_UN)

    def _write(self, records: Iterable[Record]) -> None:
        """Atomically replace the index with records."""
        path = self.cfg.index_path
        tmp = path.with_name(path.name + ".tmp")
        try:
            with tmp.open("w", encoding="utf-8") as f:
                for record in records:
                    f.write(record.to_line() + "\n")
                f.flush()
                os.fsync(f.fileno())
            tmp.replace(path)
        except BaseException:
            with contextlib.suppress(OSError):
                tmp.unlink()
            raise


def _owned_by(record: Record, note: str, *, deleted: bool) -> bool:
    """True if record belongs to note for an incremental update."""
    if isinstance(record, TagRecord):
        return record.note == note
    if isinstance(record, LinkRecord):
        return record.source == note or (deleted and record.target == note)
    return False
