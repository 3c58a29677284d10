"""Tag and wikilink index over a directory of markdown notes, no database.

Layout:
    <root>/
        **/*.md             # notes (source of truth)
        .meta/
            index           # derived flat index, fully reconstructable

index line types:
    TAG:<tag>:<note>.md              # one per #tag occurrence
    LINK:<source>.md:<target>.md     # one per [[target]] occurrence

Rewrites (rebuild / update / clean) are read-modify-replace under
flock(LOCK_EX) on .meta/index.lock, published with an atomic rename.
"""

from charcoal.config import NotesConfig, init_repository, locate_repository
from charcoal.extractor import extract
from charcoal.models import LinkRecord, TagRecord
from charcoal.query import backlinks, list_tags, notes_by_tag, outgoing_links
from charcoal.store import IndexStore

__all__ = [
    "IndexStore",
    "LinkRecord",
    "NotesConfig",
    "TagRecord",
    "backlinks",
    "extract",
    "init_repository",
    "list_tags",
    "locate_repository",
    "notes_by_tag",
    "outgoing_links",
]
