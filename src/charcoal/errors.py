"""Exceptions raised by the charcoal library.

Everything derives from NotesError so the CLI can report any of them as a
single message. Filesystem failures are left as plain OSError.
"""

from __future__ import annotations


class NotesError(Exception):
    """Base class for charcoal errors."""


class NotARepositoryError(NotesError):
    """No .meta/ directory found upward from the start dir or via the fallback."""


class AlreadyInitializedError(NotesError, FileExistsError):
    """init called on a directory that already holds .meta/."""


class MissingArgumentError(NotesError, ValueError):
    """A required argument (tag, note, search terms) is missing or empty."""


class NotANoteError(NotesError, ValueError):
    """A path is not a note of the repository (outside the root, under .meta/, or not .md)."""


class NoteNotFoundError(NotesError, FileNotFoundError):
    """A wikilink target has no readable note file."""


class IndexMissingError(NotesError, FileNotFoundError):
    """The index file does not exist (repository never initialised or indexed)."""


class ConfigError(NotesError):
    """.meta/config.toml could not be parsed."""


class NoteDecodeError(NotesError, OSError):
    """A note is not valid UTF-8 text and is treated as unreadable."""
