"""NotesConfig: resolved settings for one notes repository.

Layout (all relative to the repository root):

    .meta/                # marker: a directory holding this is a repository
        index             # flat TAG:/LINK: index, one record per line
        index.lock        # advisory lock held while the index is rewritten
        config.toml       # optional settings

config.toml example:

    [search]
    command = ["rg", "--line-number", "--no-heading", "--glob", "*.md"]

The root is found by walking upward from the working directory. When no
ancestor holds .meta/, the CHARCOAL_NOTES_DIR environment variable is used
as a fallback.
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from charcoal.errors import AlreadyInitializedError, ConfigError, NotARepositoryError

META_DIRNAME = ".meta"
NOTE_SUFFIX = ".md"
ENV_FALLBACK = "CHARCOAL_NOTES_DIR"

_INDEX_FILENAME = "index"
_LOCK_FILENAME = "index.lock"
_CONFIG_FILENAME = "config.toml"

_DEFAULT_SEARCH_COMMAND = ["rg", "--line-number", "--no-heading", "--glob", "*.md"]


@dataclass
class SearchConfig:
    """[search] section: external full-text search tool."""
    command: list[str] = field(default_factory=lambda: list(_DEFAULT_SEARCH_COMMAND))


@dataclass
class NotesConfig:
    """Resolved configuration for a notes repository."""

    root: Path                      # directory that contains .meta/
    search: SearchConfig = field(default_factory=SearchConfig)

    @property
    def meta_dir(self) -> Path:
        return self.root / META_DIRNAME

    @property
    def index_path(self) -> Path:
        return self.meta_dir / _INDEX_FILENAME

    @property
    def lock_path(self) -> Path:
        return self.meta_dir / _LOCK_FILENAME

    @property
    def config_path(self) -> Path:
        return self.meta_dir / _CONFIG_FILENAME


def is_repository(path: Path) -> bool:
    return (path / META_DIRNAME).is_dir()


def find_root(start: Path, fallback: Path | str | None = None) -> Path:
    """Walk upward from start looking for .meta/, then try fallback."""
    start = start.resolve()
    for directory in (start, *start.parents):
        if is_repository(directory):
            return directory
    if fallback:
        candidate = Path(fallback).expanduser().resolve()
        if is_repository(candidate):
            return candidate
    msg = f"Not a notes repository (no {META_DIRNAME}/ found above {start})"
    raise NotARepositoryError(msg)


def load_config(root: Path) -> NotesConfig:
    """Build a NotesConfig for a known repository root, reading config.toml if present."""
    cfg = NotesConfig(root=root)
    raw: dict[str, Any] = {}
    if cfg.config_path.exists():
        try:
            with cfg.config_path.open("rb") as f:
                raw = tomllib.load(f)
        except (tomllib.TOMLDecodeError, UnicodeDecodeError) as exc:
            msg = f"Invalid {cfg.config_path}: {exc}"
            raise ConfigError(msg) from exc

    srch_section = raw.get("search", {})
    if not isinstance(srch_section, dict):
        msg = f"Invalid {cfg.config_path}: [search] must be a table"
        raise ConfigError(msg)
    command = srch_section.get("command", list(_DEFAULT_SEARCH_COMMAND))
    if isinstance(command, str):
        command = command.split()
    if not isinstance(command, list) or not command:
        msg = f"Invalid {cfg.config_path}: [search] command must be a non-empty list"
        raise ConfigError(msg)
    cfg.search = SearchConfig(command=[str(part) for part in command])
    return cfg


def locate_repository(
    start: Path | str | None = None,
    fallback: Path | str | None = None,
) -> NotesConfig:
    """Resolve the repository containing start (default: cwd).

    fallback defaults to $CHARCOAL_NOTES_DIR and is only consulted when no
    ancestor of start is a repository.
    """
    start_path = Path(start) if start else Path.cwd()
    if fallback is None:
        fallback = os.environ.get(ENV_FALLBACK) or None
    return load_config(find_root(start_path, fallback))


def init_repository(target: Path | str) -> NotesConfig:
    """Create .meta/ and an empty index at target. Raises if already initialised."""
    root = Path(target).resolve()
    meta_dir = root / META_DIRNAME
    if meta_dir.exists():
        msg = f"Already initialized: {meta_dir} exists"
        raise AlreadyInitializedError(msg)

    meta_dir.mkdir(parents=True)
    cfg = NotesConfig(root=root)
    cfg.index_path.write_text("", encoding="utf-8")
    return cfg
