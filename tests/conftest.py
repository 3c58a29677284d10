"""Shared fixtures: a freshly initialised notes repository under tmp_path."""

import textwrap
from pathlib import Path

import pytest

from charcoal.config import NotesConfig, init_repository


def write_note(root: Path, name: str, content: str) -> Path:
    path = root / f"{name}.md"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(content), encoding="utf-8")
    return path


@pytest.fixture()
def repo(tmp_path: Path) -> NotesConfig:
    """Empty repository: .meta/ plus an empty index."""
    return init_repository(tmp_path / "notes")


@pytest.fixture()
def example_repo(repo: NotesConfig) -> NotesConfig:
    """a.md tags and links to b and c; b.md is plain; c.md exists."""
    write_note(repo.root, "a", "#project #project/x see [[b]] and [[c.md]]\n")
    write_note(repo.root, "b", "Nothing to see here.\n")
    write_note(repo.root, "c", "Plain.\n")
    return repo


@pytest.fixture()
def note(repo: NotesConfig):
    """Writer for notes inside the repo fixture: note("dir/name", text) -> Path."""
    def _write(name: str, content: str) -> Path:
        return write_note(repo.root, name, content)
    return _write
