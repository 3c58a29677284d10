"""Tests for the charcoal command-line surface."""

import sys
from pathlib import Path

import pytest
from click.testing import CliRunner

from charcoal.cli import cli
from charcoal.config import ENV_FALLBACK, NotesConfig


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def in_repo(example_repo: NotesConfig, monkeypatch: pytest.MonkeyPatch) -> NotesConfig:
    monkeypatch.chdir(example_repo.root)
    monkeypatch.delenv(ENV_FALLBACK, raising=False)
    return example_repo


def _run(runner: CliRunner, *args: str):
    return runner.invoke(cli, list(args), catch_exceptions=False)


# ---------------------------------------------------------------------------
# Repository commands
# ---------------------------------------------------------------------------


class TestRepositoryCommands:
    def test_init(self, runner: CliRunner, tmp_path: Path):
        result = _run(runner, "init", str(tmp_path))
        assert result.exit_code == 0
        assert (tmp_path / ".meta" / "index").exists()

    def test_init_twice_fails(self, runner: CliRunner, tmp_path: Path):
        _run(runner, "init", str(tmp_path))
        result = _run(runner, "init", str(tmp_path))
        assert result.exit_code == 1
        assert "Already initialized" in result.output

    def test_repo_root(self, runner: CliRunner, in_repo: NotesConfig):
        result = _run(runner, "repo-root")
        assert result.exit_code == 0
        assert result.output.strip() == str(in_repo.root)

    def test_repo_root_from_subdirectory(self, runner: CliRunner, in_repo: NotesConfig, monkeypatch):
        sub = in_repo.root / "sub"
        sub.mkdir()
        monkeypatch.chdir(sub)
        assert _run(runner, "repo-root").output.strip() == str(in_repo.root)

    def test_not_a_repository(self, runner: CliRunner, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv(ENV_FALLBACK, raising=False)
        result = _run(runner, "tags")
        assert result.exit_code == 1
        assert "Not a notes repository" in result.output

    def test_environment_fallback(self, runner: CliRunner, example_repo: NotesConfig, tmp_path: Path, monkeypatch):
        elsewhere = tmp_path / "elsewhere"
        elsewhere.mkdir()
        monkeypatch.chdir(elsewhere)
        monkeypatch.setenv(ENV_FALLBACK, str(example_repo.root))
        assert _run(runner, "repo-root").output.strip() == str(example_repo.root)

    def test_list(self, runner: CliRunner, in_repo: NotesConfig):
        assert _run(runner, "list").output.splitlines() == ["a", "b", "c"]


# ---------------------------------------------------------------------------
# Indexing and queries
# ---------------------------------------------------------------------------


class TestIndexAndQuery:
    def test_index_then_query(self, runner: CliRunner, in_repo: NotesConfig):
        assert _run(runner, "index").exit_code == 0
        assert _run(runner, "tags").output.splitlines() == ["project", "project/x"]
        assert _run(runner, "find", "project").output.splitlines() == ["a"]
        assert _run(runner, "links", "a").output.splitlines() == ["b", "c"]
        assert _run(runner, "backlinks", "b").output.splitlines() == ["a"]

    def test_links_accepts_editor_path(self, runner: CliRunner, in_repo: NotesConfig):
        _run(runner, "index")
        result = _run(runner, "links", str(in_repo.root / "a.md"))
        assert result.output.splitlines() == ["b", "c"]

    def test_index_file_and_clean(self, runner: CliRunner, in_repo: NotesConfig):
        _run(runner, "index")
        (in_repo.root / "c.md").unlink()
        assert _run(runner, "index-file", str(in_repo.root / "a.md")).exit_code == 0
        assert _run(runner, "links", "a").output.splitlines() == ["b", "c"]
        result = _run(runner, "clean")
        assert "Removed 1 stale records" in result.output
        assert _run(runner, "links", "a").output.splitlines() == ["b"]

    def test_index_file_for_deleted_note(self, runner: CliRunner, in_repo: NotesConfig):
        _run(runner, "index")
        (in_repo.root / "a.md").unlink()
        _run(runner, "index-file", "a.md")
        assert _run(runner, "tags").output == ""

    def test_index_file_outside_repository(self, runner: CliRunner, in_repo: NotesConfig, tmp_path: Path):
        result = _run(runner, "index-file", str(tmp_path / "other.md"))
        assert result.exit_code == 1

    def test_empty_tag_argument(self, runner: CliRunner, in_repo: NotesConfig):
        _run(runner, "index")
        result = _run(runner, "find", "")
        assert result.exit_code == 1
        assert "Missing required argument" in result.output

    def test_missing_tag_argument(self, runner: CliRunner, in_repo: NotesConfig):
        result = runner.invoke(cli, ["find"])
        assert result.exit_code == 2

    def test_missing_index(self, runner: CliRunner, in_repo: NotesConfig):
        in_repo.index_path.unlink()
        result = _run(runner, "backlinks", "a")
        assert result.exit_code == 1
        assert "Index not found" in result.output

    def test_resolve(self, runner: CliRunner, in_repo: NotesConfig):
        assert _run(runner, "resolve", "b.md").output.strip() == str(in_repo.root / "b.md")

    def test_resolve_missing(self, runner: CliRunner, in_repo: NotesConfig):
        result = _run(runner, "resolve", "ghost")
        assert result.exit_code == 1
        assert "Note not found: ghost.md" in result.output

    def test_status(self, runner: CliRunner, in_repo: NotesConfig):
        _run(runner, "index")
        result = _run(runner, "status")
        assert result.exit_code == 0
        assert "Notes on disk" in result.output


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------


class TestSearch:
    def test_runs_configured_tool(self, runner: CliRunner, in_repo: NotesConfig):
        script = "import sys; print(' | '.join(sys.argv[1:]))"
        in_repo.config_path.write_text(f'[search]\ncommand = ["{sys.executable}", "-c", "{script}"]\n')
        result = _run(runner, "search", "see", "[[b]]")
        assert result.exit_code == 0

    def test_exit_status_passed_through(self, runner: CliRunner, in_repo: NotesConfig):
        script = "import sys; sys.exit(3)"
        in_repo.config_path.write_text(f'[search]\ncommand = ["{sys.executable}", "-c", "{script}"]\n')
        assert _run(runner, "search", "anything").exit_code == 3

    def test_empty_terms(self, runner: CliRunner, in_repo: NotesConfig):
        result = _run(runner, "search")
        assert result.exit_code == 1
        assert "search terms" in result.output

    def test_missing_tool(self, runner: CliRunner, in_repo: NotesConfig):
        in_repo.config_path.write_text('[search]\ncommand = ["charcoal-no-such-tool"]\n')
        result = _run(runner, "search", "x")
        assert result.exit_code == 1


# ---------------------------------------------------------------------------
# Configuration and note errors
# ---------------------------------------------------------------------------


class TestReportedErrors:
    def test_bad_search_section(self, runner: CliRunner, in_repo: NotesConfig):
        in_repo.config_path.write_text('search = "rg"\n')
        result = _run(runner, "index")
        assert result.exit_code == 1
        assert "[search] must be a table" in result.output

    def test_non_utf8_note(self, runner: CliRunner, in_repo: NotesConfig):
        (in_repo.root / "latin.md").write_bytes("[[café]]\n".encode("latin-1"))
        result = _run(runner, "index")
        assert result.exit_code == 1
        assert "Not a UTF-8 note" in result.output
