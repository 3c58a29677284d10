"""charcoal CLI — tag/link graph over a directory of markdown notes.

Commands:
    charcoal init [DIR]            create .meta/ and an empty index
    charcoal repo-root             print the repository root
    charcoal list                  list every note on disk
    charcoal index                 rebuild the index from all notes
    charcoal index-file PATH       re-index one note (or drop it if deleted)
    charcoal clean                 drop records naming missing notes
    charcoal tags                  list all tags
    charcoal find TAG              notes carrying TAG
    charcoal links NOTE            notes linked from NOTE
    charcoal backlinks NOTE        notes linking to NOTE
    charcoal resolve TARGET        path of the note a [[TARGET]] points at
    charcoal search TERMS...       full-text search via the configured tool
    charcoal status                repository and index stats

Output is one item per line so editor pickers can consume it directly.
"""

from __future__ import annotations

import contextlib
import logging
import subprocess
from pathlib import Path
from typing import TYPE_CHECKING

import click

from charcoal.config import init_repository, locate_repository
from charcoal.errors import MissingArgumentError, NotesError
from charcoal.query import (
    backlinks,
    index_stats,
    list_notes,
    list_tags,
    note_name,
    notes_by_tag,
    outgoing_links,
    resolve_link,
)
from charcoal.store import IndexStore

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from charcoal.config import NotesConfig

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


@contextlib.contextmanager
def _errors() -> Iterator[None]:
    """Report library and filesystem failures as a single CLI error."""
    try:
        yield
    except (NotesError, OSError) as exc:
        raise click.ClickException(str(exc)) from exc


def _load_cfg() -> NotesConfig:
    with _errors():
        return locate_repository()


def _echo_lines(items: Iterable[str]) -> None:
    for item in items:
        click.echo(item)


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="charcoal-notes")
@click.option("--verbose", "-v", is_flag=True, help="Log indexing details to stderr")
def cli(verbose: bool) -> None:
    """charcoal — tag and wikilink index for a notes directory."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(message)s",
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("directory", required=False, default=".")
def init(directory: str) -> None:
    """Create .meta/ and an empty index in DIRECTORY (default: cwd)."""
    with _errors():
        cfg = init_repository(Path(directory))
    click.echo(f"Initialized notes repository at {cfg.root}")


@cli.command("repo-root")
def repo_root() -> None:
    """Print the root of the enclosing notes repository."""
    click.echo(str(_load_cfg().root))


@cli.command("list")
def list_cmd() -> None:
    """List every note on disk (without .md)."""
    cfg = _load_cfg()
    with _errors():
        _echo_lines(list_notes(cfg))


# ---------------------------------------------------------------------------
# Indexing
# ---------------------------------------------------------------------------


@cli.command()
def index() -> None:
    """Rebuild the index from every note in the repository."""
    cfg = _load_cfg()
    with _errors():
        n = IndexStore(cfg).rebuild()
    click.echo(f"Indexed {n} records")


@cli.command("index-file")
@click.argument("path")
def index_file(path: str) -> None:
    """Re-index one note. A deleted note is removed from the index."""
    cfg = _load_cfg()
    with _errors():
        IndexStore(cfg).update_file(path)


@cli.command()
def clean() -> None:
    """Drop index records that name notes no longer on disk."""
    cfg = _load_cfg()
    with _errors():
        dropped = IndexStore(cfg).clean()
    click.echo(f"Removed {dropped} stale records")


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


@cli.command()
def tags() -> None:
    """List all tags, sorted."""
    cfg = _load_cfg()
    with _errors():
        _echo_lines(sorted(list_tags(cfg)))


@cli.command()
@click.argument("tag")
def find(tag: str) -> None:
    """List notes tagged with TAG (exact match)."""
    cfg = _load_cfg()
    with _errors():
        _echo_lines(notes_by_tag(cfg, tag))


@cli.command()
@click.argument("note")
def links(note: str) -> None:
    """List notes that NOTE links to."""
    cfg = _load_cfg()
    with _errors():
        _echo_lines(outgoing_links(cfg, note_name(cfg, note)))


@cli.command("backlinks")
@click.argument("note")
def backlinks_cmd(note: str) -> None:
    """List notes that link to NOTE."""
    cfg = _load_cfg()
    with _errors():
        _echo_lines(backlinks(cfg, note_name(cfg, note)))


@cli.command()
@click.argument("target")
def resolve(target: str) -> None:
    """Print the file a [[TARGET]] wikilink points at."""
    cfg = _load_cfg()
    with _errors():
        click.echo(str(resolve_link(cfg, target)))


@cli.command(context_settings={"ignore_unknown_options": True})
@click.argument("terms", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def search(ctx: click.Context, terms: tuple[str, ...]) -> None:
    """Full-text search with the configured tool (default: ripgrep).

    TERMS are joined with spaces and passed verbatim as one pattern.
    """
    cfg = _load_cfg()
    with _errors():
        query = " ".join(terms)
        if not query.strip():
            raise MissingArgumentError("Missing required argument: search terms")
        cmd = [*cfg.search.command, query, str(cfg.root)]
        logging.getLogger("charcoal.cli").debug("search: %s", cmd)
        result = subprocess.run(cmd, check=False)
    ctx.exit(result.returncode)


@cli.command()
def status() -> None:
    """Show repository and index stats."""
    from rich.console import Console
    from rich.table import Table

    cfg = _load_cfg()
    console = Console()

    table = Table(title=f"charcoal — {cfg.root.name}", show_header=True, header_style="bold")
    table.add_column("Metric", style="dim", no_wrap=True)
    table.add_column("Value", justify="right")

    table.add_row("Root", str(cfg.root))
    if not cfg.index_path.exists():
        table.add_row("Index", "[red]missing — run `charcoal index`[/red]")
        console.print(table)
        return

    with _errors():
        stats = index_stats(cfg)
    table.add_row("Index", str(cfg.index_path))
    table.add_row("Notes on disk", str(stats.notes_on_disk))
    table.add_row("Tag records", str(stats.tag_records))
    table.add_row("Link records", str(stats.link_records))
    table.add_row("Distinct tags", str(stats.distinct_tags))
    if stats.dangling_records:
        table.add_row("Dangling", f"[yellow]⚠ {stats.dangling_records} (run `charcoal clean`)[/yellow]")
    else:
        table.add_row("Dangling", "0")
    console.print(table)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main() -> None:
    cli(standalone_mode=True)


if __name__ == "__main__":
    main()
