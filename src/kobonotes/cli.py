"""Command line interface for kobonotes."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

from kobonotes.config import AppConfig
from kobonotes.export.assembler import DEFAULT_MAX_DEPTH
from kobonotes.export.exporter import Exporter
from kobonotes.reader.database import KoboDatabase, KoboDatabaseError
from kobonotes.toc.builder import build_toc_tree
from kobonotes.toc.matcher import attach_highlights
from kobonotes.toc.tree import TocTree


console = Console()
app = typer.Typer(help="kobonotes - export Kobo highlights to Markdown, grouped by chapter")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _resolve_db(db_path: Optional[Path]) -> Path:
    resolved = AppConfig(db_path=db_path).resolve_db_path(Path.cwd())
    if resolved is None:
        raise typer.BadParameter("No Kobo database found, pass the path to KoboReader.sqlite")
    if not resolved.exists():
        raise typer.BadParameter(f"Database not found: {resolved}")
    return resolved


def _open_db(path: Path) -> KoboDatabase:
    try:
        return KoboDatabase(path)
    except KoboDatabaseError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc


@app.command()
def export(
    db_path: Optional[Path] = typer.Argument(None, help="Path to KoboReader.sqlite"),
    output_dir: Path = typer.Option(
        AppConfig().output_dir, "--output-dir", "-o", help="Output directory for Markdown files"
    ),
    book: Optional[str] = typer.Option(None, "--book", help="Only export books whose title contains this"),
    max_depth: int = typer.Option(DEFAULT_MAX_DEPTH, min=1, help="Deepest section heading level"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Export highlights and annotations, one Markdown file per book."""
    _setup_logging(verbose)
    resolved_db = _resolve_db(db_path)
    config = AppConfig(
        db_path=resolved_db,
        output_dir=output_dir,
        max_depth=max_depth,
        book_filter=book,
    )
    resolved_out = config.resolve_output_dir(Path.cwd())

    with _open_db(resolved_db) as db:
        console.print(f"Reading [bold]{resolved_db}[/bold]...")
        try:
            stats = Exporter(db, resolved_out, config).export()
        except KoboDatabaseError as exc:
            console.print(f"[red]Error:[/red] {exc}")
            raise typer.Exit(code=1) from exc

    if not stats.exported:
        console.print("[yellow]No highlights found.[/yellow]")
        return
    console.print(
        f"Exported {stats.exported} books ({stats.highlights} highlights, "
        f"{stats.unmatched} uncategorized) to {resolved_out}"
    )
    if stats.failed:
        console.print(f"[red]{stats.failed} books could not be exported.[/red]")


@app.command()
def books(
    db_path: Optional[Path] = typer.Argument(None, help="Path to KoboReader.sqlite"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """List the books in the database with their highlight counts."""
    _setup_logging(verbose)
    resolved_db = _resolve_db(db_path)

    with _open_db(resolved_db) as db:
        library = db.list_books()
        counts = db.count_highlights()

    if not library:
        console.print("[yellow]No books found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Highlights", justify="right")
    table.add_column("Title")
    table.add_column("Author")
    for item in library:
        table.add_row(
            str(counts.get(item.content_id, 0)), escape(item.title), escape(item.author or "")
        )
    console.print(table)


def _render_tree(tree: TocTree, counts: dict[int, int]) -> Tree:
    rendered = Tree(f"[bold]{escape(tree.root.title or 'Book')}[/bold]")
    branches = {tree.root.index: rendered}
    for index, _ in tree.walk():
        node = tree.nodes[index]
        if node.parent is None:
            continue
        label = escape(node.title) if node.title else "[dim]untitled[/dim]"
        if counts.get(index):
            label += f" [green]({counts[index]})[/green]"
        branches[index] = branches[node.parent].add(label)
    return rendered


@app.command()
def toc(
    db_path: Path = typer.Argument(..., help="Path to KoboReader.sqlite"),
    title: str = typer.Argument(..., help="Book title (or part of it)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Show the reconstructed table of contents of a book."""
    _setup_logging(verbose)
    resolved_db = _resolve_db(db_path)

    with _open_db(resolved_db) as db:
        matching = db.find_books(title)
        if not matching:
            console.print(f"[yellow]No book matching '{escape(title)}'.[/yellow]")
            return
        book = matching[0]
        tree = build_toc_tree(
            db.list_content_entries(book.content_id),
            root_id=book.content_id,
            root_title=book.title,
        )
        matches = attach_highlights(tree, db.list_highlights(book.content_id))

    counts = {index: len(items) for index, items in matches.assigned.items()}
    console.print(_render_tree(tree, counts))
    if matches.unmatched:
        console.print(f"Uncategorized highlights: {len(matches.unmatched)}")
