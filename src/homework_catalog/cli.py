"""Console script for homework_catalog."""

import asyncio
import logging
from pathlib import Path
from typing import List, Optional

import typer
import yaml
from rich.console import Console
from rich.markup import escape
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn
from rich.table import Table

from .config.loader import ConfigLoader
from .catalog.store import CatalogStore, StorageError
from .processing.extractor import ArchiveOpenError
from .session import GradingSession
from .utils.logging import setup_logging

app = typer.Typer(help="Catalog student homework archives for review.")
console = Console()


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="YAML config file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
):
    """Catalog student homework archives for review."""
    setup_logging(logging.DEBUG if verbose else logging.ERROR)
    try:
        ctx.obj = ConfigLoader().load(config)
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        console.print(f"[red]Invalid configuration: {escape(str(e))}[/red]")
        raise typer.Exit(code=1)


def _open_session(ctx: typer.Context, restore: bool = True) -> GradingSession:
    config = ctx.obj or ConfigLoader().load()
    session = GradingSession(CatalogStore(config.store.directory), config.ingest)
    if restore:
        _warn(session.restore())
    return session


def _warn(message: Optional[str]) -> None:
    if message:
        console.print(f"[yellow]{message}[/yellow]")


@app.command()
def ingest(
    ctx: typer.Context,
    archive: Path = typer.Argument(..., exists=True, dir_okay=False, help="Batch archive"),
):
    """Replace the catalog with the submissions in a batch archive."""
    session = _open_session(ctx)
    data = archive.read_bytes()

    with Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task("Unzipping submissions...", total=None)

        def on_progress(done: int, total: int) -> None:
            progress.update(task, completed=done, total=total)

        try:
            result, warning = asyncio.run(session.load_submissions(data, on_progress))
        except ArchiveOpenError as e:
            console.print(f"[red]Error processing file: {e}[/red]")
            raise typer.Exit(code=1)

    console.print(f"[green]{result.summary()}[/green]")
    for failure in result.failures:
        console.print(f"[yellow]Skipped {failure.archive_name}: {failure.reason}[/yellow]")
    for duplicate in result.duplicates:
        console.print(
            f"[yellow]Duplicate id {duplicate.student_id} in {duplicate.archive_name}, "
            f"stored as {duplicate.assigned_id}[/yellow]"
        )
    _warn(warning)


@app.command()
def references(
    ctx: typer.Context,
    files: List[Path] = typer.Argument(..., exists=True, dir_okay=False, help="Reference solution files"),
):
    """Replace the reference solution files."""
    session = _open_session(ctx)
    _warn(session.load_reference_paths(files))
    console.print(f"[green]References saved ({len(session.references)} files).[/green]")


@app.command("list")
def list_students(ctx: typer.Context):
    """List the students in the catalog."""
    session = _open_session(ctx)
    students = session.student_list()
    if not students:
        console.print("No submissions loaded.")
        return

    table = Table(title=f"Submissions ({len(students)})")
    table.add_column("Id", style="cyan", no_wrap=True)
    table.add_column("Name", no_wrap=True)
    table.add_column("Code")
    table.add_column("Files", justify="right")
    table.add_column("Archive", style="dim")

    for record in students:
        marker = " *" if record.student_id == session.view_state.selected_student_id else ""
        table.add_row(
            record.student_id + marker,
            record.student_name,
            record.student_code,
            str(len(record.files)),
            record.archive_basename,
        )
    console.print(table)


@app.command()
def show(
    ctx: typer.Context,
    student_id: str = typer.Argument(..., help="Student id"),
    file: Optional[str] = typer.Option(None, "--file", "-f", help="Print this file's content"),
):
    """Show a student's extracted files."""
    session = _open_session(ctx)
    try:
        record = session.get(student_id)
    except KeyError as e:
        console.print(f"[red]{e.args[0]}[/red]")
        raise typer.Exit(code=1)

    if file is not None:
        if file not in record.files:
            console.print(f"[red]{student_id} has no file {file}[/red]")
            raise typer.Exit(code=1)
        console.print(record.files[file], markup=False, highlight=False)
        return

    console.print(f"[bold]{record.student_name}[/bold] ({record.student_id}, {record.student_code})")
    console.print(f"[dim]{record.source_archive_name}[/dim]")
    for path in record.file_paths:
        console.print(f"  {path}", markup=False)


@app.command()
def export(
    ctx: typer.Context,
    student_id: str = typer.Argument(..., help="Student id"),
    dest: Path = typer.Argument(Path("."), file_okay=False, help="Destination directory"),
):
    """Write a student's original archive to disk."""
    session = _open_session(ctx)
    try:
        target = session.export_archive(student_id, dest)
    except KeyError as e:
        console.print(f"[red]{e.args[0]}[/red]")
        raise typer.Exit(code=1)
    console.print(f"[green]Wrote {target}[/green]")


@app.command()
def select(
    ctx: typer.Context,
    student_id: Optional[str] = typer.Argument(None, help="Student id"),
    file: Optional[str] = typer.Option(None, "--file", "-f", help="Submission file"),
    reference: Optional[str] = typer.Option(None, "--reference", "-r", help="Reference file"),
):
    """Remember the selected student and files."""
    session = _open_session(ctx)
    try:
        _warn(session.select(student_id, file, reference))
    except KeyError as e:
        console.print(f"[red]{e.args[0]}[/red]")
        raise typer.Exit(code=1)
    console.print("Selection saved.")


@app.command()
def clear(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
):
    """Delete all saved files and submissions."""
    if not yes:
        typer.confirm("Are you sure? This will delete all saved files and submissions.", abort=True)
    session = _open_session(ctx, restore=False)
    try:
        session.clear()
    except StorageError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(code=1)
    console.print("Cleared.")


if __name__ == "__main__":
    app()
