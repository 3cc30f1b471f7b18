"""Commands over stored sessions: list, show, stats, delete."""

import json

import typer
from rich.table import Table

from ..formatters import get_formatter
from ..models import SessionStats
from ..storage import record_key
from . import app
from ._common import console, open_store, require_session, session_title


@app.command("list")
def list_sessions(
    ctx: typer.Context,
    limit: int = typer.Option(
        20,
        "--limit",
        "-n",
        help="Maximum number of sessions to list",
        min=1,
        max=1000,
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output in machine-readable JSON format",
    ),
):
    """
    List stored sessions, most recent first.

    [bold cyan]Examples:[/bold cyan]

      codetrace list

      codetrace list --json -n 5
    """
    store = open_store(ctx)
    sessions = store.load_all()[:limit]

    if json_output:
        rows = []
        for s in sessions:
            data = s.to_dict()
            data.pop("changes")
            data.pop("commits")
            data["key"] = record_key(s)
            rows.append(data)
        print(json.dumps(rows, indent=2))
        return

    if not sessions:
        console.print(
            "[yellow]No sessions recorded yet.[/yellow] "
            "Run [bold]codetrace record[/bold] to start one."
        )
        raise typer.Exit(0)

    table = Table(title="Recorded Sessions", show_lines=False, pad_edge=True)
    table.add_column("ID", style="dim", justify="right")
    table.add_column("Started", style="green")
    table.add_column("Min", justify="right")
    table.add_column("Files", justify="right")
    table.add_column("Commits", justify="right")
    table.add_column("Repository", style="cyan")
    table.add_column("Title")

    for s in sessions:
        stats = s.stats or s.compute_stats()
        table.add_row(
            s.id[:8],
            f"{s.start_time.astimezone():%Y-%m-%d %H:%M}",
            str(stats.duration),
            str(stats.files_changed),
            str(stats.commits_count),
            s.repository or "",
            session_title(s),
        )

    console.print(table)
    console.print(f"\n[dim]{store.count()} session(s) in {store.directory}[/dim]")


@app.command()
def show(
    ctx: typer.Context,
    ref: str = typer.Argument("latest", help="Session key, id prefix, or 'latest'"),
    output_format: str = typer.Option(
        "rich",
        "--format",
        "-f",
        help="Output format: rich | json | markdown",
    ),
):
    """Show one session's timeline."""
    session = require_session(open_store(ctx), ref)
    try:
        formatter = get_formatter(output_format)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(2)
    formatter.render(session)


@app.command()
def stats(
    ctx: typer.Context,
    ref: str = typer.Argument("latest", help="Session key, id prefix, or 'latest'"),
):
    """Statistics of the most recent (or given) session."""
    session = require_session(open_store(ctx), ref)
    result: SessionStats = session.stats or session.compute_stats()

    table = Table(show_header=False, box=None)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    table.add_row("Session", session.id)
    table.add_row("Repository", session.repository or "N/A")
    table.add_row("Files changed", str(result.files_changed))
    table.add_row("Total saves", str(len(session.changes)))
    table.add_row("Commits", str(result.commits_count))
    table.add_row("Duration", f"{result.duration} min")
    console.print(table)


@app.command()
def delete(
    ctx: typer.Context,
    ref: str = typer.Argument(..., help="Session key, id prefix, or 'latest'"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
):
    """Delete a stored session."""
    store = open_store(ctx)
    session = require_session(store, ref)
    key = record_key(session)

    if not yes:
        typer.confirm(f"Delete session {session.id} ({key})?", abort=True)

    if not store.delete(key):
        console.print(f"[red]Could not delete[/red] {key}")
        raise typer.Exit(1)
    console.print(f"[green]Deleted[/green] {key}")
