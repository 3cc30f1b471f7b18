"""``codetrace export``: markdown report of a session."""

from pathlib import Path
from typing import Optional

import typer

from ..exceptions import PersistenceError
from ..file_ops import safe_write_file
from ..formatters import MarkdownFormatter
from . import app
from ._common import console, open_store, require_session


@app.command()
def export(
    ctx: typer.Context,
    ref: str = typer.Argument("latest", help="Session key, id prefix, or 'latest'"),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the report to this file instead of stdout",
        dir_okay=False,
    ),
):
    """
    Export a session as a shareable markdown report.

    [bold cyan]Examples:[/bold cyan]

      codetrace export

      codetrace export 3f2a -o session.md
    """
    session = require_session(open_store(ctx), ref)
    report = MarkdownFormatter().format(session)

    if output is None:
        print(report)
        return

    try:
        safe_write_file(output, report)
    except PersistenceError as e:
        console.print(f"[red]Export failed:[/red] {e}")
        raise typer.Exit(1)
    console.print(f"[green]Exported[/green] {output}")
