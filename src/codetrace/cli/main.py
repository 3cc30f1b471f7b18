"""Global options shared by every command."""

from pathlib import Path
from typing import Optional

import typer

from ..config import load_config
from ..exceptions import ConfigurationError
from ..logging_config import setup_logging
from . import app
from ._common import console


@app.callback(invoke_without_command=True, no_args_is_help=False)
def main(
    ctx: typer.Context,
    path: Optional[Path] = typer.Option(
        None,
        "-C",
        "--path",
        help="Workspace to record (default: current directory)",
        exists=True,
        file_okay=False,
        dir_okay=True,
        readable=True,
    ),
    config: Optional[Path] = typer.Option(
        None,
        "-c",
        "--config",
        help="Configuration file (TOML)",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable debug logging",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Only log errors",
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        help="Also write logs to this file",
        hidden=True,
    ),
    version: bool = typer.Option(
        False,
        "--version",
        help="Show version and exit",
    ),
):
    """
    Record coding sessions: every file save and git commit, on a timeline.

    [bold cyan]Examples:[/bold cyan]

      codetrace record

      codetrace list

      codetrace show latest

      codetrace -C /path/to/project export latest -o session.md
    """
    if version:
        from .. import __version__

        console.print(f"[bold cyan]CodeTrace[/bold cyan] version [green]{__version__}[/green]")
        raise typer.Exit(0)

    target = Path(path) if path else Path.cwd()
    ctx.ensure_object(dict)
    ctx.obj["path"] = target

    try:
        settings = load_config(
            config_file=config,
            project_dir=target,
            verbose=verbose,
            quiet=quiet,
        )
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(1)
    ctx.obj["config"] = settings

    setup_logging(
        verbose=settings.verbosity == "verbose",
        quiet=settings.verbosity == "quiet",
        log_file=str(log_file) if log_file else None,
    )

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())
        raise typer.Exit(0)
