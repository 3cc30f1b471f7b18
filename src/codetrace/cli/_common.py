"""Shared CLI helpers."""

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from ..config import RecorderConfig
from ..logging_config import get_logger
from ..models import Session
from ..storage import EventStore

console = Console()

logger = get_logger(__name__)


class ConsoleNotifier:
    """Prints recorder notifications; errors are shown even when muted."""

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled

    def info(self, message: str) -> None:
        logger.debug(message)
        if self.enabled:
            console.print(f"[green]{message}[/green]")

    def warning(self, message: str) -> None:
        logger.debug(message)
        if self.enabled:
            console.print(f"[yellow]{message}[/yellow]")

    def error(self, message: str) -> None:
        logger.debug(message)
        console.print(f"[red]{message}[/red]")


def workspace_path(ctx: typer.Context) -> Path:
    return ctx.obj.get("path", Path.cwd()).resolve()


def get_config(ctx: typer.Context) -> RecorderConfig:
    return ctx.obj.get("config") or RecorderConfig()


def open_store(ctx: typer.Context) -> EventStore:
    """Session store of the workspace selected with ``-C``."""
    config = get_config(ctx)
    return EventStore(
        workspace_path(ctx) / config.store_dir,
        max_sessions=config.max_sessions_to_keep,
    )


def require_session(store: EventStore, ref: str) -> Session:
    """Resolve ``ref`` or exit with an error message."""
    session = store.resolve(ref)
    if session is None:
        if store.count() == 0:
            console.print(
                "[yellow]No sessions recorded yet.[/yellow] "
                "Run [bold]codetrace record[/bold] to start one."
            )
        else:
            console.print(f"[red]No session matches[/red] {ref!r}")
        raise typer.Exit(1)
    return session


def session_title(session: Session) -> str:
    if session.summary and session.summary.get("suggestedTitle"):
        return escape(str(session.summary["suggestedTitle"]))
    return ""
