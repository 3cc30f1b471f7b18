"""``codetrace record``: record a session until Ctrl+C."""

import time
from typing import Optional

import typer

from ..config import RecorderConfig
from ..exceptions import SummaryError
from ..logging_config import get_logger
from ..models import Session
from ..recorder import SessionRecorder
from ..storage import EventStore
from ..summary import OpenAISummarizer, attach_summary
from . import app
from ._common import ConsoleNotifier, console, get_config, workspace_path

logger = get_logger(__name__)


def summarize_saved(store: EventStore, session: Session, config: RecorderConfig) -> None:
    """Summarize a just-saved session; failures are reported, not raised."""
    summarizer = OpenAISummarizer(api_key=config.resolved_api_key, model=config.ai_model)
    try:
        with console.status("[cyan]Generating summary..."):
            summary = summarizer.summarize(session)
    except SummaryError as e:
        logger.warning("Auto-summary failed: %s", e)
        console.print(f"[yellow]Summary not generated:[/yellow] {e.reason}")
        return
    if attach_summary(store, session, summary) is not None:
        console.print(f"[green]Summary:[/green] {summary.suggested_title}")


@app.command()
def record(
    ctx: typer.Context,
    summarize: Optional[bool] = typer.Option(
        None,
        "--summarize/--no-summarize",
        help="Generate an AI summary after saving (default: auto_generate_summary)",
    ),
    refresh: float = typer.Option(
        1.0,
        "--refresh",
        help="Status line refresh interval in seconds",
        min=0.1,
        hidden=True,
    ),
) -> None:
    """Record file saves and commits in the workspace until Ctrl+C."""
    root = workspace_path(ctx)
    config = get_config(ctx)

    want_summary = config.auto_generate_summary if summarize is None else summarize
    if want_summary and not config.resolved_api_key:
        console.print("[yellow]No OpenAI API key configured; skipping summary.[/yellow]")
        want_summary = False

    def on_finalized(session: Session) -> None:
        summarize_saved(recorder.store, session, config)

    recorder = SessionRecorder.for_workspace(
        root,
        config=config,
        notifier=ConsoleNotifier(config.show_notifications),
        on_finalized=on_finalized if want_summary else None,
    )

    if not recorder.start():
        raise typer.Exit(1)

    console.print(f"[bold]Recording[/bold] {root}")
    console.print("[dim]Press Ctrl+C to stop[/dim]")

    try:
        with console.status(f"[cyan]{recorder.status().status_text}") as status:
            while True:
                time.sleep(refresh)
                status.update(f"[cyan]{recorder.status().status_text}")
    except KeyboardInterrupt:
        pass
    finally:
        result = recorder.stop()
        recorder.dispose()

    if result is None or not result.saved:
        raise typer.Exit(1)
    console.print(f"[dim]Saved to {result.path}[/dim]")
