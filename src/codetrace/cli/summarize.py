"""``codetrace summarize``: AI summary of a stored session."""

import typer

from ..exceptions import SummaryError
from ..summary import OpenAISummarizer, attach_summary
from . import app
from ._common import console, get_config, open_store, require_session


@app.command()
def summarize(
    ctx: typer.Context,
    ref: str = typer.Argument("latest", help="Session key, id prefix, or 'latest'"),
    force: bool = typer.Option(False, "--force", help="Regenerate an existing summary"),
):
    """Generate an AI summary and store it with the session."""
    config = get_config(ctx)
    store = open_store(ctx)
    session = require_session(store, ref)

    if session.summary and not force:
        console.print(
            f"[yellow]Session already summarized:[/yellow] "
            f"{session.summary.get('suggestedTitle', '')} (use --force to regenerate)"
        )
        raise typer.Exit(0)

    summarizer = OpenAISummarizer(api_key=config.resolved_api_key, model=config.ai_model)
    try:
        with console.status("[cyan]Analyzing your coding session..."):
            summary = summarizer.summarize(session)
    except SummaryError as e:
        console.print(f"[red]Failed to generate summary:[/red] {e.reason}")
        raise typer.Exit(1)

    if attach_summary(store, session, summary) is None:
        console.print("[red]Failed to save summary[/red]")
        raise typer.Exit(1)

    console.print(f"[bold]{summary.suggested_title}[/bold]")
    console.print(summary.what_was_built)
    console.print(f"[dim]Goal:[/dim] {summary.apparent_goal}")
    if summary.key_files_modified:
        console.print(f"[dim]Key files:[/dim] {', '.join(summary.key_files_modified)}")
