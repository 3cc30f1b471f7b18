"""Rich terminal formatter for sessions."""

from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ..models import Session, build_timeline
from .base import BaseFormatter

console = Console()


class RichFormatter(BaseFormatter):
    """Header panel, statistics, and the merged save/commit timeline."""

    def __init__(self, out: Optional[Console] = None, max_events: int = 200) -> None:
        self.console = out or console
        self.max_events = max_events

    def render(self, session: Session) -> None:
        self._print_header(session)
        self._print_stats(session)
        self._print_timeline(session)

    def format(self, session: Session) -> str:
        # Rich output goes directly to console; return empty string
        self.render(session)
        return ""

    def _print_header(self, session: Session) -> None:
        start = session.start_time.astimezone()
        title = (session.summary or {}).get("suggestedTitle") or f"{start:%Y-%m-%d %H:%M}"
        body = [
            f"[bold]{escape(title)}[/bold]",
            f"[dim]Session {session.id}[/dim]",
            f"Repository: [cyan]{session.repository or 'N/A'}[/cyan]",
        ]
        if session.summary:
            body.append("")
            body.append(escape(str(session.summary.get("whatWasBuilt", ""))))
        self.console.print(Panel("\n".join(body), expand=False))

    def _print_stats(self, session: Session) -> None:
        stats = session.stats or session.compute_stats()
        table = Table(show_header=False, box=None, pad_edge=False)
        table.add_column("Metric", style="bold")
        table.add_column("Value", justify="right")
        table.add_row("Duration", f"{stats.duration} min")
        table.add_row("Files changed", str(stats.files_changed))
        table.add_row("Total saves", str(len(session.changes)))
        table.add_row("Commits", str(stats.commits_count))
        self.console.print(table)
        self.console.print()

    def _print_timeline(self, session: Session) -> None:
        timeline = build_timeline(session)
        if not timeline:
            self.console.print("[dim]No activity recorded.[/dim]")
            return

        table = Table(title="Timeline", show_lines=False, pad_edge=True)
        table.add_column("Time", style="green")
        table.add_column("Event")
        table.add_column("Ref", style="dim")

        for entry in timeline[: self.max_events]:
            time = f"{entry.timestamp.astimezone():%H:%M:%S}"
            if entry.kind == "commit":
                table.add_row(time, f"[yellow]{escape(entry.label)}[/yellow]", entry.ref[:7])
            else:
                table.add_row(time, escape(entry.label), "")

        self.console.print(table)
        if len(timeline) > self.max_events:
            self.console.print(f"[dim]...and {len(timeline) - self.max_events} more events[/dim]")
