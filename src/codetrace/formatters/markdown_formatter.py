"""Markdown session report."""

from collections import Counter
from datetime import datetime
from typing import Optional

from ..models import Session, build_timeline, utc_now
from .base import BaseFormatter

MAX_TIMELINE_EVENTS = 50


def _local(value: datetime) -> datetime:
    return value.astimezone()


class MarkdownFormatter(BaseFormatter):
    """Shareable report: summary, statistics, files, commits and timeline."""

    def __init__(self, now: Optional[datetime] = None) -> None:
        self._now = now

    def render(self, session: Session) -> None:
        print(self.format(session))

    def format(self, session: Session) -> str:
        start = _local(session.start_time)
        end = _local(session.end_time or self._now or utc_now())
        duration = str(session.stats.duration) if session.stats else "?"

        lines = [
            "# Coding Session Report",
            "",
            f"**Date:** {start:%Y-%m-%d}",
            f"**Time:** {start:%H:%M:%S} - {end:%H:%M:%S}",
            f"**Duration:** {duration} minutes",
            f"**Repository:** {session.repository or 'N/A'}",
            "",
        ]

        summary = session.summary
        if summary:
            lines += [
                "## AI Summary",
                "",
                f"### {summary.get('suggestedTitle', 'Coding Session')}",
                "",
                f"**What was built:** {summary.get('whatWasBuilt', '')}",
                "",
                f"**Goal:** {summary.get('apparentGoal', '')}",
                "",
                f"**Key files:** {', '.join(summary.get('keyFilesModified', []))}",
                "",
            ]

        files_changed = session.stats.files_changed if session.stats else len(session.unique_files)
        lines += [
            "## Statistics",
            "",
            "| Metric | Value |",
            "|--------|-------|",
            f"| Files Changed | {files_changed} |",
            f"| Total Saves | {len(session.changes)} |",
            f"| Commits | {len(session.commits)} |",
            f"| Duration | {duration} min |",
            "",
            "## Files Modified",
            "",
        ]

        save_counts = Counter(change.file for change in session.changes)
        for file in session.unique_files:
            count = save_counts[file]
            lines.append(f"- `{file}` ({count} save{'s' if count > 1 else ''})")
        lines.append("")

        if session.commits:
            lines += ["## Commits", ""]
            for commit in session.commits:
                lines += [
                    f"- **{commit.short_hash}** {commit.message}",
                    f"  - Author: {commit.author}",
                    f"  - Time: {_local(commit.timestamp):%Y-%m-%d %H:%M:%S}",
                    "",
                ]

        lines += ["## Timeline", ""]
        timeline = build_timeline(session)
        for entry in timeline[:MAX_TIMELINE_EVENTS]:
            marker = "commit" if entry.kind == "commit" else "save"
            lines.append(f"- {_local(entry.timestamp):%H:%M:%S} [{marker}] {entry.label}")
        if len(timeline) > MAX_TIMELINE_EVENTS:
            lines += ["", f"*...and {len(timeline) - MAX_TIMELINE_EVENTS} more events*"]

        lines += ["", "---", "*Generated by CodeTrace*", ""]
        return "\n".join(lines)
