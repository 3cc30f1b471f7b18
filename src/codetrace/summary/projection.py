"""Reduced view of a session for the summarization model, and its prompt.

Only paths, times and commit messages leave the machine. File contents are
never part of the projection.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from ..exceptions import SummaryError
from ..models import Session
from .models import SessionSummary

MAX_PROMPT_FILES = 20
MAX_PROMPT_DIRECTORIES = 10
MAX_PROMPT_TIMELINE = 15

SYSTEM_PROMPT = """You're a helpful assistant that analyzes coding sessions.
Given information about files changed and commits made, generate a concise summary.

Always respond with valid JSON:
{
    "whatWasBuilt": "1-2 sentence description",
    "keyFilesModified": ["file1.ts", "file2.ts"],
    "apparentGoal": "What the developer was likely trying to accomplish",
    "suggestedTitle": "Short title, 5 words max"
}

Be concise but insightful. Focus on the big picture."""


def _clock_time(value: datetime) -> str:
    return value.astimezone().strftime("%H:%M:%S")


@dataclass(frozen=True)
class AnalysisData:
    """What the model is told about a session."""

    duration: str
    repository: Optional[str]
    files_changed: list[str]
    file_change_timeline: list[tuple[str, str]] = field(default_factory=list)
    commits: list[tuple[str, str]] = field(default_factory=list)
    unique_directories: list[str] = field(default_factory=list)


def build_analysis_data(session: Session) -> AnalysisData:
    files_changed = session.unique_files
    directories = list(
        dict.fromkeys(f.rsplit("/", 1)[0] if "/" in f else "/" for f in files_changed)
    )
    duration = str(session.stats.duration) if session.stats else "Unknown"

    return AnalysisData(
        duration=f"{duration} minutes",
        repository=session.repository,
        files_changed=files_changed,
        file_change_timeline=[(c.file, _clock_time(c.timestamp)) for c in session.changes],
        commits=[(c.message, _clock_time(c.timestamp)) for c in session.commits],
        unique_directories=directories,
    )


def build_prompt(data: AnalysisData) -> str:
    lines = ["Analyze this coding session:", "", f"**Duration:** {data.duration}"]
    if data.repository:
        lines.append(f"**Repository:** {data.repository}")

    lines += ["", f"**Files Modified ({len(data.files_changed)}):**"]
    lines += [f"- {f}" for f in data.files_changed[:MAX_PROMPT_FILES]]
    if len(data.files_changed) > MAX_PROMPT_FILES:
        lines.append(f"- ...and {len(data.files_changed) - MAX_PROMPT_FILES} more")

    lines += ["", "**Directories:**"]
    lines += [f"- {d.rstrip('/')}/" for d in data.unique_directories[:MAX_PROMPT_DIRECTORIES]]

    if data.commits:
        lines += ["", f"**Commits ({len(data.commits)}):**"]
        lines += [f'- "{message}" ({time})' for message, time in data.commits]

    lines += ["", "**Activity Timeline:**"]
    lines += [f"- {time}: {f}" for f, time in data.file_change_timeline[:MAX_PROMPT_TIMELINE]]

    lines += ["", "Generate a JSON summary of this session."]
    return "\n".join(lines)


def parse_summary(content: Optional[str], model: str) -> SessionSummary:
    """Turn the model's JSON reply into a SessionSummary.

    Missing fields fall back to neutral defaults.

    Raises:
        SummaryError: If the reply is empty or not a JSON object
    """
    if not content or not content.strip():
        raise SummaryError("Empty response from AI")

    text = content.strip()
    if text.startswith("```"):
        text = text.strip("`")
        if text.startswith("json"):
            text = text[4:]

    try:
        parsed: Any = json.loads(text)
    except json.JSONDecodeError as e:
        raise SummaryError(f"Failed to parse AI response: {e}")
    if not isinstance(parsed, dict):
        raise SummaryError("AI response is not a JSON object")

    key_files = parsed.get("keyFilesModified") or []
    if not isinstance(key_files, list):
        key_files = [str(key_files)]

    return SessionSummary(
        what_was_built=parsed.get("whatWasBuilt") or "Unable to determine",
        key_files_modified=[str(f) for f in key_files],
        apparent_goal=parsed.get("apparentGoal") or "Unable to determine",
        suggested_title=parsed.get("suggestedTitle") or "Coding Session",
        model=model,
    )
