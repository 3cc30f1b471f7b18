"""Session data model: events, statistics and the merged timeline.

Timestamps are timezone-aware UTC datetimes truncated to milliseconds, which
is exactly what the ISO-8601 form on disk can carry, so a session survives a
save/load round trip unchanged.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal, Optional

TimelineKind = Literal["save", "commit"]


def utc_now() -> datetime:
    """Current UTC time at millisecond precision."""
    return truncate_ms(datetime.now(timezone.utc))


def truncate_ms(value: datetime) -> datetime:
    """Normalize to UTC and drop sub-millisecond precision."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.replace(microsecond=(value.microsecond // 1000) * 1000)


def format_timestamp(value: datetime) -> str:
    """Render as ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""
    value = truncate_ms(value)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def parse_timestamp(text: str) -> datetime:
    """Parse an ISO-8601 timestamp (``Z`` suffix or numeric offset).

    Raises:
        ValueError: If the text is not an ISO-8601 timestamp
    """
    if not isinstance(text, str):
        raise ValueError(f"timestamp must be a string, got {type(text).__name__}")
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return truncate_ms(datetime.fromisoformat(text))


def duration_minutes(start: datetime, end: datetime) -> int:
    """Whole minutes between two instants, rounded half up."""
    seconds = (end - start).total_seconds()
    return int(seconds / 60 + 0.5) if seconds >= 0 else -int(-seconds / 60 + 0.5)


@dataclass(frozen=True)
class FileChangeEvent:
    """A single save: full text snapshot of one file at one moment."""

    file: str
    timestamp: datetime
    content: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "file": self.file,
            "timestamp": format_timestamp(self.timestamp),
            "content": self.content,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FileChangeEvent:
        return cls(
            file=data["file"],
            timestamp=parse_timestamp(data["timestamp"]),
            content=data.get("content", ""),
        )


@dataclass(frozen=True)
class CommitEvent:
    """A commit observed in the repository during the session."""

    hash: str
    message: str
    author: str
    timestamp: datetime

    @property
    def short_hash(self) -> str:
        return self.hash[:7]

    def to_dict(self) -> dict[str, Any]:
        return {
            "hash": self.hash,
            "message": self.message,
            "author": self.author,
            "timestamp": format_timestamp(self.timestamp),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CommitEvent:
        return cls(
            hash=data["hash"],
            message=data.get("message", ""),
            author=data.get("author", ""),
            timestamp=parse_timestamp(data["timestamp"]),
        )


@dataclass(frozen=True)
class SessionStats:
    """Summary statistics computed once, when a session is finalized.

    ``duration`` is whole minutes; the document stores it as a string.
    """

    files_changed: int
    commits_count: int
    duration: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "filesChanged": self.files_changed,
            "commitsCount": self.commits_count,
            "duration": str(self.duration),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SessionStats:
        return cls(
            files_changed=int(data["filesChanged"]),
            commits_count=int(data["commitsCount"]),
            duration=int(data["duration"]),
        )


@dataclass
class Session:
    """A bounded recording interval and everything observed during it.

    Mutable while its recorder is active; ``finalize`` sets ``end_time`` and
    ``stats`` exactly once. ``summary`` is an opaque dict attached later.
    """

    id: str
    start_time: datetime
    end_time: Optional[datetime] = None
    repository: Optional[str] = None
    changes: list[FileChangeEvent] = field(default_factory=list)
    commits: list[CommitEvent] = field(default_factory=list)
    stats: Optional[SessionStats] = None
    summary: Optional[dict[str, Any]] = None

    @classmethod
    def new(cls, start_time: Optional[datetime] = None, repository: Optional[str] = None) -> Session:
        """Create a session with a fresh UUIDv4 id."""
        return cls(
            id=str(uuid.uuid4()),
            start_time=truncate_ms(start_time) if start_time else utc_now(),
            repository=repository,
        )

    @property
    def is_finalized(self) -> bool:
        return self.stats is not None

    @property
    def unique_files(self) -> list[str]:
        """Distinct changed files in first-save order."""
        return list(dict.fromkeys(change.file for change in self.changes))

    def compute_stats(self, end_time: Optional[datetime] = None) -> SessionStats:
        """Statistics as of ``end_time`` (defaults to the session end or now)."""
        end = end_time or self.end_time or utc_now()
        return SessionStats(
            files_changed=len(set(change.file for change in self.changes)),
            commits_count=len(self.commits),
            duration=duration_minutes(self.start_time, end),
        )

    def finalize(self, end_time: Optional[datetime] = None) -> SessionStats:
        """Set ``end_time`` and compute ``stats``.

        Raises:
            ValueError: If already finalized or ``end_time`` precedes the start
        """
        if self.end_time is not None or self.stats is not None:
            raise ValueError(f"Session {self.id} is already finalized")

        end = truncate_ms(end_time) if end_time else utc_now()
        if end < self.start_time:
            raise ValueError("end_time must not precede start_time")

        self.end_time = end
        self.stats = self.compute_stats(end)
        return self.stats

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the persisted document layout."""
        data: dict[str, Any] = {
            "sessionId": self.id,
            "startTime": format_timestamp(self.start_time),
        }
        if self.end_time is not None:
            data["endTime"] = format_timestamp(self.end_time)
        if self.repository is not None:
            data["repository"] = self.repository
        data["changes"] = [change.to_dict() for change in self.changes]
        data["commits"] = [commit.to_dict() for commit in self.commits]
        if self.stats is not None:
            data["stats"] = self.stats.to_dict()
        if self.summary is not None:
            data["summary"] = self.summary
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Session:
        """Parse a persisted document.

        Raises:
            KeyError, TypeError, ValueError: If the document is malformed
        """
        end_time = data.get("endTime")
        stats = data.get("stats")
        summary = data.get("summary")
        if summary is not None and not isinstance(summary, dict):
            raise TypeError("summary must be an object")

        return cls(
            id=data["sessionId"],
            start_time=parse_timestamp(data["startTime"]),
            end_time=parse_timestamp(end_time) if end_time else None,
            repository=data.get("repository"),
            changes=[FileChangeEvent.from_dict(c) for c in data.get("changes", [])],
            commits=[CommitEvent.from_dict(c) for c in data.get("commits", [])],
            stats=SessionStats.from_dict(stats) if stats else None,
            summary=summary,
        )


@dataclass(frozen=True)
class TimelineEntry:
    """One row of the merged save/commit timeline."""

    kind: TimelineKind
    timestamp: datetime
    label: str
    ref: str


def build_timeline(session: Session) -> list[TimelineEntry]:
    """Merge saves and commits into one chronologically ordered list.

    The sort is stable: equal timestamps keep saves ahead of commits and
    arrival order within each source.
    """
    entries = [
        TimelineEntry("save", change.timestamp, f"Saved {change.file}", change.file)
        for change in session.changes
    ]
    entries.extend(
        TimelineEntry("commit", commit.timestamp, f"Commit: {commit.message}", commit.hash)
        for commit in session.commits
    )
    return sorted(entries, key=lambda entry: entry.timestamp)
