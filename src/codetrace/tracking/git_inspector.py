"""Inspect a git repository via subprocess."""

import re
import subprocess
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from ..exceptions import GitCommandError
from ..logging_config import get_logger
from ..models import CommitEvent, parse_timestamp

logger = get_logger(__name__)

# Unit separator between fields; commit subjects cannot contain it
_FIELD_SEP = "\x1f"
# Committer date; author dates can predate earlier commits
_LOG_FORMAT = _FIELD_SEP.join(["%H", "%aN", "%cI", "%s"])

# Matches: 40/64-char hex hash, then the remaining separated fields
_ENTRY_RE = re.compile(r"^[0-9a-f]{40}(?:[0-9a-f]{24})?\x1f")

_NO_COMMITS_MARKERS = (
    "does not have any commits yet",
    "bad default revision 'HEAD'",
    "unknown revision or path not in the working tree",
)


@dataclass(frozen=True)
class LogEntry:
    """One line of ``git log``: newest entries come first."""

    hash: str
    message: str
    author: str
    date: datetime

    def to_commit_event(self) -> CommitEvent:
        return CommitEvent(
            hash=self.hash,
            message=self.message,
            author=self.author,
            timestamp=self.date,
        )


class GitInspector:
    """Read-only queries against the repository at ``repo_path``."""

    def __init__(self, repo_path: str, timeout: float = 10.0):
        self.repo_path = str(Path(repo_path).resolve())
        self.timeout = timeout

    def _run(self, *args: str) -> subprocess.CompletedProcess:
        return subprocess.run(
            ["git", "-C", self.repo_path, *args],
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=self.timeout,
        )

    def is_repo(self) -> bool:
        """True if ``repo_path`` is inside a git work tree and git is installed."""
        try:
            result = self._run("rev-parse", "--is-inside-work-tree")
            return result.returncode == 0 and result.stdout.strip() == "true"
        except (FileNotFoundError, subprocess.TimeoutExpired) as e:
            logger.info("git not available: %s", e)
            return False

    def remote_url(self, name: str = "origin") -> Optional[str]:
        """Fetch URL of remote ``name``, or None if there is no such remote."""
        try:
            result = self._run("remote", "get-url", name)
        except (FileNotFoundError, subprocess.TimeoutExpired) as e:
            logger.debug("Could not read remote %s: %s", name, e)
            return None
        if result.returncode != 0:
            return None
        url = result.stdout.strip()
        return url or None

    def log(self, max_count: int) -> list[LogEntry]:
        """Most recent ``max_count`` commits on HEAD, newest first.

        A repository without commits yields an empty list.

        Raises:
            GitCommandError: If git is missing, times out, or fails
        """
        try:
            result = self._run("log", f"--format={_LOG_FORMAT}", f"-n{max_count}")
        except FileNotFoundError as e:
            raise GitCommandError("log", f"git executable not found: {e}")
        except subprocess.TimeoutExpired:
            raise GitCommandError("log", f"timed out after {self.timeout}s")

        if result.returncode != 0:
            stderr = result.stderr.strip()
            if any(marker in stderr for marker in _NO_COMMITS_MARKERS):
                return []
            raise GitCommandError("log", stderr or "unknown error", result.returncode)

        return self._parse_log(result.stdout)

    @staticmethod
    def _parse_log(raw: str) -> list[LogEntry]:
        """Parse ``hash<US>author<US>date<US>subject`` lines."""
        entries: list[LogEntry] = []
        for line in raw.splitlines():
            if not _ENTRY_RE.match(line):
                if line.strip():
                    logger.debug("Skipping unexpected git log line: %r", line)
                continue

            parts = line.split(_FIELD_SEP, 3)
            if len(parts) < 3:
                continue
            try:
                date = parse_timestamp(parts[2])
            except ValueError:
                logger.debug("Skipping commit %s with unparseable date %r", parts[0], parts[2])
                continue

            entries.append(
                LogEntry(
                    hash=parts[0],
                    author=parts[1],
                    date=date,
                    message=parts[3] if len(parts) > 3 else "",
                )
            )
        return entries
