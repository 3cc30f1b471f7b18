"""Polling commit detector with a checkpoint cursor.

Every tick asks the repository for its ``lookback`` most recent commits
(newest first), walks them until the checkpoint hash, and delivers the
unseen ones oldest-first. The checkpoint then moves to the newest commit
observed. Nothing is pushed by git itself, so no hooks are installed in
the user's repository.

If more than ``lookback`` commits land between two ticks only the newest
``lookback`` are seen; the older overflow is never reported for the
session. That is a known limitation of fixed-window polling.
"""

from __future__ import annotations

import re
import threading
from pathlib import Path
from typing import Callable, Optional, Protocol

from ..exceptions import RepositoryError, RepositoryUnavailableError
from ..logging_config import get_logger
from ..models import CommitEvent
from .git_inspector import GitInspector, LogEntry

logger = get_logger(__name__)

DEFAULT_POLL_INTERVAL = 5.0
DEFAULT_LOOKBACK = 10

# Last path segment of a remote URL, without a trailing .git
_REMOTE_NAME_RE = re.compile(r"[/:]([^/:]+?)(?:\.git)?/*$")

CommitCallback = Callable[[CommitEvent], None]


class RepositoryInspector(Protocol):
    """What the watcher needs from a repository."""

    def is_repo(self) -> bool: ...

    def remote_url(self, name: str = "origin") -> Optional[str]: ...

    def log(self, max_count: int) -> list[LogEntry]: ...


def repository_name_from_url(url: str) -> Optional[str]:
    """``https://host/user/repo.git`` → ``repo``; None if no segment found."""
    match = _REMOTE_NAME_RE.search(url.strip())
    return match.group(1) if match else None


class CommitWatcher:
    """Detects commits created while a session is recording.

    Thread-safe: :meth:`poll` runs on the watcher's timer thread (or is
    called directly), :meth:`stop_tracking` from the recorder. Delivery
    happens under ``_lock`` and ``stop_tracking`` clears the callback under
    the same lock, so no commit is delivered after it returns.
    """

    def __init__(
        self,
        inspector_factory: Callable[[str], RepositoryInspector] = GitInspector,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        lookback: int = DEFAULT_LOOKBACK,
    ) -> None:
        if poll_interval <= 0:
            raise ValueError("poll_interval must be positive")
        if lookback < 1:
            raise ValueError("lookback must be at least 1")

        self.poll_interval = poll_interval
        self.lookback = lookback
        self._inspector_factory = inspector_factory

        self._lock = threading.RLock()
        self._inspector: Optional[RepositoryInspector] = None
        self._available = False
        self._repository_name = ""
        self._checkpoint = ""
        self._callback: Optional[CommitCallback] = None
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    # ── State ─────────────────────────────────────────────────────

    @property
    def is_available(self) -> bool:
        return self._available

    @property
    def repository_name(self) -> str:
        return self._repository_name

    @property
    def checkpoint(self) -> str:
        """Hash of the newest commit already accounted for ("" = none)."""
        with self._lock:
            return self._checkpoint

    @property
    def is_tracking(self) -> bool:
        with self._lock:
            return self._callback is not None

    # ── Setup ─────────────────────────────────────────────────────

    def initialize(self, repo_path: str | Path) -> bool:
        """Attach to the repository at ``repo_path``.

        Returns:
            True if commit tracking is available. False when the path is
            not a repository or git cannot be run; nothing else happens
            in that case.
        """
        self.stop_tracking()
        with self._lock:
            self._inspector = None
            self._available = False
            self._repository_name = ""
            self._checkpoint = ""

        try:
            inspector = self._open(str(repo_path))
        except RepositoryUnavailableError as e:
            logger.info("Commit tracking disabled: %s", e)
            return False

        name = self._resolve_name(inspector, Path(repo_path))
        checkpoint = self._latest_hash(inspector)

        with self._lock:
            self._inspector = inspector
            self._available = True
            self._repository_name = name
            self._checkpoint = checkpoint

        logger.info(
            "Commit tracking initialized for %s (checkpoint %s)",
            name,
            checkpoint[:7] or "<empty>",
        )
        return True

    def _open(self, repo_path: str) -> RepositoryInspector:
        try:
            inspector = self._inspector_factory(repo_path)
            is_repo = inspector.is_repo()
        except (OSError, RepositoryError) as e:
            raise RepositoryUnavailableError(Path(repo_path), str(e))
        if not is_repo:
            raise RepositoryUnavailableError(Path(repo_path), "not a git repository")
        return inspector

    @staticmethod
    def _resolve_name(inspector: RepositoryInspector, repo_path: Path) -> str:
        url = inspector.remote_url("origin")
        if url:
            name = repository_name_from_url(url)
            if name:
                return name
        return repo_path.resolve().name

    @staticmethod
    def _latest_hash(inspector: RepositoryInspector) -> str:
        # Starting at the current head keeps pre-session history out of the session
        try:
            entries = inspector.log(1)
        except RepositoryError as e:
            logger.debug("Could not read latest commit: %s", e)
            return ""
        return entries[0].hash if entries else ""

    # ── Tracking ──────────────────────────────────────────────────

    def start_tracking(self, callback: CommitCallback) -> bool:
        """Poll every ``poll_interval`` seconds, delivering new commits to ``callback``.

        Returns:
            False (and never calls ``callback``) when tracking is unavailable.
        """
        if not self._available:
            logger.debug("start_tracking ignored: no repository")
            return False

        self.stop_tracking()

        stop_event = threading.Event()
        thread = threading.Thread(
            target=self._poll_loop,
            args=(stop_event,),
            name="codetrace-commit-watcher",
            daemon=True,
        )
        with self._lock:
            self._callback = callback
            self._stop_event = stop_event
            self._thread = thread
        thread.start()

        logger.info("Commit tracking started (every %.1fs)", self.poll_interval)
        return True

    def stop_tracking(self) -> None:
        """Cancel the timer; an in-flight poll will not deliver anything further."""
        with self._lock:
            self._callback = None
            stop_event = self._stop_event
            thread = self._thread
            self._thread = None

        stop_event.set()
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=5)
            if thread.is_alive():
                logger.warning("Commit watcher thread did not exit within 5 seconds")
            else:
                logger.debug("Commit watcher thread stopped")

    def _poll_loop(self, stop_event: threading.Event) -> None:
        """Timer thread: one poll per interval until stopped."""
        while not stop_event.wait(self.poll_interval):
            try:
                self.poll()
            except Exception:
                logger.exception("Commit poll crashed")

    def poll(self) -> int:
        """Run one poll.

        Returns:
            Number of commits delivered.
        """
        with self._lock:
            inspector = self._inspector
            if self._callback is None or inspector is None:
                return 0

        try:
            entries = inspector.log(self.lookback)
        except RepositoryError as e:
            # Checkpoint untouched: the next tick retries from the same place
            logger.warning("Error checking for commits: %s", e)
            return 0

        with self._lock:
            callback = self._callback
            if callback is None:
                return 0

            new_entries: list[LogEntry] = []
            for entry in entries:
                if entry.hash == self._checkpoint:
                    break
                new_entries.append(entry)

            # Scan ran newest→oldest; deliver chronologically
            new_entries.reverse()
            for entry in new_entries:
                logger.info("New commit detected: %s", entry.hash[:7])
                callback(entry.to_commit_event())
                self._checkpoint = entry.hash

            if entries:
                self._checkpoint = entries[0].hash

        return len(new_entries)

    def dispose(self) -> None:
        self.stop_tracking()
        with self._lock:
            self._inspector = None
            self._available = False
