"""Session recording lifecycle.

The SessionRecorder owns exactly one active session at a time. It wires two
activity sources into that session:

- a save source (``SaveWatcher``) calling :meth:`SessionRecorder.record_file_save`
- a ``CommitWatcher`` calling :meth:`SessionRecorder.record_commit`

Both run on their own threads; every append goes through one lock so the
session has a single writer. ``stop()`` detaches both sources *before*
finalizing and saving, so no late event can land in a session that is
already on disk.

Example:
    >>> recorder = SessionRecorder.for_workspace(Path("/path/to/project"))
    >>> recorder.start()
    True
    >>> result = recorder.stop()
    >>> result.saved
    True
"""

from __future__ import annotations

import os
import threading
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Callable, Optional, Protocol

from .config import RecorderConfig, resolve_workspace
from .exceptions import ConfigurationError, DuplicateOperationError
from .ignore import IgnoreMatcher
from .logging_config import get_logger
from .models import CommitEvent, FileChangeEvent, Session, utc_now
from .storage import EventStore
from .tracking import CommitWatcher, GitInspector, SaveSource, SaveWatcher, Subscription

logger = get_logger(__name__)


class RecorderState(Enum):
    """Lifecycle state. ``IDLE`` → ``RECORDING`` → ``IDLE`` → ..."""

    IDLE = "idle"
    RECORDING = "recording"


class Notifier(Protocol):
    """User-facing messages emitted by the recorder."""

    def info(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...


class LogNotifier:
    """Notifier that only logs."""

    def info(self, message: str) -> None:
        logger.info(message)

    def warning(self, message: str) -> None:
        logger.warning(message)

    def error(self, message: str) -> None:
        logger.error(message)


@dataclass(frozen=True)
class StopResult:
    """Outcome of a completed ``stop()``.

    The recorder is idle again whatever ``saved`` says.
    """

    session: Session
    saved: bool
    path: Optional[Path] = None


@dataclass(frozen=True)
class RecorderStatus:
    """Point-in-time view for status displays."""

    state: RecorderState
    session_id: Optional[str] = None
    files_touched: int = 0
    commits: int = 0
    repository: Optional[str] = None

    @property
    def status_text(self) -> str:
        if self.state is RecorderState.RECORDING:
            return f"Recording ({self.files_touched} files, {self.commits} commits)"
        return "Idle"


class SessionRecorder:
    """Records one session at a time from file saves and commits.

    Lock order is lifecycle lock → commit watcher → session lock. Source
    callbacks only ever take the session lock.

    Attributes:
        workspace_root: Directory recorded paths are relative to (None if
            no workspace is open; ``start()`` then refuses to run).
        store: Where finalized sessions are written.
        config: Recording configuration.
    """

    def __init__(
        self,
        workspace_root: Optional[Path],
        store: EventStore,
        config: Optional[RecorderConfig] = None,
        save_source: Optional[SaveSource] = None,
        commit_watcher: Optional[CommitWatcher] = None,
        notifier: Optional[Notifier] = None,
        clock: Callable[[], datetime] = utc_now,
        on_finalized: Optional[Callable[[Session], None]] = None,
    ) -> None:
        self.workspace_root = workspace_root
        self.store = store
        self.config = config or RecorderConfig()

        self._save_source = save_source
        self._commit_watcher = commit_watcher or CommitWatcher(
            inspector_factory=GitInspector,
            poll_interval=self.config.poll_interval_seconds,
            lookback=self.config.commit_lookback,
        )
        self._notifier: Notifier = notifier or LogNotifier()
        self._clock = clock
        self._on_finalized = on_finalized
        self._ignore = IgnoreMatcher(self.config.ignore_patterns)

        self._lifecycle_lock = threading.RLock()
        self._session_lock = threading.RLock()
        self._state = RecorderState.IDLE
        self._root: Optional[Path] = None
        self._session: Optional[Session] = None
        self._accepting = False
        self._files_touched: set[str] = set()
        self._subscription: Optional[Subscription] = None

    @classmethod
    def for_workspace(
        cls,
        workspace_root: Path,
        config: Optional[RecorderConfig] = None,
        notifier: Optional[Notifier] = None,
        on_finalized: Optional[Callable[[Session], None]] = None,
    ) -> SessionRecorder:
        """Recorder with the default git, watchfiles and JSON collaborators."""
        config = config or RecorderConfig()
        root = Path(workspace_root)
        return cls(
            workspace_root=root,
            store=EventStore(root / config.store_dir, max_sessions=config.max_sessions_to_keep),
            config=config,
            save_source=SaveWatcher(root),
            notifier=notifier,
            on_finalized=on_finalized,
        )

    # ── State ─────────────────────────────────────────────────────

    @property
    def state(self) -> RecorderState:
        return self._state

    @property
    def is_recording(self) -> bool:
        return self._state is RecorderState.RECORDING

    @property
    def current_session(self) -> Optional[Session]:
        with self._session_lock:
            return self._session

    @property
    def files_touched(self) -> int:
        """Distinct files saved so far in the active session."""
        with self._session_lock:
            return len(self._files_touched)

    @property
    def commit_watcher(self) -> CommitWatcher:
        return self._commit_watcher

    def status(self) -> RecorderStatus:
        with self._session_lock:
            session = self._session
            if session is None or not self.is_recording:
                return RecorderStatus(state=RecorderState.IDLE)
            return RecorderStatus(
                state=RecorderState.RECORDING,
                session_id=session.id,
                files_touched=len(self._files_touched),
                commits=len(session.commits),
                repository=session.repository,
            )

    # ── Lifecycle ─────────────────────────────────────────────────

    def start(self) -> bool:
        """Begin a new session.

        Returns:
            True if recording started. False if already recording (the
            running session is untouched) or there is no usable workspace.
        """
        with self._lifecycle_lock:
            if self._state is RecorderState.RECORDING:
                self._reject(DuplicateOperationError("start", "recording"), "Already recording!")
                return False

            try:
                root = resolve_workspace(self.workspace_root)
            except ConfigurationError as e:
                logger.error("Cannot start recording: %s", e)
                self._notifier.error("Please open a folder before recording")
                return False

            session = Session.new(start_time=self._clock())

            # Best effort: without a repository the session simply has no commits
            if self._commit_watcher.initialize(root):
                session.repository = self._commit_watcher.repository_name

            with self._session_lock:
                self._root = root
                self._session = session
                self._files_touched = set()
                self._accepting = True
            self._state = RecorderState.RECORDING

            if self._save_source is not None:
                self._subscription = self._save_source.subscribe(self.record_file_save)
            if session.repository is not None:
                self._commit_watcher.start_tracking(self.record_commit)

        logger.info("Recording started - session %s", session.id)
        suffix = f" (Git: {session.repository})" if session.repository else ""
        self._notifier.info(f"Recording started{suffix}")
        return True

    def stop(self) -> Optional[StopResult]:
        """Finish the active session and persist it.

        Returns:
            None if nothing was recording. Otherwise a StopResult; the
            recorder is idle again even when the save failed.
        """
        with self._lifecycle_lock:
            if self._state is not RecorderState.RECORDING:
                self._reject(DuplicateOperationError("stop", "idle"), "Not currently recording")
                return None

            # Detach both sources before the session becomes immutable
            if self._subscription is not None:
                self._subscription.close()
                self._subscription = None
            self._commit_watcher.stop_tracking()

            with self._session_lock:
                self._accepting = False
                session = self._session
                if session is None:
                    logger.error("Recorder was recording without a session; resetting")
                    self._root = None
                    self._files_touched = set()
                    self._state = RecorderState.IDLE
                    return None
                stats = session.finalize(max(self._clock(), session.start_time))

            try:
                path = self.store.save(session)
            finally:
                with self._session_lock:
                    self._session = None
                    self._root = None
                    self._files_touched = set()
                self._state = RecorderState.IDLE

        logger.info(
            "Recording stopped - %d files, %d commits, %d min",
            stats.files_changed,
            stats.commits_count,
            stats.duration,
        )

        if path is None:
            self._notifier.error("Failed to save session")
            return StopResult(session=session, saved=False)

        self._notifier.info(
            f"Recording saved! {stats.files_changed} files, "
            f"{stats.commits_count} commits, {stats.duration} min"
        )
        if self._on_finalized is not None:
            try:
                self._on_finalized(session)
            except Exception:
                logger.exception("Post-save hook failed for session %s", session.id)
        return StopResult(session=session, saved=True, path=path)

    def dispose(self) -> None:
        """Stop any active session and release the commit watcher."""
        if self.is_recording:
            self.stop()
        self._commit_watcher.dispose()

    def __enter__(self) -> SessionRecorder:
        return self

    def __exit__(self, *exc_info) -> None:
        self.dispose()

    def _reject(self, error: DuplicateOperationError, message: str) -> None:
        logger.warning("%s", error)
        self._notifier.warning(message)

    # ── Source callbacks ──────────────────────────────────────────

    def relative_path(self, absolute_path: str) -> str:
        """Workspace-relative, forward-slash form of ``absolute_path``."""
        root = self._root or self.workspace_root
        if root is None:
            return absolute_path.replace("\\", "/")
        try:
            relative = os.path.relpath(absolute_path, str(root))
        except ValueError:
            # Different drive on Windows
            relative = absolute_path
        return relative.replace("\\", "/")

    def record_file_save(self, absolute_path: str, text: str) -> bool:
        """Append a save event. Returns False if not recorded."""
        relative = self.relative_path(absolute_path)
        if self._ignore.matches(relative):
            logger.debug("Ignoring save of %s", relative)
            return False

        with self._session_lock:
            session = self._session
            if session is None or not self._accepting:
                return False

            timestamp = self._clock()
            if session.changes and timestamp < session.changes[-1].timestamp:
                timestamp = session.changes[-1].timestamp
            session.changes.append(FileChangeEvent(file=relative, timestamp=timestamp, content=text))
            self._files_touched.add(relative)

        logger.debug("Recorded save - %s", relative)
        return True

    def record_commit(self, commit: CommitEvent) -> bool:
        """Append a commit event. Returns False if not recorded."""
        with self._session_lock:
            session = self._session
            if session is None or not self._accepting:
                return False
            if session.commits and commit.timestamp < session.commits[-1].timestamp:
                commit = replace(commit, timestamp=session.commits[-1].timestamp)
            session.commits.append(commit)

        logger.debug("Recorded commit - %s", commit.short_hash)
        return True
