"""File-save source: watches the workspace and reports saved text files."""

from __future__ import annotations

import threading
from collections.abc import Iterable
from pathlib import Path
from typing import Callable, Optional, Protocol

from watchfiles import Change, watch

from ..exceptions import PersistenceError
from ..file_ops import safe_read_file
from ..logging_config import get_logger

logger = get_logger(__name__)

# Coalesce the burst of events an editor produces for one save
DEBOUNCE_MS = 200

# Snapshots larger than this are not recorded
MAX_FILE_BYTES = 2 * 1024 * 1024

# Directories whose churn is never a user save
NOISE_DIRS = frozenset({".git", ".hg", ".svn", "__pycache__", "node_modules"})

SaveCallback = Callable[[str, str], None]


class Subscription(Protocol):
    def close(self) -> None: ...


class SaveSource(Protocol):
    """Delivers ``(absolute_path, full_text)`` for every save."""

    def subscribe(self, callback: SaveCallback) -> Subscription: ...


class _WatchSubscription:
    """A running watch loop feeding one callback."""

    def __init__(self, watcher: SaveWatcher, callback: SaveCallback) -> None:
        self._watcher = watcher
        self._callback: Optional[SaveCallback] = callback
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._watch_loop,
            name="codetrace-save-watcher",
            daemon=True,
        )

    def start(self) -> None:
        self._thread.start()

    @property
    def closed(self) -> bool:
        return self._stop_event.is_set()

    def deliver(self, path: str, text: str) -> bool:
        with self._lock:
            if self._callback is None:
                return False
            self._callback(path, text)
            return True

    def close(self) -> None:
        """Unsubscribe; no callback runs once this returns."""
        with self._lock:
            self._callback = None
        self._stop_event.set()
        if self._thread.is_alive() and self._thread is not threading.current_thread():
            self._thread.join(timeout=5)
            if self._thread.is_alive():
                logger.warning("Save watcher thread did not exit within 5 seconds")

    def _watch_loop(self) -> None:
        root = self._watcher.root_dir
        logger.info("Watching %s for saves", root)
        try:
            for changes in watch(
                root,
                stop_event=self._stop_event,
                debounce=self._watcher.debounce_ms,
                rust_timeout=1000,
                watch_filter=_SaveFilter(),
            ):
                if self._stop_event.is_set():
                    break
                self._watcher.dispatch(changes, self.deliver)
        except Exception:
            logger.exception("Save watcher stopped unexpectedly")


class SaveWatcher:
    """Watches ``root_dir`` with ``watchfiles`` and reports saved text files.

    Each subscription runs its own daemon thread. Added or modified regular
    files are read and handed to the callback with their full text;
    deletions, directories, binary files and oversized files are skipped.
    """

    def __init__(
        self,
        root_dir: str | Path,
        debounce_ms: int = DEBOUNCE_MS,
        max_file_bytes: int = MAX_FILE_BYTES,
    ) -> None:
        self.root_dir = str(Path(root_dir).resolve())
        self.debounce_ms = debounce_ms
        self.max_file_bytes = max_file_bytes

    def subscribe(self, callback: SaveCallback) -> _WatchSubscription:
        subscription = _WatchSubscription(self, callback)
        subscription.start()
        return subscription

    def dispatch(
        self,
        changes: Iterable[tuple[Change, str]],
        deliver: Callable[[str, str], object],
    ) -> int:
        """Read each saved file in a batch and pass it on.

        Returns:
            Number of saves delivered.
        """
        delivered = 0
        for path in sorted({path for change, path in changes if change != Change.deleted}):
            text = self.read_snapshot(Path(path))
            if text is None:
                continue
            if deliver(path, text) is False:
                break
            delivered += 1
        return delivered

    def read_snapshot(self, path: Path) -> Optional[str]:
        """Full text of ``path``, or None if it should not be recorded."""
        if not path.is_file():
            return None
        try:
            text = safe_read_file(path, max_bytes=self.max_file_bytes)
        except PersistenceError as e:
            logger.debug("Not recording %s: %s", path, e)
            return None
        if "\x00" in text[:8192]:
            logger.debug("Not recording binary file %s", path)
            return None
        return text


class _SaveFilter:
    """watchfiles filter: drop deletions and VCS/cache internals."""

    def __call__(self, change: Change, path: str) -> bool:
        if change == Change.deleted:
            return False
        return not any(part in NOISE_DIRS for part in Path(path).parts)
