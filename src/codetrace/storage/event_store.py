"""JSON persistence for finalized sessions with count-based retention.

One document per session, named after the session's start time::

    .codetrace/session-2024-05-01T09-30-00-000Z.json

Colons and periods in the timestamp become dashes, so the name is stable
for a given session (re-saving overwrites rather than duplicates) and a
lexicographic sort of the names is chronological.

Usage:
    store = EventStore(Path("/path/to/project/.codetrace"), max_sessions=50)
    path = store.save(session)          # None on failure
    sessions = store.load_all()         # most recent first
"""

from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Optional

from ..exceptions import CorruptRecordError, PersistenceError
from ..file_ops import (
    ensure_directory,
    list_file_names,
    safe_delete_file,
    safe_read_file,
    safe_write_file,
)
from ..logging_config import get_logger
from ..models import Session, format_timestamp

logger = get_logger(__name__)

SESSION_PREFIX = "session-"
SESSION_SUFFIX = ".json"

DEFAULT_MAX_SESSIONS = 50


def record_key(session: Session) -> str:
    """Document identifier derived from the session's start time."""
    stamp = format_timestamp(session.start_time).replace(":", "-").replace(".", "-")
    return f"{SESSION_PREFIX}{stamp}"


class EventStore:
    """Stores finalized sessions as JSON documents in one directory.

    Public operations never raise for I/O problems: failures are logged
    and reported as ``None``/``False``/empty results.

    Attributes:
        directory: Namespace directory holding the documents.
        max_sessions: Retention cap applied before saving a new session.
    """

    def __init__(self, directory: Path, max_sessions: int = DEFAULT_MAX_SESSIONS) -> None:
        if max_sessions < 1:
            raise ValueError("max_sessions must be at least 1")
        self.directory = Path(directory)
        self.max_sessions = max_sessions
        self._lock = threading.RLock()

    # ── Keys and paths ────────────────────────────────────────────

    @staticmethod
    def key_for(session: Session) -> str:
        return record_key(session)

    def path_for(self, session: Session) -> Path:
        return self._path_for_key(record_key(session))

    def _path_for_key(self, key: str) -> Path:
        name = key if key.endswith(SESSION_SUFFIX) else f"{key}{SESSION_SUFFIX}"
        if "/" in name or "\\" in name or not name.startswith(SESSION_PREFIX):
            raise PersistenceError(self.directory / name, "resolve", "not a session document name")
        return self.directory / name

    def keys(self) -> list[str]:
        """Stored document keys, oldest first."""
        try:
            names = list_file_names(self.directory, SESSION_PREFIX, SESSION_SUFFIX)
        except PersistenceError as e:
            logger.error("%s", e)
            return []
        return [name[: -len(SESSION_SUFFIX)] for name in names]

    def count(self) -> int:
        return len(self.keys())

    # ── Write path ────────────────────────────────────────────────

    def save(self, session: Session) -> Optional[Path]:
        """Write ``session`` to its document.

        A session whose document does not exist yet first triggers
        retention: the oldest documents are deleted until fewer than
        ``max_sessions`` remain. Re-saving an existing session (for
        example to attach a summary) overwrites it in place.

        Returns:
            Path of the written document, or None if the write failed.
        """
        with self._lock:
            try:
                path = self.path_for(session)
                content = json.dumps(session.to_dict(), indent=2, ensure_ascii=False)
                ensure_directory(self.directory)
                if not path.exists():
                    self._enforce_retention()
                safe_write_file(path, content)
            except (TypeError, ValueError) as e:
                logger.error("Failed to serialize session %s: %s", session.id, e)
                return None
            except PersistenceError as e:
                logger.error("Failed to save session %s: %s", session.id, e)
                return None

        logger.info("Session %s saved to %s", session.id, path.name)
        return path

    def _enforce_retention(self) -> int:
        """Delete oldest documents until the count is below the cap."""
        keys = self.keys()
        deleted = 0
        while len(keys) >= self.max_sessions:
            oldest = keys.pop(0)
            try:
                if safe_delete_file(self._path_for_key(oldest)):
                    deleted += 1
                    logger.debug("Evicted old session %s", oldest)
            except PersistenceError as e:
                # Keep going: a stuck file must not block saving the new session
                logger.error("Could not evict %s: %s", oldest, e)
        return deleted

    def delete(self, key: str) -> bool:
        """Remove a stored document.

        Returns:
            True if a document was removed. A missing document is not an
            error and returns False, as does a failed delete (logged).
        """
        with self._lock:
            try:
                removed = safe_delete_file(self._path_for_key(key))
            except PersistenceError as e:
                logger.error("Failed to delete %s: %s", key, e)
                return False

        if removed:
            logger.info("Deleted session document %s", key)
        else:
            logger.debug("Session document %s already absent", key)
        return removed

    # ── Read path ─────────────────────────────────────────────────

    def _read(self, path: Path) -> Session:
        """Parse one document.

        Raises:
            PersistenceError: If the file cannot be read
            CorruptRecordError: If the content is not a valid session
        """
        raw = safe_read_file(path, errors="strict")
        try:
            data = json.loads(raw)
            if not isinstance(data, dict):
                raise TypeError("document is not a JSON object")
            return Session.from_dict(data)
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise CorruptRecordError(path, str(e))

    def load(self, key: str) -> Optional[Session]:
        """Load one session by document key; None if missing or unreadable."""
        try:
            path = self._path_for_key(key)
            if not path.exists():
                logger.debug("No session document %s", key)
                return None
            return self._read(path)
        except PersistenceError as e:
            logger.error("Skipping session document %s: %s", key, e)
            return None

    def get(self, session_id: str) -> Optional[Session]:
        """Find a stored session by its UUID."""
        for session in self.load_all():
            if session.id == session_id:
                return session
        return None

    def load_all(self) -> list[Session]:
        """All readable sessions, most recent first.

        Documents that fail to parse are skipped and logged; the rest of
        the batch is still returned.
        """
        sessions: list[Session] = []
        for key in reversed(self.keys()):
            try:
                sessions.append(self._read(self._path_for_key(key)))
            except PersistenceError as e:
                logger.error("Skipping session document %s: %s", key, e)
        return sessions

    def latest(self) -> Optional[Session]:
        """Most recent readable session, if any."""
        for key in reversed(self.keys()):
            session = self.load(key)
            if session is not None:
                return session
        return None

    def resolve(self, ref: str) -> Optional[Session]:
        """Look up by document key, session UUID (or unique prefix), or ``latest``."""
        if not ref:
            return None
        if ref == "latest":
            return self.latest()
        if ref.startswith(SESSION_PREFIX):
            return self.load(ref)

        matches = [s for s in self.load_all() if s.id == ref or s.id.startswith(ref)]
        if len(matches) == 1:
            return matches[0]
        if len(matches) > 1:
            logger.warning("Session reference %r is ambiguous (%d matches)", ref, len(matches))
        return None
