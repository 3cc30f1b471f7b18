"""Persistence exceptions: session documents on disk."""

from pathlib import Path

from .base import CodeTraceError


class PersistenceError(CodeTraceError):
    """Raised when a session document cannot be read, written or deleted."""

    def __init__(self, path: Path, operation: str, reason: str):
        super().__init__(
            f"Cannot {operation} session document: {path}",
            details={"path": str(path), "operation": operation, "reason": reason},
        )
        self.path = path
        self.operation = operation
        self.reason = reason


class CorruptRecordError(PersistenceError):
    """Raised when a stored session document fails to parse."""

    def __init__(self, path: Path, reason: str):
        super().__init__(path, "parse", reason)
