"""Repository inspection exceptions."""

from pathlib import Path
from typing import Optional

from .base import CodeTraceError


class RepositoryError(CodeTraceError):
    """Base class for repository-related errors."""

    pass


class RepositoryUnavailableError(RepositoryError):
    """Raised when the target is not a repository or git is missing."""

    def __init__(self, path: Path, reason: str):
        super().__init__(
            f"Repository unavailable: {path}",
            details={"path": str(path), "reason": reason},
        )
        self.path = path
        self.reason = reason


class GitCommandError(RepositoryError):
    """Raised when a git invocation fails."""

    def __init__(self, command: str, reason: str, returncode: Optional[int] = None):
        details = {"command": command, "reason": reason}
        if returncode is not None:
            details["returncode"] = str(returncode)

        super().__init__(f"git {command} failed", details=details)
        self.command = command
        self.reason = reason
        self.returncode = returncode
