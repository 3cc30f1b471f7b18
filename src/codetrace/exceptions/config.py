"""Configuration exceptions: workspace paths and settings."""

from pathlib import Path
from typing import Any

from .base import CodeTraceError


class ConfigurationError(CodeTraceError):
    """Base class for configuration-related errors.

    Raised directly when there is no usable workspace to record in.
    """

    pass


class InvalidPathError(ConfigurationError):
    """Raised when a workspace path is missing or not a directory."""

    def __init__(self, path: Path, reason: str):
        super().__init__(f"Invalid path: {path}", details={"path": str(path), "reason": reason})
        self.path = path
        self.reason = reason


class InvalidConfigError(ConfigurationError):
    """Raised when configuration values are invalid."""

    def __init__(self, key: str, value: Any, reason: str):
        super().__init__(
            f"Invalid configuration for {key}: {value}",
            details={"key": key, "value": str(value), "reason": reason},
        )
        self.key = key
        self.value = value
        self.reason = reason
