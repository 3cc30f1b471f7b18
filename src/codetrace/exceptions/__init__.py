"""Exception hierarchy for CodeTrace."""

from .base import CodeTraceError
from .config import (
    ConfigurationError,
    InvalidConfigError,
    InvalidPathError,
)
from .session import DuplicateOperationError, SummaryError
from .storage import CorruptRecordError, PersistenceError
from .tracking import (
    GitCommandError,
    RepositoryError,
    RepositoryUnavailableError,
)

__all__ = [
    "CodeTraceError",
    "ConfigurationError",
    "InvalidPathError",
    "InvalidConfigError",
    "RepositoryError",
    "RepositoryUnavailableError",
    "GitCommandError",
    "PersistenceError",
    "CorruptRecordError",
    "DuplicateOperationError",
    "SummaryError",
]
