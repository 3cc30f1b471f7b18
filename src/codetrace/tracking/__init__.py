"""Activity sources: commit polling and file-save watching."""

from .commit_watcher import (
    DEFAULT_LOOKBACK,
    DEFAULT_POLL_INTERVAL,
    CommitCallback,
    CommitWatcher,
    RepositoryInspector,
    repository_name_from_url,
)
from .git_inspector import GitInspector, LogEntry
from .save_watcher import SaveCallback, SaveSource, SaveWatcher, Subscription

__all__ = [
    "CommitWatcher",
    "CommitCallback",
    "RepositoryInspector",
    "repository_name_from_url",
    "DEFAULT_LOOKBACK",
    "DEFAULT_POLL_INTERVAL",
    "GitInspector",
    "LogEntry",
    "SaveWatcher",
    "SaveSource",
    "SaveCallback",
    "Subscription",
]
