"""
CodeTrace - coding session recorder.

Records every file save and git commit made while a session is running,
persists each finished session as a JSON document under ``.codetrace/``,
and turns sessions into timelines, markdown reports and AI summaries.
"""

__version__ = "0.3.0"

from .config import RecorderConfig, load_config
from .exceptions import CodeTraceError
from .models import CommitEvent, FileChangeEvent, Session, SessionStats
from .recorder import RecorderState, SessionRecorder, StopResult
from .storage import EventStore
from .tracking import CommitWatcher

__all__ = [
    "SessionRecorder",
    "RecorderState",
    "StopResult",
    "CommitWatcher",
    "EventStore",
    "Session",
    "SessionStats",
    "FileChangeEvent",
    "CommitEvent",
    "RecorderConfig",
    "load_config",
    "CodeTraceError",
    "__version__",
]
