"""Session document storage under ``<workspace>/.codetrace/``."""

from .event_store import SESSION_PREFIX, SESSION_SUFFIX, EventStore, record_key

__all__ = ["EventStore", "record_key", "SESSION_PREFIX", "SESSION_SUFFIX"]
