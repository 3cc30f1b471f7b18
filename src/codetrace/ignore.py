"""Glob-style ignore rules, compiled once into a single matcher.

Pattern syntax:
    *       any run of characters except ``/``
    ?       one character except ``/``
    **      any run of characters including ``/``
    **/     zero or more leading directories

A pattern matches at any directory boundary of the workspace-relative path
unless it starts with ``/``, which anchors it to the workspace root. A
pattern that matches a directory also matches everything below it, so
``dist`` and ``dist/**`` ignore the same files.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from .logging_config import get_logger

logger = get_logger(__name__)


def glob_to_regex(pattern: str) -> str:
    """Translate one glob pattern into an (unanchored) regex fragment."""
    anchored = pattern.startswith("/")
    body = pattern.lstrip("/").rstrip("/")

    parts: list[str] = []
    i = 0
    while i < len(body):
        if body.startswith("**/", i):
            parts.append("(?:.*/)?")
            i += 3
        elif body.startswith("**", i):
            parts.append(".*")
            i += 2
        elif body[i] == "*":
            parts.append("[^/]*")
            i += 1
        elif body[i] == "?":
            parts.append("[^/]")
            i += 1
        else:
            parts.append(re.escape(body[i]))
            i += 1

    prefix = "^" if anchored else "(?:^|/)"
    return f"{prefix}{''.join(parts)}(?:/|$)"


class IgnoreMatcher:
    """Precompiled set of ignore patterns.

    Built once per configuration load; ``matches`` does a single regex
    search per path regardless of how many patterns are configured.
    """

    def __init__(self, patterns: Iterable[str] = ()) -> None:
        self.patterns = tuple(p.strip() for p in patterns if p and p.strip())
        fragments = [f"(?:{glob_to_regex(p)})" for p in self.patterns]
        self._regex = re.compile("|".join(fragments)) if fragments else None
        logger.debug("Compiled %d ignore pattern(s)", len(self.patterns))

    def matches(self, relative_path: str) -> bool:
        """True when the forward-slash relative path is ignored."""
        if self._regex is None:
            return False
        return self._regex.search(relative_path.replace("\\", "/")) is not None

    __call__ = matches

    def __len__(self) -> int:
        return len(self.patterns)

    def __repr__(self) -> str:
        return f"IgnoreMatcher({list(self.patterns)!r})"
