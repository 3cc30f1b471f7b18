"""
Safe file operations for CodeTrace.

Blocking filesystem helpers used by the event store, the save watcher and
the markdown exporter. Every OS-level failure surfaces as a
``PersistenceError`` naming the path and the operation.
"""

import os
import tempfile
from pathlib import Path
from typing import Optional

from .exceptions import PersistenceError


def ensure_directory(directory: Path) -> Path:
    """Create ``directory`` (and parents) if needed. Idempotent."""
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise PersistenceError(directory, "create", str(e))
    return directory


def safe_read_file(
    filepath: Path,
    max_bytes: Optional[int] = None,
    encoding: str = "utf-8",
    errors: str = "replace",
) -> str:
    """
    Read a text file.

    Args:
        filepath: File to read
        max_bytes: Refuse files larger than this (None = no limit)
        encoding: Text encoding
        errors: How to handle encoding errors

    Returns:
        File contents as string

    Raises:
        PersistenceError: If the file cannot be read or is too large
    """
    try:
        if max_bytes is not None:
            size = filepath.stat().st_size
            if size > max_bytes:
                raise PersistenceError(
                    filepath, "read", f"{size} bytes exceeds limit of {max_bytes}"
                )
        with open(filepath, encoding=encoding, errors=errors) as f:
            return f.read()
    except UnicodeDecodeError as e:
        raise PersistenceError(filepath, "read", f"Encoding error: {e}")
    except OSError as e:
        raise PersistenceError(filepath, "read", f"OS error: {e}")


def safe_write_file(filepath: Path, content: str, encoding: str = "utf-8") -> None:
    """
    Write a text file atomically.

    The content goes to a temporary file in the same directory which then
    replaces ``filepath``, so readers never observe a half-written document.

    Raises:
        PersistenceError: If the file cannot be written
    """
    ensure_directory(filepath.parent)

    tmp_name: Optional[str] = None
    try:
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{filepath.name}.", suffix=".tmp", dir=str(filepath.parent)
        )
        with os.fdopen(fd, "w", encoding=encoding) as f:
            f.write(content)
        os.replace(tmp_name, filepath)
        tmp_name = None
    except (OSError, ValueError) as e:
        # ValueError covers text the encoding cannot represent
        raise PersistenceError(filepath, "write", str(e))
    finally:
        if tmp_name is not None:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass


def safe_delete_file(filepath: Path) -> bool:
    """
    Delete a file.

    Returns:
        True if the file was removed, False if it did not exist

    Raises:
        PersistenceError: If the file exists but cannot be removed
    """
    try:
        filepath.unlink()
        return True
    except FileNotFoundError:
        return False
    except OSError as e:
        raise PersistenceError(filepath, "delete", str(e))


def list_file_names(directory: Path, prefix: str = "", suffix: str = "") -> list[str]:
    """
    Sorted names of regular files in ``directory`` matching prefix/suffix.

    A missing directory yields an empty list.

    Raises:
        PersistenceError: If the directory exists but cannot be listed
    """
    try:
        with os.scandir(directory) as entries:
            names = [
                entry.name
                for entry in entries
                if entry.is_file()
                and entry.name.startswith(prefix)
                and entry.name.endswith(suffix)
            ]
    except FileNotFoundError:
        return []
    except OSError as e:
        raise PersistenceError(directory, "list", str(e))
    return sorted(names)
