"""
Module: core.utils.file_locking

Purpose:
    Cross-process file locking for state files that several engine
    processes may share (session history). Uses portalocker for Mac,
    Windows, and Linux compatibility.

Key Functions:
    - locked_file: Context manager for locked file access
    - locked_read_json: Read a JSON document under a shared lock
    - locked_read_modify_write_json: Read-modify-write JSON with lock

Dependencies:
    - portalocker: Cross-platform file locking

Used By:
    - engine.session.history.SessionHistory
"""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Dict, Generator

import portalocker

logger = logging.getLogger(__name__)


@contextmanager
def locked_file(
    path: Path,
    mode: str = 'r',
    lock_type: int = portalocker.LOCK_EX,
) -> Generator:
    """
    Context manager for cross-platform locked file access.

    Args:
        path: Path to file.
        mode: File open mode ('r', 'w', 'a', etc.).
        lock_type: Lock type (LOCK_EX for exclusive, LOCK_SH for shared).

    Yields:
        Open file handle with lock held.

    Example:
        >>> with locked_file(history_path, 'r', portalocker.LOCK_SH) as f:
        ...     data = f.read()
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    if 'r' in mode and not path.exists():
        path.touch()

    with open(path, mode, encoding='utf-8') as f:
        portalocker.lock(f, lock_type)
        try:
            yield f
        finally:
            portalocker.unlock(f)


def locked_read_json(
    path: Path,
    default: Callable[[], Dict[str, Any]] = dict,
) -> Dict[str, Any]:
    """
    Read a JSON document while holding a shared lock.

    Args:
        path: Path to JSON file.
        default: Factory used when the file is missing or empty.

    Returns:
        Parsed document.

    Raises:
        ValueError: If the file holds invalid JSON.
    """
    if not path.exists():
        return default()

    with locked_file(path, 'r', portalocker.LOCK_SH) as f:
        content = f.read()

    if not content.strip():
        return default()
    try:
        return json.loads(content)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {path}: {e}") from e


def locked_read_modify_write_json(
    path: Path,
    modifier: Callable[[Dict[str, Any]], Dict[str, Any]],
    default: Callable[[], Dict[str, Any]] = dict,
) -> Dict[str, Any]:
    """
    Read JSON, apply modifier, write back - all with exclusive lock.

    Used to merge session history written by concurrent engines.

    Args:
        path: Path to JSON file.
        modifier: Function that takes existing data, returns modified data.
        default: Factory for default data if file doesn't exist.

    Returns:
        The modified data that was written.

    Example:
        >>> def append_session(existing):
        ...     existing.setdefault('sessions', []).insert(0, summary.to_dict())
        ...     return existing
        >>> locked_read_modify_write_json(history_path, append_session)
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    if not path.exists():
        path.write_text(json.dumps(default(), indent=2), encoding='utf-8')

    with open(path, 'r+', encoding='utf-8') as f:
        portalocker.lock(f, portalocker.LOCK_EX)
        try:
            f.seek(0)
            content = f.read()
            existing = json.loads(content) if content.strip() else default()

            modified = modifier(existing)

            f.seek(0)
            f.truncate()
            json.dump(modified, f, indent=2, ensure_ascii=False)

            logger.debug(f"Rewrote {path.name} under exclusive lock")
            return modified
        finally:
            portalocker.unlock(f)
