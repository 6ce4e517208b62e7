"""Atomic file writes, temp files, and root discovery."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

THREADLINE_DIR = ".threadline"
THREADLINE_ROOT_ENV = "THREADLINE_ROOT"
CONFIG_FILE = "config.json"


def _fsync_directory(path: Path) -> None:
    """Fsync a directory to ensure metadata (e.g. renames) is durable.

    Some platforms (notably macOS HFS+) may not support fsync on directory
    file descriptors, so ``OSError`` is silently ignored.
    """
    try:
        fd = os.open(str(path), os.O_RDONLY)
        try:
            os.fsync(fd)
        finally:
            os.close(fd)
    except OSError:
        pass


def _write_all(fd: int, data: bytes) -> None:
    # os.write() can short-write; loop until all bytes are flushed.
    mv = memoryview(data)
    while mv:
        written = os.write(fd, mv)
        mv = mv[written:]


def atomic_write(path: Path, content: str | bytes) -> None:
    """Write content to path atomically via temp file + fsync + rename.

    Raises:
        FileNotFoundError: If the parent directory does not exist.
    """
    parent = path.parent
    if not parent.is_dir():
        raise FileNotFoundError(f"Parent directory does not exist: {parent}")

    data = content.encode("utf-8") if isinstance(content, str) else content

    fd, tmp_path = tempfile.mkstemp(dir=parent, prefix=".tmp.")
    closed = False
    try:
        _write_all(fd, data)
        os.fsync(fd)
        os.close(fd)
        closed = True
        os.replace(tmp_path, path)
        _fsync_directory(parent)
    except BaseException:
        if not closed:
            os.close(fd)
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def write_temp_file(
    data: bytes,
    *,
    directory: Path | None = None,
    prefix: str = "",
    suffix: str = "",
) -> Path:
    """Write *data* to a new, uniquely named file and return its absolute path.

    The file is created with owner-only permissions.  The caller owns it
    and is responsible for removing it.  A partially written file is
    removed before the error propagates.
    """
    target_dir = (directory or Path(tempfile.gettempdir())).resolve()
    fd, tmp_path = tempfile.mkstemp(dir=target_dir, prefix=prefix, suffix=suffix)
    closed = False
    try:
        _write_all(fd, data)
        os.close(fd)
        closed = True
    except BaseException:
        if not closed:
            os.close(fd)
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise
    return Path(tmp_path)


def ensure_threadline_dir(root: Path) -> Path:
    """Create ``.threadline/`` under *root* and return its path."""
    threadline_dir = root / THREADLINE_DIR
    threadline_dir.mkdir(parents=True, exist_ok=True)
    return threadline_dir


def find_root(start: Path | None = None) -> Path | None:
    """Find the project root containing .threadline/.

    Checks THREADLINE_ROOT env var first. If set, validates it and returns
    the path or raises an error (no fallback to walk-up).

    Otherwise, walks up from start (defaults to cwd) looking for .threadline/.

    Returns:
        Path to the directory containing .threadline/, or None if not found.

    Raises:
        ThreadlineRootError: If THREADLINE_ROOT is set but invalid.
    """
    env_root = os.environ.get(THREADLINE_ROOT_ENV)
    if env_root is not None:
        if not env_root:
            raise ThreadlineRootError("THREADLINE_ROOT is set but empty")
        env_path = Path(env_root)
        if not env_path.is_dir():
            raise ThreadlineRootError(
                f"THREADLINE_ROOT points to a path that does not exist: {env_root}"
            )
        if not (env_path / THREADLINE_DIR).is_dir():
            raise ThreadlineRootError(
                f"THREADLINE_ROOT points to a directory with no {THREADLINE_DIR}/ inside: "
                f"{env_root}"
            )
        return env_path

    current = (start or Path.cwd()).resolve()
    while True:
        if (current / THREADLINE_DIR).is_dir():
            return current
        parent = current.parent
        if parent == current:
            # Reached filesystem root
            return None
        current = parent


class ThreadlineRootError(Exception):
    """Raised when THREADLINE_ROOT env var is set but invalid."""
