"""Per-path write locks, the declared-name registry and atomic file replacement.

Every export locks exactly one output path while it reads, merges and
rewrites that file.  The lock has two layers:

* a ``threading.Lock`` per resolved path, shared by every exporter in the
  process, so threads queue without touching the disk;
* a ``<file>.lock`` sentinel created with ``O_CREAT | O_EXCL`` so separate
  processes serialize too.

Both layers give up after the configured timeout with an
:class:`~tsbind.errors.ExportIOError`; nothing waits forever.

:data:`name_registry` is process-wide as well: it remembers which type owns
each declared name, whichever exporter wrote it.
"""

from __future__ import annotations

import os
import stat
import threading
import time
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from .errors import CollisionError, ExportIOError

_registry_guard = threading.Lock()
_thread_locks: dict[str, threading.Lock] = {}


def _thread_lock_for(key: str) -> threading.Lock:
    with _registry_guard:
        lock = _thread_locks.get(key)
        if lock is None:
            lock = _thread_locks[key] = threading.Lock()
        return lock


class NameRegistry:
    """Owner of every declared TypeScript name exported in this process."""

    def __init__(self) -> None:
        self._owners: dict[str, tuple[str, Path]] = {}
        self._guard = threading.Lock()

    def claim(self, name: str, type_id: str, path: Path) -> None:
        """Record *type_id* as the owner of *name*.

        Raises:
            CollisionError: If a different type already owns *name*.
        """
        with self._guard:
            owner = self._owners.setdefault(name, (type_id, path))
        if owner[0] != type_id:
            raise CollisionError(name, owner[1].as_posix(), path.as_posix())

    def clear(self) -> None:
        with self._guard:
            self._owners.clear()


name_registry = NameRegistry()


class PathLock:
    """Scoped, bounded-wait lock for a single output path."""

    def __init__(self, timeout: float = 10.0, poll_interval: float = 0.01) -> None:
        self.timeout = timeout
        self.poll_interval = poll_interval

    @contextmanager
    def hold(self, path: str | Path) -> Iterator[None]:
        """Hold the lock for *path* for the duration of the ``with`` block.

        Raises:
            ExportIOError: If the lock cannot be acquired within ``timeout``.
        """
        target = Path(os.path.abspath(path))
        deadline = time.monotonic() + self.timeout

        thread_lock = _thread_lock_for(str(target))
        if not thread_lock.acquire(timeout=self.timeout):
            raise ExportIOError(target, "Timed out waiting for the write lock")
        try:
            sentinel = target.with_name(target.name + ".lock")
            fd = self._acquire_sentinel(sentinel, deadline)
            try:
                yield
            finally:
                os.close(fd)
                sentinel.unlink(missing_ok=True)
        finally:
            thread_lock.release()

    def _acquire_sentinel(self, sentinel: Path, deadline: float) -> int:
        delay = self.poll_interval
        while True:
            try:
                return os.open(sentinel, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
            except FileExistsError:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise ExportIOError(
                        sentinel, "Timed out waiting for another process to release the lock file"
                    ) from None
                time.sleep(min(delay, remaining))
                delay = min(delay * 2, 0.5)
            except OSError as exc:
                raise ExportIOError(sentinel, f"Cannot create lock file ({exc.strerror})") from exc


def write_atomic(path: str | Path, content: str) -> None:
    """Write *content* to a temp file next to *path* and rename it into place.

    Readers never observe a partially written file.  A replaced file keeps
    its permission bits; a new one gets the usual umask-filtered ``0o666``.
    """
    target = Path(path)
    tmp_path = target.with_name(f".{target.name}.{uuid.uuid4().hex}.tmp")
    fd = os.open(tmp_path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o666)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as fh:
            fh.write(content)
        if target.exists():
            os.chmod(tmp_path, stat.S_IMODE(target.stat().st_mode))
        os.replace(tmp_path, target)
    finally:
        tmp_path.unlink(missing_ok=True)
