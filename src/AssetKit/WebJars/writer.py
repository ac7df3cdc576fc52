"""Best-effort single-writer file creation guarded by advisory locks.

Parallel build steps that depend on the same resource artifact may try to
materialise the same cache file at the same time.  :class:`SafeFileWriter`
takes a non-blocking exclusive lock on the target handle; whoever gets the
lock writes the file and everyone else skips silently.  This only prevents
two writers from holding the lock together: it does not wait for, or verify,
a writer that is still in progress.
"""

from __future__ import annotations

import enum
import logging
import os
import shutil
from pathlib import Path
from typing import BinaryIO, Union

from .sources import ByteSource, BytesSource

try:  # pragma: no cover - POSIX only
    import fcntl  # type: ignore
except ImportError:  # pragma: no cover - Windows fallback
    fcntl = None  # type: ignore[assignment]

try:  # pragma: no cover - Windows only
    import msvcrt  # type: ignore
except ImportError:  # pragma: no cover - POSIX fallback
    msvcrt = None  # type: ignore[assignment]

__all__ = ["WriteOutcome", "SafeFileWriter", "update_file"]

LOGGER = logging.getLogger("AssetKit.WebJars")

Payload = Union[ByteSource, BinaryIO, bytes, bytearray]


class WriteOutcome(str, enum.Enum):
    WRITTEN = "written"
    SKIPPED = "skipped"


class SafeFileWriter:
    """Write payloads to disk under a non-blocking exclusive advisory lock."""

    chunk_size = 1 << 16

    def _try_lock(self, handle: BinaryIO) -> bool:
        if fcntl is not None:
            try:
                fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)  # type: ignore[attr-defined]
            except BlockingIOError:
                return False
            return True
        if msvcrt is not None:
            handle.seek(0)
            try:
                msvcrt.locking(handle.fileno(), msvcrt.LK_NBLCK, 1)  # type: ignore[attr-defined]
            except OSError:
                return False
            return True
        return True

    def _unlock(self, handle: BinaryIO) -> None:
        if fcntl is not None:
            fcntl.flock(handle.fileno(), fcntl.LOCK_UN)  # type: ignore[attr-defined]
        elif msvcrt is not None:
            handle.seek(0)
            msvcrt.locking(handle.fileno(), msvcrt.LK_UNLCK, 1)  # type: ignore[attr-defined]

    def _copy(self, payload: Payload, handle: BinaryIO) -> None:
        if isinstance(payload, (bytes, bytearray)):
            handle.write(payload)
        elif isinstance(payload, ByteSource):
            with payload.open() as source:
                shutil.copyfileobj(source, handle, self.chunk_size)
        else:
            shutil.copyfileobj(payload, handle, self.chunk_size)

    def write(self, payload: Payload, target: Path) -> WriteOutcome:
        """Write ``payload`` to ``target`` unless another writer holds the lock.

        The file is created if needed but only truncated once the lock is held,
        so a skipped write leaves the concurrent owner's bytes untouched.
        """

        target = Path(target)
        target.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(target, os.O_WRONLY | os.O_CREAT | getattr(os, "O_BINARY", 0), 0o644)
        with os.fdopen(fd, "wb") as handle:
            if not self._try_lock(handle):
                LOGGER.debug(
                    "skipped write; target locked by another writer",
                    extra={"stage": "write", "target": str(target)},
                )
                return WriteOutcome.SKIPPED
            try:
                handle.truncate(0)
                handle.seek(0)
                self._copy(payload, handle)
                handle.flush()
            finally:
                self._unlock(handle)
        return WriteOutcome.WRITTEN


def update_file(target: Path, content: bytes, *, writer: SafeFileWriter | None = None) -> WriteOutcome:
    """Replace the full content of ``target`` through the safe writer."""

    return (writer or SafeFileWriter()).write(BytesSource(bytes(content), label=str(target)), target)
