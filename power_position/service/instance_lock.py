"""Single-instance guard for the service.

Holds a non-blocking exclusive ``flock`` on a lock file under the queue root.
The kernel drops the lock when the holding process dies, so a crashed
instance never blocks its successor. The holder's PID is written into the
file and cleared on a clean release; a PID found on acquisition therefore
means the previous owner exited without releasing, which is logged as an
abandoned-lock recovery.
"""

from __future__ import annotations

import fcntl
import os
from pathlib import Path

import structlog

logger = structlog.get_logger(__name__)

LOCK_FILE_NAME = ".power_position.lock"


class InstanceLock:
    """Process-wide advisory lock keyed by a file path.

    Usage::

        lock = InstanceLock(root / LOCK_FILE_NAME)
        if not lock.acquire():
            return  # another instance is running
        try:
            ...
        finally:
            lock.release()
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._fd: int | None = None
        self.previous_owner: str | None = None

    @property
    def held(self) -> bool:
        return self._fd is not None

    def acquire(self) -> bool:
        """Try to take the lock without waiting.

        Returns:
            True if this process now holds the lock, False if another live
            process holds it.

        Raises:
            OSError: If the lock file cannot be created or written.
        """
        if self._fd is not None:
            return True

        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(str(self.path), os.O_CREAT | os.O_RDWR, 0o644)
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except OSError:
            os.close(fd)
            logger.debug("instance_lock_busy", path=str(self.path))
            return False

        try:
            previous = os.read(fd, 64).decode("utf-8", errors="replace").strip()
            if previous:
                self.previous_owner = previous
                logger.warning(
                    "abandoned_lock_recovered",
                    path=str(self.path),
                    previous_pid=previous,
                )
            os.ftruncate(fd, 0)
            os.lseek(fd, 0, os.SEEK_SET)
            os.write(fd, f"{os.getpid()}\n".encode("utf-8"))
            os.fsync(fd)
        except OSError:
            fcntl.flock(fd, fcntl.LOCK_UN)
            os.close(fd)
            raise

        self._fd = fd
        logger.debug("instance_lock_acquired", path=str(self.path), pid=os.getpid())
        return True

    def release(self) -> None:
        """Clear the PID and drop the lock. Safe to call when not held."""
        if self._fd is None:
            return
        fd, self._fd = self._fd, None
        try:
            os.ftruncate(fd, 0)
            fcntl.flock(fd, fcntl.LOCK_UN)
            logger.debug("instance_lock_released", path=str(self.path))
        except OSError as exc:
            logger.warning("instance_lock_release_error", error=str(exc))
        finally:
            os.close(fd)
