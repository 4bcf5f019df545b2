"""File-based durable work queue for power days.

State lives in three directories under a root so it survives restarts:

    <root>/pending/<YYYYMMDD>.job    registered, not yet complete
    <root>/done/<YYYYMMDD>.job       complete; terminal
    <root>/out/PowerPosition_<YYYYMMDD>.csv

Markers are small text files holding audit timestamps. Transitions write the
new marker before removing the old one, so a crash in between leaves both
markers present (done wins) rather than neither. The output CSV alone is also
accepted as proof that a day is complete.
"""

from __future__ import annotations

import contextlib
import os
import tempfile
from datetime import date, datetime
from pathlib import Path
from typing import Callable

import structlog

from power_position.core.models import day_key, parse_day_key, utc_now

logger = structlog.get_logger(__name__)

PENDING_DIR = "pending"
DONE_DIR = "done"
OUTPUT_DIR = "out"
JOB_SUFFIX = ".job"
OUTPUT_PREFIX = "PowerPosition_"


class QueueError(Exception):
    """Raised when a queue marker cannot be read or written."""


class QueueInitError(QueueError):
    """Raised when the queue directories cannot be created."""


class JobQueue:
    """Durable pending/done queue keyed by power day.

    Args:
        root: Directory holding the ``pending``, ``done`` and ``out``
            partitions. Created if missing.
        clock: Returns the current UTC time for marker timestamps.

    Raises:
        QueueInitError: If any partition directory cannot be created.
    """

    def __init__(
        self,
        root: str | Path,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.root = Path(root).resolve()
        self.pending_dir = self.root / PENDING_DIR
        self.done_dir = self.root / DONE_DIR
        self.output_dir = self.root / OUTPUT_DIR
        self._clock = clock

        for directory in (self.pending_dir, self.done_dir, self.output_dir):
            try:
                directory.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise QueueInitError(
                    f"Cannot create queue directory {directory}: {exc}"
                ) from exc

        logger.debug(
            "queue_directories_ready",
            pending=str(self.pending_dir),
            done=str(self.done_dir),
            out=str(self.output_dir),
        )

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    def pending_path(self, power_day: date) -> Path:
        return self.pending_dir / f"{day_key(power_day)}{JOB_SUFFIX}"

    def done_path(self, power_day: date) -> Path:
        return self.done_dir / f"{day_key(power_day)}{JOB_SUFFIX}"

    def output_path(self, power_day: date) -> Path:
        """Final location of the CSV extract for ``power_day``."""
        return self.output_dir / f"{OUTPUT_PREFIX}{day_key(power_day)}.csv"

    # ------------------------------------------------------------------
    # State queries
    # ------------------------------------------------------------------

    def is_done(self, power_day: date) -> bool:
        return self.done_path(power_day).exists()

    def is_pending(self, power_day: date) -> bool:
        return self.pending_path(power_day).exists()

    def output_exists(self, power_day: date) -> bool:
        return self.output_path(power_day).exists()

    def pending_days(self) -> list[date]:
        """Return all pending power days, oldest first.

        Job files whose names are not ``YYYYMMDD.job`` are logged and skipped.

        Raises:
            QueueError: If the pending directory cannot be listed.
        """
        try:
            job_files = sorted(self.pending_dir.glob(f"*{JOB_SUFFIX}"))
        except OSError as exc:
            raise QueueError(f"Cannot list {self.pending_dir}: {exc}") from exc

        power_days: list[date] = []
        for job_file in job_files:
            try:
                power_days.append(parse_day_key(job_file.stem))
            except ValueError:
                logger.warning("invalid_job_file", file=str(job_file))

        logger.debug("pending_days_found", count=len(power_days))
        return power_days

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def ensure_pending(self, power_day: date) -> bool:
        """Register ``power_day`` as pending unless it is already done.

        An existing pending marker is left untouched so its creation time
        survives repeated calls.

        Returns:
            True if a new pending marker was created.

        Raises:
            QueueError: If the marker cannot be written.
        """
        if self.is_done(power_day):
            logger.debug("power_day_already_done", power_day=day_key(power_day))
            return False

        pending_file = self.pending_path(power_day)
        try:
            with pending_file.open("x", encoding="utf-8") as f:
                f.write(f"Created: {self._clock().isoformat()}\n")
        except FileExistsError:
            return False
        except OSError as exc:
            raise QueueError(
                f"Cannot create pending job {pending_file}: {exc}"
            ) from exc

        logger.info("pending_job_created", power_day=day_key(power_day))
        return True

    def mark_done(self, power_day: date) -> None:
        """Move ``power_day`` to the done partition.

        The done marker keeps the pending marker's content and appends a
        completion timestamp. If the day is already done only a leftover
        pending marker is removed. If neither marker exists (the output was
        produced by a run that crashed before any bookkeeping) a done marker
        is created directly.

        Raises:
            QueueError: If a marker cannot be read, written or removed.
        """
        key = day_key(power_day)
        pending_file = self.pending_path(power_day)
        done_file = self.done_path(power_day)

        try:
            if done_file.exists():
                if pending_file.exists():
                    pending_file.unlink(missing_ok=True)
                    logger.info("stale_pending_job_removed", power_day=key)
                return

            completed = f"Completed: {self._clock().isoformat()}\n"
            if pending_file.exists():
                created = pending_file.read_text(encoding="utf-8")
                if created and not created.endswith("\n"):
                    created += "\n"
                self._write_marker(done_file, created + completed)
                pending_file.unlink(missing_ok=True)
                logger.info("power_day_marked_done", power_day=key)
            else:
                self._write_marker(done_file, completed)
                logger.info("done_marker_created", power_day=key)
        except OSError as exc:
            raise QueueError(f"Cannot mark {key} as done: {exc}") from exc

    @staticmethod
    def _write_marker(path: Path, content: str) -> None:
        """Write ``content`` to ``path`` via a temp file in the same directory."""
        fd, tmp_name = tempfile.mkstemp(prefix=".tmp_", suffix=".tmp", dir=path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            with contextlib.suppress(OSError):
                os.unlink(tmp_name)
            raise
