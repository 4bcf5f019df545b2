"""Atomic CSV output for power positions.

The extract is written to a temp file next to its final path, fsynced, then
published with ``os.replace``. Readers of the final path therefore see either
no file or a complete file, never a partial one. Leftover temp files after a
failure are harmless since only the final name is consumed.
"""

from __future__ import annotations

import contextlib
import csv
import os
import tempfile
from pathlib import Path
from typing import Sequence

import structlog

from power_position.core.models import PERIODS_PER_DAY, PowerPosition

logger = structlog.get_logger(__name__)

CSV_HEADER = ("Local Time", "Volume")


class OutputWriteError(Exception):
    """Raised when the CSV extract could not be written or published."""


class CsvPositionWriter:
    """Writes the daily ``Local Time,Volume`` extract."""

    def write_atomic(
        self, positions: Sequence[PowerPosition], output_path: str | Path
    ) -> Path:
        """Write ``positions`` to ``output_path`` atomically.

        Args:
            positions: Exactly 24 positions; written in period order.
            output_path: Final location of the extract.

        Returns:
            The published path.

        Raises:
            ValueError: If ``positions`` does not hold 24 entries.
            OutputWriteError: If the temp file cannot be written or published.
        """
        if len(positions) != PERIODS_PER_DAY:
            raise ValueError(
                f"Expected {PERIODS_PER_DAY} positions, got {len(positions)}"
            )

        output_path = Path(output_path)
        try:
            fd, tmp_name = tempfile.mkstemp(
                prefix=".tmp_", suffix=".csv", dir=output_path.parent
            )
        except OSError as exc:
            logger.error("csv_write_failed", output_path=str(output_path), error=str(exc))
            raise OutputWriteError(
                f"Cannot create temp file for {output_path}: {exc}"
            ) from exc

        logger.debug("writing_csv_temp", temp_path=tmp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
                writer = csv.writer(f, lineterminator="\n")
                writer.writerow(CSV_HEADER)
                for position in sorted(positions, key=lambda p: p.period):
                    writer.writerow(
                        [
                            position.local_time.strftime("%H:%M"),
                            f"{position.volume:.2f}",
                        ]
                    )
                f.flush()
                os.fsync(f.fileno())

            os.replace(tmp_name, output_path)
        except OSError as exc:
            logger.error("csv_write_failed", output_path=str(output_path), error=str(exc))
            with contextlib.suppress(OSError):
                os.unlink(tmp_name)
            raise OutputWriteError(f"Cannot write {output_path}: {exc}") from exc

        logger.info("csv_written", output_path=str(output_path))
        return output_path
