"""Drain the power-day queue: fetch -> aggregate -> write -> mark done.

Each run registers the next power day, then walks every pending day oldest
first. A day either reaches done or the run stops at it, so a later day is
never produced while an earlier one is still outstanding. Failed days stay
pending and are retried on the next run.

Per-day transitions:

    pending --(CSV already exists)-------------------------> done
    pending --(fetch ok, CSV written, marker moved)--------> done
    pending --(fetch/write/marker failure)--> pending, stop the run
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from datetime import date
from typing import Callable

import structlog

from power_position.connectors.base import TradeSource
from power_position.jobs.job_queue import JobQueue, QueueError
from power_position.positions.aggregator import aggregate_positions
from power_position.positions.csv_writer import CsvPositionWriter, OutputWriteError

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# DrainResult dataclass
# ---------------------------------------------------------------------------
@dataclass
class DrainResult:
    """Outcome of one drain of the queue.

    Attributes:
        target_day: Power day registered by this run.
        completed: Days moved to done, in processing order.
        failed_day: Day the drain stopped at, if any.
        interrupted: True if shutdown ended the drain early.
        duration_seconds: Wall-clock seconds for the run.
        error: Queue or filesystem error that ended the run, if any.
    """

    target_day: date | None = None
    completed: list[date] = field(default_factory=list)
    failed_day: date | None = None
    interrupted: bool = False
    duration_seconds: float = 0.0
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.failed_day is None and not self.interrupted and self.error is None


# ---------------------------------------------------------------------------
# JobProcessor
# ---------------------------------------------------------------------------
class JobProcessor:
    """Run the daily extraction over the durable queue.

    Args:
        source: Trade source for a power day.
        queue: Durable pending/done queue.
        next_power_day: Returns the power day a run should register.
        writer: CSV writer; a default :class:`CsvPositionWriter` if omitted.
    """

    def __init__(
        self,
        source: TradeSource,
        queue: JobQueue,
        next_power_day: Callable[[], date],
        writer: CsvPositionWriter | None = None,
    ) -> None:
        self.source = source
        self.queue = queue
        self._next_power_day = next_power_day
        self.writer = writer or CsvPositionWriter()

    async def execute(self, shutdown: asyncio.Event | None = None) -> DrainResult:
        """Register the next power day and drain all pending days.

        Args:
            shutdown: When set, no further day is started.

        Returns:
            DrainResult describing what was completed and where it stopped.

        Raises:
            QueueError: If the pending partition cannot be listed.
        """
        t0 = time.monotonic()
        result = DrainResult(target_day=self._next_power_day())
        logger.info("extraction_run_started", target_day=result.target_day.isoformat())

        try:
            self.queue.ensure_pending(result.target_day)
        except QueueError as exc:
            logger.error(
                "pending_job_create_failed",
                power_day=result.target_day.isoformat(),
                error=str(exc),
            )

        pending_days = self.queue.pending_days()
        logger.info("pending_days_to_process", count=len(pending_days))

        for power_day in pending_days:
            if shutdown is not None and shutdown.is_set():
                logger.warning("extraction_run_interrupted", next_day=power_day.isoformat())
                result.interrupted = True
                break

            if not await self.process_power_day(power_day):
                logger.warning(
                    "extraction_run_stopped",
                    power_day=power_day.isoformat(),
                )
                result.failed_day = power_day
                break
            result.completed.append(power_day)

        result.duration_seconds = round(time.monotonic() - t0, 3)
        logger.info(
            "extraction_run_complete",
            completed=len(result.completed),
            failed_day=result.failed_day.isoformat() if result.failed_day else None,
            interrupted=result.interrupted,
            duration=f"{result.duration_seconds:.1f}s",
        )
        return result

    async def process_power_day(self, power_day: date) -> bool:
        """Take one pending day to done.

        Returns:
            True if the day is done, False if the drain should stop.
        """
        day_str = power_day.isoformat()
        log = logger.bind(power_day=day_str)
        log.info("processing_power_day")

        if self.queue.is_done(power_day):
            # Left over from a crash between writing done and removing pending
            return self._mark_done(power_day)

        if self.queue.output_exists(power_day):
            log.info("output_already_exists")
            return self._mark_done(power_day)

        try:
            trades = await self.source.get_trades(power_day)
        except Exception as exc:
            # Every fetch failure is retryable: the day stays pending
            log.error("trade_fetch_failed", error=str(exc), error_type=type(exc).__name__)
            return False

        if not trades:
            log.warning("no_trades_returned")

        positions = aggregate_positions(trades)

        try:
            self.writer.write_atomic(positions, self.queue.output_path(power_day))
        except OutputWriteError as exc:
            log.error("output_write_failed", error=str(exc))
            return False

        if not self._mark_done(power_day):
            return False

        log.info("power_day_processed", trade_count=len(trades))
        return True

    def _mark_done(self, power_day: date) -> bool:
        try:
            self.queue.mark_done(power_day)
        except QueueError as exc:
            logger.error(
                "mark_done_failed",
                power_day=power_day.isoformat(),
                error=str(exc),
            )
            return False
        return True
