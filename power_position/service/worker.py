"""Long-running service loop.

Takes the single-instance lock, drains the queue once to catch up on any
missed days, then sleeps until the configured daily run time and drains
again, until shutdown is requested. The wait is the only place the loop
idles, and a shutdown request ends it immediately.
"""

from __future__ import annotations

import asyncio
from datetime import timedelta
from pathlib import Path

import structlog

from power_position.connectors.base import TradeSource
from power_position.core.config import Settings
from power_position.jobs.job_queue import JobQueue, QueueError
from power_position.pipeline.job_processor import DrainResult, JobProcessor
from power_position.positions.csv_writer import CsvPositionWriter
from power_position.service.instance_lock import LOCK_FILE_NAME, InstanceLock
from power_position.service.scheduler import Scheduler

logger = structlog.get_logger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1


class PositionWorker:
    """Schedule and run daily extractions for one queue root.

    Args:
        settings: Service configuration.
        source: Trade source used for every drain.
        scheduler: Daily schedule; built from ``settings`` if omitted.
        lock: Single-instance lock; ``<root>/.power_position.lock`` if omitted.
        writer: CSV writer passed to the job processor.
    """

    def __init__(
        self,
        settings: Settings,
        source: TradeSource,
        scheduler: Scheduler | None = None,
        lock: InstanceLock | None = None,
        writer: CsvPositionWriter | None = None,
    ) -> None:
        self.settings = settings
        self.source = source
        self.root = Path(settings.output_directory).resolve()
        self.scheduler = scheduler or Scheduler(
            settings.get_run_time(), settings.get_time_zone()
        )
        self.lock = lock or InstanceLock(self.root / LOCK_FILE_NAME)
        self.writer = writer

    async def run(self, shutdown: asyncio.Event, once: bool = False) -> int:
        """Run until ``shutdown`` is set.

        Args:
            shutdown: Event set by signal handlers to stop the service.
            once: Only run the startup catch-up drain, then return.

        Returns:
            Process exit code. ``EXIT_OK`` when another instance holds the
            lock; in ``once`` mode ``EXIT_FAILURE`` if the drain stopped on a
            failed day or a queue error.

        Raises:
            QueueInitError: If the queue directories cannot be created.
        """
        logger.info(
            "service_starting",
            run_time=self.scheduler.run_time.strftime("%H:%M"),
            time_zone=str(self.scheduler.tz),
            root=str(self.root),
        )

        if not self.lock.acquire():
            logger.warning("another_instance_running", lock=str(self.lock.path))
            return EXIT_OK

        try:
            queue = JobQueue(self.root)
            processor = JobProcessor(
                self.source,
                queue,
                self.scheduler.next_power_day,
                writer=self.writer,
            )

            logger.info("startup_catch_up")
            result = await self._drain(processor, shutdown)
            if once:
                return EXIT_OK if result.succeeded else EXIT_FAILURE

            while not shutdown.is_set():
                delay = self.scheduler.delay_until_next_run()
                if await self._wait_for_shutdown(shutdown, delay):
                    break
                await self._drain(processor, shutdown)
        finally:
            self.lock.release()
            logger.info("service_stopping")

        return EXIT_OK

    async def _drain(self, processor: JobProcessor, shutdown: asyncio.Event) -> DrainResult:
        try:
            result = await processor.execute(shutdown)
        except (QueueError, OSError) as exc:
            # Listing or probing the queue failed; the loop retries at the next run
            logger.error(
                "extraction_run_failed",
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return DrainResult(error=str(exc))
        if result.failed_day is not None:
            logger.warning(
                "retry_at_next_run",
                failed_day=result.failed_day.isoformat(),
            )
        return result

    @staticmethod
    async def _wait_for_shutdown(shutdown: asyncio.Event, delay: timedelta) -> bool:
        """Sleep for ``delay``; return True if shutdown was requested meanwhile."""
        logger.debug("waiting_for_next_run", delay=str(delay))
        try:
            await asyncio.wait_for(shutdown.wait(), timeout=delay.total_seconds())
        except asyncio.TimeoutError:
            return False
        return True
