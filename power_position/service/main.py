"""Service entry point and composition root.

Builds the settings, trade source, lock and worker, wires SIGINT/SIGTERM to a
shutdown event and runs the worker on an asyncio loop.

Usage::

    power-position                  # run as a long-lived service
    power-position --once           # catch-up drain only, then exit
    power-position --log-level DEBUG
"""

from __future__ import annotations

import argparse
import asyncio
import signal

import structlog

from power_position.connectors import (
    BaseConnector,
    MockPowerDayConnector,
    PowerDayConnector,
)
from power_position.core.config import Settings, settings as default_settings
from power_position.core.utils.logging_config import configure_logging
from power_position.jobs.job_queue import QueueInitError
from power_position.service.worker import EXIT_FAILURE, PositionWorker

logger = structlog.get_logger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments.

    Args:
        argv: Argument list (defaults to sys.argv[1:]).

    Returns:
        Parsed namespace with ``once`` and ``log_level`` attributes.
    """
    parser = argparse.ArgumentParser(
        description="Produce the daily power position extract.",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        default=False,
        help="Process pending power days once and exit instead of scheduling",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Override the configured log level (e.g. DEBUG)",
    )
    return parser.parse_args(argv)


def build_source(settings: Settings) -> BaseConnector:
    """Return the trade source selected by ``settings``."""
    if settings.use_mock_source:
        logger.warning(
            "using_mock_source",
            power_day_api_url=settings.power_day_api_url,
            hint="configure POWER_POSITION_POWER_DAY_API_URL for production",
        )
        return MockPowerDayConnector()
    return PowerDayConnector(
        base_url=settings.power_day_api_url,
        timeout_seconds=settings.fetch_timeout_seconds,
        max_retries=settings.fetch_max_retries,
    )


async def run_service(settings: Settings, once: bool = False) -> int:
    """Run the worker until a shutdown signal arrives."""
    shutdown = asyncio.Event()
    loop = asyncio.get_running_loop()

    def _request_shutdown(sig: signal.Signals) -> None:
        logger.info("shutdown_requested", signal=sig.name)
        shutdown.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _request_shutdown, sig)

    try:
        async with build_source(settings) as source:
            worker = PositionWorker(settings, source)
            return await worker.run(shutdown, once=once)
    finally:
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.remove_signal_handler(sig)


def main(argv: list[str] | None = None, settings: Settings | None = None) -> int:
    """Entry point for the ``power-position`` command.

    Returns:
        Exit code: 0 on clean shutdown, 1 on a fatal error.
    """
    args = parse_args(argv)
    settings = settings or default_settings

    configure_logging(
        args.log_level or settings.log_level,
        log_dir=settings.log_directory if settings.enable_file_log else None,
    )

    try:
        return asyncio.run(run_service(settings, once=args.once))
    except QueueInitError as exc:
        logger.critical("queue_init_failed", error=str(exc))
        return EXIT_FAILURE
    except Exception:
        logger.exception("service_terminated_unexpectedly")
        return EXIT_FAILURE
