"""Aggregate trade volumes into the 24 hourly positions of a power day.

A power day starts at 23:00 local time on the previous calendar day, so
period 1 is 23:00, period 2 is 00:00 and period 24 is 22:00::

    >>> period_to_local_time(1)
    datetime.time(23, 0)
    >>> period_to_local_time(24)
    datetime.time(22, 0)
"""

from __future__ import annotations

from datetime import time
from typing import Iterable

import structlog

from power_position.core.models import PERIODS_PER_DAY, PowerPosition, Trade

logger = structlog.get_logger(__name__)


def period_to_local_time(period: int) -> time:
    """Convert a period number (1-24) to the local time it starts at.

    Raises:
        ValueError: If ``period`` is outside 1..24.
    """
    if period < 1 or period > PERIODS_PER_DAY:
        raise ValueError("Period must be between 1 and 24")
    return time((22 + period) % 24, 0)


def aggregate_positions(trades: Iterable[Trade]) -> list[PowerPosition]:
    """Sum volumes per period across ``trades``.

    Args:
        trades: Trades of a single power day. May be empty.

    Returns:
        Exactly 24 positions in period order (23:00 first), volumes rounded
        to 2 decimal places. No trades gives 24 zero-volume positions.
    """
    totals = [0.0] * PERIODS_PER_DAY
    trade_count = 0
    for trade in trades:
        trade_count += 1
        for period in range(1, PERIODS_PER_DAY + 1):
            totals[period - 1] += trade.volume(period)

    positions = [
        PowerPosition(
            period=period,
            local_time=period_to_local_time(period),
            # + 0.0 turns a rounded -0.0 into 0.0
            volume=round(totals[period - 1], 2) + 0.0,
        )
        for period in range(1, PERIODS_PER_DAY + 1)
    ]

    logger.debug(
        "positions_aggregated",
        trade_count=trade_count,
        position_count=len(positions),
    )
    return positions
