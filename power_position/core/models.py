"""Domain types shared across the Power Position service.

A power day is identified by the calendar date it is named for and covers the
24 hourly periods from 23:00 on the previous local day to 22:59 on the day
itself. Trades carry one volume per period; positions are the per-period sums
written to the daily extract.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timezone

PERIODS_PER_DAY = 24

# Fixed-width key used in marker and artifact file names; sorts chronologically
DAY_KEY_FORMAT = "%Y%m%d"


def utc_now() -> datetime:
    """Return the current instant as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def day_key(power_day: date) -> str:
    """Render a power day as its ``YYYYMMDD`` file key."""
    return power_day.strftime(DAY_KEY_FORMAT)


def parse_day_key(key: str) -> date:
    """Parse a ``YYYYMMDD`` file key back into a date.

    Raises:
        ValueError: If ``key`` is not exactly eight digits forming a valid date.
    """
    if len(key) != 8 or not key.isdigit():
        raise ValueError(f"Invalid power day key: {key!r}")
    return datetime.strptime(key, DAY_KEY_FORMAT).date()


@dataclass(frozen=True)
class Trade:
    """A single trade with one volume per period of its power day.

    Attributes:
        trade_id: Identifier assigned by the trading system.
        power_day: The power day the trade belongs to.
        periods: Volumes for periods 1..24 (index 0 is period 1).
    """

    trade_id: str
    power_day: date
    periods: tuple[float, ...]

    def __post_init__(self) -> None:
        if len(self.periods) != PERIODS_PER_DAY:
            raise ValueError(
                f"Trade {self.trade_id} has {len(self.periods)} periods, "
                f"expected {PERIODS_PER_DAY}"
            )

    def volume(self, period: int) -> float:
        """Return the volume for ``period`` (1-24)."""
        if period < 1 or period > PERIODS_PER_DAY:
            raise ValueError("Period must be between 1 and 24")
        return self.periods[period - 1]


@dataclass(frozen=True)
class PowerPosition:
    """Aggregated volume for one period of a power day.

    Attributes:
        period: Period index (1-24).
        local_time: Local clock time the period starts at.
        volume: Sum of all trade volumes for the period, rounded to 2 dp.
    """

    period: int
    local_time: time
    volume: float
