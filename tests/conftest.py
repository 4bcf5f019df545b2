"""Root pytest configuration and shared fixtures.

Provides common test fixtures used across all test modules:
- london: the Europe/London zone used by the default settings
- job_queue: a JobQueue rooted in a fresh tmp_path
- make_trade: callable building a Trade with uniform or explicit volumes
- fake_source: in-memory TradeSource recording every fetch
- fixed_clock: callable returning a fixed aware "now" (2024-01-15 23:05 London)
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Callable
from zoneinfo import ZoneInfo

import pytest

from power_position.connectors.base import FetchError
from power_position.core.models import PERIODS_PER_DAY, Trade
from power_position.jobs.job_queue import JobQueue

LONDON = ZoneInfo("Europe/London")


class FakeTradeSource:
    """TradeSource double.

    Attributes:
        trades: Trades returned per power day (default: none).
        failures: Power days whose fetch raises FetchError.
        calls: Every power day requested, in order.
    """

    def __init__(self) -> None:
        self.trades: dict[date, list[Trade]] = {}
        self.failures: set[date] = set()
        self.calls: list[date] = []

    async def get_trades(self, power_day: date) -> list[Trade]:
        self.calls.append(power_day)
        if power_day in self.failures:
            raise FetchError(f"API unavailable for {power_day}")
        return list(self.trades.get(power_day, []))


@pytest.fixture
def london() -> ZoneInfo:
    return LONDON


@pytest.fixture
def job_queue(tmp_path) -> JobQueue:
    """Return a JobQueue rooted at tmp_path."""
    return JobQueue(tmp_path)


@pytest.fixture
def make_trade() -> Callable[..., Trade]:
    """Return a Trade factory.

    Usage::

        def test_something(make_trade):
            trade = make_trade(1.0)                  # 24 x 1.0
            trade = make_trade(periods=[...24...])   # explicit volumes
    """
    def _make(
        volume: float = 0.0,
        periods: list[float] | None = None,
        power_day: date = date(2024, 1, 16),
        trade_id: str = "T-1",
    ) -> Trade:
        values = periods if periods is not None else [volume] * PERIODS_PER_DAY
        return Trade(trade_id=trade_id, power_day=power_day, periods=tuple(values))
    return _make


@pytest.fixture
def fake_source() -> FakeTradeSource:
    return FakeTradeSource()


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    """Clock pinned to 2024-01-15 23:05 London (next power day 2024-01-16)."""
    now = datetime(2024, 1, 15, 23, 5, tzinfo=LONDON)

    def _clock() -> datetime:
        return now
    return _clock


@pytest.fixture
def read_csv() -> Any:
    """Return a callable reading a CSV extract as a list of lines."""
    def _read(path) -> list[str]:
        with open(path, "r", encoding="utf-8", newline="") as f:
            return f.read().split("\n")
    return _read
