"""Mock trade source for running the service without a PowerDay API.

Generates a small, reproducible set of trades for any requested power day:
3-5 trades per call, each with 24 volumes between 50 and 500 MW. The
generator is seeded once per connector, so a given process produces the same
sequence of trades on every run.
"""

from __future__ import annotations

import random
from datetime import date
from typing import Any

from power_position.connectors.base import BaseConnector
from power_position.core.models import PERIODS_PER_DAY, Trade


class MockPowerDayConnector(BaseConnector):
    """Offline stand-in for :class:`PowerDayConnector`.

    Usage::

        async with MockPowerDayConnector() as conn:
            trades = await conn.get_trades(date(2024, 1, 16))
    """

    SOURCE_NAME: str = "MOCK_POWER_DAY"
    SEED: int = 42

    def __init__(self, seed: int | None = None, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._random = random.Random(self.SEED if seed is None else seed)

    async def __aenter__(self) -> "MockPowerDayConnector":
        # No HTTP client needed
        return self

    async def __aexit__(self, *exc: Any) -> None:
        return None

    async def get_trades(self, power_day: date) -> list[Trade]:
        """Generate 3-5 sample trades for ``power_day``."""
        trade_count = self._random.randint(3, 5)
        trades = []
        for i in range(trade_count):
            periods = tuple(
                round(self._random.random() * 450 + 50, 2)
                for _ in range(PERIODS_PER_DAY)
            )
            trades.append(
                Trade(
                    trade_id=f"TRADE-{power_day:%Y%m%d}-{i + 1:03d}",
                    power_day=power_day,
                    periods=periods,
                )
            )

        self.log.info(
            "mock_trades_generated",
            power_day=power_day.isoformat(),
            trade_count=trade_count,
        )
        return trades
