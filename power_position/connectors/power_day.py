"""PowerDay API connector -- trades per power day.

Fetches all trades booked against a power day from the PowerDay REST API.

Key design decisions:
- Endpoint: GET /trades?powerDay=YYYY-MM-DD (ISO date)
- Response: JSON array of {"tradeId", "powerDay", "periods": [24 volumes]}
- Any transport, status or payload problem surfaces as a ConnectorError so
  the caller can keep the day pending and retry later
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from power_position.connectors.base import BaseConnector, DataParsingError
from power_position.core.models import PERIODS_PER_DAY, Trade


class PowerDayConnector(BaseConnector):
    """Connector for the PowerDay trades API.

    Usage::

        async with PowerDayConnector("https://powerday.internal") as conn:
            trades = await conn.get_trades(date(2024, 1, 16))
    """

    SOURCE_NAME: str = "POWER_DAY_API"
    TRADES_PATH: str = "/trades"

    async def get_trades(self, power_day: date) -> list[Trade]:
        """Fetch and parse the trades for ``power_day``.

        Args:
            power_day: The power day to retrieve trades for.

        Returns:
            Parsed trades, possibly empty.

        Raises:
            FetchError: If the request fails after all retries.
            RateLimitError: If the API keeps answering HTTP 429.
            DataParsingError: If the response is not a valid trade list.
        """
        day_str = power_day.isoformat()
        self.log.info("fetching_trades", power_day=day_str)

        response = await self._request(
            "GET", self.TRADES_PATH, params={"powerDay": day_str}
        )
        try:
            payload = response.json()
        except ValueError as exc:
            raise DataParsingError(
                f"{self.SOURCE_NAME}: response for {day_str} is not JSON"
            ) from exc

        if payload is None:
            payload = []
        if not isinstance(payload, list):
            raise DataParsingError(
                f"{self.SOURCE_NAME}: expected a JSON array for {day_str}, "
                f"got {type(payload).__name__}"
            )

        trades = [self._parse_trade(item, power_day) for item in payload]
        self.log.info("trades_fetched", power_day=day_str, trade_count=len(trades))
        return trades

    def _parse_trade(self, item: Any, power_day: date) -> Trade:
        """Convert one API item into a Trade.

        ``powerDay`` may be a date or a date-time string; if absent the
        requested day is assumed.
        """
        if not isinstance(item, dict):
            raise DataParsingError(f"{self.SOURCE_NAME}: trade item is not an object")

        try:
            periods = item["periods"]
            trade_id = str(item.get("tradeId", ""))
        except KeyError as exc:
            raise DataParsingError(
                f"{self.SOURCE_NAME}: trade item missing field {exc}"
            ) from exc

        if not isinstance(periods, list) or len(periods) != PERIODS_PER_DAY:
            raise DataParsingError(
                f"{self.SOURCE_NAME}: trade {trade_id!r} must carry "
                f"{PERIODS_PER_DAY} period volumes"
            )

        try:
            volumes = tuple(float(v) for v in periods)
        except (TypeError, ValueError) as exc:
            raise DataParsingError(
                f"{self.SOURCE_NAME}: trade {trade_id!r} has a non-numeric volume"
            ) from exc

        raw_day = item.get("powerDay")
        if raw_day:
            try:
                trade_day = datetime.fromisoformat(str(raw_day)[:10]).date()
            except ValueError as exc:
                raise DataParsingError(
                    f"{self.SOURCE_NAME}: trade {trade_id!r} has invalid "
                    f"powerDay {raw_day!r}"
                ) from exc
        else:
            trade_day = power_day

        return Trade(trade_id=trade_id, power_day=trade_day, periods=volumes)
