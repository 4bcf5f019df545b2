"""Trade source connectors package.

Re-exports the TradeSource protocol, BaseConnector ABC, exception hierarchy
and the concrete connectors:

    PowerDayConnector (PowerDay REST API)
    MockPowerDayConnector (seeded offline generator)
"""

from .base import (
    BaseConnector,
    ConnectorError,
    DataParsingError,
    FetchError,
    RateLimitError,
    TradeSource,
)
from .mock_power_day import MockPowerDayConnector
from .power_day import PowerDayConnector

__all__ = [
    # Base
    "BaseConnector",
    "ConnectorError",
    "DataParsingError",
    "FetchError",
    "RateLimitError",
    "TradeSource",
    # Connectors
    "MockPowerDayConnector",
    "PowerDayConnector",
]
