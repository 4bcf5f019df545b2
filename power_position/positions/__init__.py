"""Position aggregation and CSV output."""

from .aggregator import aggregate_positions, period_to_local_time
from .csv_writer import CSV_HEADER, CsvPositionWriter, OutputWriteError

__all__ = [
    "CSV_HEADER",
    "CsvPositionWriter",
    "OutputWriteError",
    "aggregate_positions",
    "period_to_local_time",
]
