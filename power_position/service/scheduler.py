"""Daily trigger scheduling in a configured time zone.

The pure functions compute, from an aware "now", how long to wait until the
next daily run and which power day a run targets. Both are recomputed on
every trigger so clock changes and DST transitions are picked up.

Examples::

    >>> from zoneinfo import ZoneInfo
    >>> london = ZoneInfo("Europe/London")
    >>> now = datetime(2024, 1, 15, 23, 5, tzinfo=london)
    >>> next_power_day(now, london)
    datetime.date(2024, 1, 16)
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Callable
from zoneinfo import ZoneInfo

import structlog

from power_position.core.models import utc_now

logger = structlog.get_logger(__name__)


def _require_aware(now: datetime) -> None:
    if now.tzinfo is None or now.utcoffset() is None:
        raise ValueError("now must be timezone-aware")


def _local_run_instant(day: date, run_time: time, tz: ZoneInfo) -> datetime:
    """Place ``run_time`` on ``day`` in ``tz``, taking the later instant.

    When clocks go back the run time occurs twice and the second (standard
    time) occurrence is used. When clocks go forward a run time inside the
    gap maps past it.
    """
    first = datetime.combine(day, run_time, tzinfo=tz)
    second = first.replace(fold=1)
    if second.utcoffset() < first.utcoffset():
        return second
    return first


def next_run_local(now: datetime, run_time: time, tz: ZoneInfo) -> datetime:
    """Return the next local trigger strictly after the instant ``now``.

    Today's run time is used if it is still ahead of ``now``, otherwise the
    same time on the next calendar date.
    """
    _require_aware(now)
    local_now = now.astimezone(tz)
    now_utc = now.astimezone(timezone.utc)
    target = _local_run_instant(local_now.date(), run_time, tz)
    # Compare instants: same-tzinfo comparison ignores fold
    if target.astimezone(timezone.utc) <= now_utc:
        target = _local_run_instant(local_now.date() + timedelta(days=1), run_time, tz)
    return target


def delay_until_next_run(now: datetime, run_time: time, tz: ZoneInfo) -> timedelta:
    """Return how long to wait from ``now`` until the next daily run.

    Args:
        now: Current instant; must be timezone-aware.
        run_time: Local time of day the run fires at.
        tz: Zone the run time is expressed in.

    Returns:
        Positive delay to the next trigger instant, never below zero.

    Raises:
        ValueError: If ``now`` is naive.
    """
    target = next_run_local(now, run_time, tz)
    # Subtract in UTC: aware datetimes sharing a tzinfo subtract as wall clock
    delay = target.astimezone(timezone.utc) - now.astimezone(timezone.utc)
    if delay < timedelta(0):
        return timedelta(0)
    return delay


def next_power_day(now: datetime, tz: ZoneInfo) -> date:
    """Return the power day a run at ``now`` targets: local today + 1."""
    _require_aware(now)
    return now.astimezone(tz).date() + timedelta(days=1)


class Scheduler:
    """Configured daily schedule with an injectable clock.

    Args:
        run_time: Local time of day to run at.
        tz: Zone for the run time and for power-day calculation.
        clock: Returns the current aware instant. Defaults to UTC now.
    """

    def __init__(
        self,
        run_time: time,
        tz: ZoneInfo,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.run_time = run_time
        self.tz = tz
        self._clock = clock

    def delay_until_next_run(self) -> timedelta:
        now = self._clock()
        delay = delay_until_next_run(now, self.run_time, self.tz)
        logger.info(
            "next_run_scheduled",
            next_run=next_run_local(now, self.run_time, self.tz).strftime(
                "%Y-%m-%d %H:%M:%S"
            ),
            time_zone=str(self.tz),
            delay=str(delay),
        )
        return delay

    def next_power_day(self) -> date:
        return next_power_day(self._clock(), self.tz)
