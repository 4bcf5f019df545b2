"""Scheduling, single-instance locking and the long-running worker."""

from .instance_lock import LOCK_FILE_NAME, InstanceLock
from .scheduler import Scheduler, delay_until_next_run, next_power_day
from .worker import PositionWorker

__all__ = [
    "LOCK_FILE_NAME",
    "InstanceLock",
    "PositionWorker",
    "Scheduler",
    "delay_until_next_run",
    "next_power_day",
]
