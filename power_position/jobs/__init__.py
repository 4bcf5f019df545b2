"""Durable power-day work queue."""

from .job_queue import JobQueue, QueueError, QueueInitError

__all__ = ["JobQueue", "QueueError", "QueueInitError"]
