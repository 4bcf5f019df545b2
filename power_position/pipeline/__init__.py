"""Queue drain orchestration."""

from .job_processor import DrainResult, JobProcessor

__all__ = ["DrainResult", "JobProcessor"]
