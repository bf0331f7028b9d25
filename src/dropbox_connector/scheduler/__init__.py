"""Traversal scheduling package."""

from .traversal_scheduler import (
    TraversalScheduler,
    SchedulerError,
    FULL_TRAVERSAL_JOB,
    INCREMENTAL_TRAVERSAL_JOB
)

__all__ = [
    "TraversalScheduler",
    "SchedulerError",
    "FULL_TRAVERSAL_JOB",
    "INCREMENTAL_TRAVERSAL_JOB"
]
