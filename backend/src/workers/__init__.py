"""Background workers module for async task processing.

This module provides the Celery application and the status-tracked task
base used by all scheduled jobs.
"""

from .base import (
    StatusTrackedTask,
    build_run_id,
    get_job_status_service,
    run_with_status_tracking,
)

__all__ = [
    "StatusTrackedTask",
    "build_run_id",
    "get_job_status_service",
    "run_with_status_tracking",
]
