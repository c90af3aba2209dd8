"""Job scheduling.

Enqueues Celery jobs with a fresh fire token and records their Pending
status so the run id can be polled as soon as the request returns.
"""

import logging
import uuid
from datetime import timedelta
from typing import Any, Dict, Optional

from celery.schedules import schedule as every

from config import Settings
from models.job_status import JobRunStatus
from .constants import (
    ODS_INSTANCE_ID_KEY,
    REFRESH_EDUCATION_ORGANIZATIONS_JOB_NAME,
    TENANT_NAME_KEY,
)
from .service import JobStatusService

logger = logging.getLogger(__name__)


def schedule_job(
    task,
    job_data: Dict[str, Any],
    status_service: JobStatusService,
    start_immediately: bool = False,
    delay: Optional[timedelta] = None,
) -> str:
    """Enqueue a status-tracked task.

    Args:
        task: Celery task using StatusTrackedTask
        job_data: Keyword arguments of the task (tenant_name, instance_id, ...)
        status_service: Store receiving the Pending status
        start_immediately: Run as soon as a worker is free
        delay: Run after this delay instead

    Returns:
        str: Run id of the enqueued job

    Raises:
        ValueError: If neither start_immediately nor delay is given
        Exception: Whatever apply_async raised; the run is marked Error first
    """
    if not start_immediately and delay is None:
        raise ValueError("Must specify start_immediately or delay.")

    fire_token = str(uuid.uuid4())
    run_id = f"{task.name}_{fire_token}"
    tenant_name = job_data.get(TENANT_NAME_KEY) or ""

    status_service.set_status(run_id, JobRunStatus.PENDING, tenant_name)

    options: Dict[str, Any] = {"task_id": fire_token}
    if not start_immediately:
        options["countdown"] = delay.total_seconds()

    try:
        task.apply_async(kwargs=job_data, **options)
    except Exception as e:
        logger.error(
            f"Failed to enqueue job {task.name}",
            exc_info=True,
            extra={"job_id": task.name, "run_id": run_id, "tenant": tenant_name},
        )
        status_service.set_status(run_id, JobRunStatus.ERROR, tenant_name, str(e))
        raise

    logger.info(
        f"Scheduled job {task.name}",
        extra={"job_id": task.name, "run_id": run_id, "tenant": tenant_name},
    )
    return run_id


def schedule_refresh(
    tenant_name: Optional[str],
    instance_id: Optional[int],
    status_service: JobStatusService,
) -> str:
    """Enqueue an education organization refresh for all or one instance."""
    from edorgs.tasks import refresh_education_organizations_task

    return schedule_job(
        refresh_education_organizations_task,
        {TENANT_NAME_KEY: tenant_name or "", ODS_INSTANCE_ID_KEY: instance_id},
        status_service,
        start_immediately=True,
    )


def build_beat_schedule(settings: Settings) -> Dict[str, Dict[str, Any]]:
    """Build the Celery beat schedule of periodic refreshes.

    One entry per tenant in multi-tenant mode, a single entry otherwise.
    Returns an empty schedule when EDORG_REFRESH_INTERVAL_MINUTES is 0.
    """
    interval = settings.EDORG_REFRESH_INTERVAL_MINUTES
    if interval <= 0:
        return {}

    run_every = every(run_every=timedelta(minutes=interval))
    tenants = list(settings.TENANTS) if settings.MULTI_TENANCY else [""]

    return {
        f"{REFRESH_EDUCATION_ORGANIZATIONS_JOB_NAME}-{tenant or 'default'}": {
            "task": REFRESH_EDUCATION_ORGANIZATIONS_JOB_NAME,
            "schedule": run_every,
            "kwargs": {TENANT_NAME_KEY: tenant, ODS_INSTANCE_ID_KEY: None},
        }
        for tenant in tenants
    }
