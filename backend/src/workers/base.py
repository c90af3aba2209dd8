"""Status-tracked execution of background jobs.

Every job run reports its lifecycle to the job status store:

    InProgress -> Completed
    InProgress -> Error (error_message = str(exception))

The run id is "{job_id}_{fire_token}". The fire token is the Celery task
id, which is unique per enqueue, so each run id is used once.

Task Pattern:
=============

@shared_task(name="MyJob", base=StatusTrackedTask, bind=True)
def my_job(self, tenant_name: str = "", instance_id: Optional[int] = None):
    ...  # raising marks the run as Error

Failures are recorded and logged, never re-raised: a failing run finishes
as a successful Celery task whose result carries status "Error".
"""

import logging
import uuid
from typing import Any, Callable, Dict, Optional

from celery import Task

from models.job_status import JobRunStatus
from jobs.service import JobStatusService
from observability.context import bind_run_context
from observability.metrics import job_runs_total

logger = logging.getLogger(__name__)


def build_run_id(job_id: str, fire_token: str) -> str:
    return f"{job_id}_{fire_token}"


def run_with_status_tracking(
    job_id: str,
    fire_token: str,
    tenant_name: Optional[str],
    unit_of_work: Callable[[], Any],
    status_service: JobStatusService,
) -> Dict[str, Any]:
    """Run a unit of work and record its status transitions.

    Args:
        job_id: Stable job name
        fire_token: Unique token of this execution
        tenant_name: Tenant owning the run ("" or None for the default scope)
        unit_of_work: Job body, called without arguments
        status_service: Store receiving the status writes

    Returns:
        Dict with run_id, status, result (body return value) and error
    """
    run_id = build_run_id(job_id, fire_token)

    with bind_run_context(run_id, tenant_name):
        try:
            status_service.set_status(run_id, JobRunStatus.IN_PROGRESS, tenant_name)
            result = unit_of_work()
            status_service.set_status(run_id, JobRunStatus.COMPLETED, tenant_name)
        except Exception as e:
            logger.error(
                f"Job {job_id} with Run {run_id} failed.",
                exc_info=True,
                extra={"job_id": job_id, "run_id": run_id},
            )
            _record_error(status_service, run_id, tenant_name, str(e))
            job_runs_total.labels(job_id=job_id, status=JobRunStatus.ERROR.value).inc()
            return {
                "run_id": run_id,
                "status": JobRunStatus.ERROR.value,
                "result": None,
                "error": str(e),
            }

        job_runs_total.labels(job_id=job_id, status=JobRunStatus.COMPLETED.value).inc()
        logger.info(
            f"Job {job_id} with Run {run_id} completed.",
            extra={"job_id": job_id, "run_id": run_id},
        )
        return {
            "run_id": run_id,
            "status": JobRunStatus.COMPLETED.value,
            "result": result,
            "error": None,
        }


def _record_error(
    status_service: JobStatusService,
    run_id: str,
    tenant_name: Optional[str],
    error_message: str,
) -> None:
    # The run stays at its last written status when the store is unreachable
    try:
        status_service.set_status(run_id, JobRunStatus.ERROR, tenant_name, error_message)
    except Exception:
        logger.error(
            f"Failed to record Error status for Run {run_id}",
            exc_info=True,
            extra={"run_id": run_id},
        )


def get_job_status_service() -> JobStatusService:
    """Build a JobStatusService from settings."""
    from config import get_settings
    from database import SessionLocal
    from tenancy import get_context_provider

    settings = get_settings()
    return JobStatusService(
        SessionLocal,
        get_context_provider() if settings.MULTI_TENANCY else None,
        multi_tenancy=settings.MULTI_TENANCY,
    )


class StatusTrackedTask(Task):
    """Base Celery task class recording job run status.

    The task name is the job id and the Celery task id is the fire token.
    The tenant is taken from the tenant_name keyword argument.

    Usage:
        @shared_task(name="RefreshEducationOrganizationsJob", base=StatusTrackedTask)
        def refresh(tenant_name: str = "", instance_id: Optional[int] = None):
            ...
    """

    _status_service: Optional[JobStatusService] = None

    @property
    def status_service(self) -> JobStatusService:
        if self._status_service is None:
            self._status_service = get_job_status_service()
        return self._status_service

    @status_service.setter
    def status_service(self, value: Optional[JobStatusService]) -> None:
        self._status_service = value

    def __call__(self, *args, **kwargs):
        """Run the task body inside run_with_status_tracking."""
        fire_token = getattr(self.request, "id", None) or str(uuid.uuid4())
        tenant_name = kwargs.get("tenant_name") or ""

        return run_with_status_tracking(
            job_id=self.name,
            fire_token=fire_token,
            tenant_name=tenant_name,
            unit_of_work=lambda: super(StatusTrackedTask, self).__call__(*args, **kwargs),
            status_service=self.status_service,
        )
