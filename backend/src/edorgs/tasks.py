"""Celery tasks for the education organization refresh.

Tasks:
- refresh_education_organizations_task: refresh the cache of all or one
  ODS instance, enqueued by the refresh endpoints and by Celery beat
"""

import logging
from typing import Any, Dict, Optional

from celery import shared_task

from config import get_settings
from jobs.constants import REFRESH_EDUCATION_ORGANIZATIONS_JOB_NAME
from workers.base import StatusTrackedTask
from .service import EducationOrganizationService

logger = logging.getLogger(__name__)


def build_refresh_service() -> EducationOrganizationService:
    return EducationOrganizationService.from_settings(get_settings())


def run_refresh_job(
    tenant_name: Optional[str] = None,
    instance_id: Optional[Any] = None,
) -> Dict[str, Any]:
    """Run the refresh for the tenant and instance named in job metadata.

    Returns:
        Dict with the refresh summary
    """
    instance_id = int(instance_id) if instance_id not in (None, "") else None
    settings = get_settings()

    if settings.MULTI_TENANCY:
        if not tenant_name:
            logger.error("Tenant name is required to refresh education organizations.")
            return {"status": "skipped", "reason": "missing tenant name"}
        logger.info(
            f"Starting {REFRESH_EDUCATION_ORGANIZATIONS_JOB_NAME} for Tenant {tenant_name}",
            extra={"tenant": tenant_name, "instance_id": instance_id},
        )
    else:
        tenant_name = None
        logger.info(f"Starting {REFRESH_EDUCATION_ORGANIZATIONS_JOB_NAME}")

    summary = build_refresh_service().execute(tenant_name, instance_id)
    return summary.to_dict()


@shared_task(name=REFRESH_EDUCATION_ORGANIZATIONS_JOB_NAME, base=StatusTrackedTask, bind=True)
def refresh_education_organizations_task(
    self,
    tenant_name: str = "",
    instance_id: Optional[int] = None,
) -> Dict[str, Any]:
    """Refresh cached education organizations.

    Status is tracked by StatusTrackedTask under the run id
    "RefreshEducationOrganizationsJob_{task_id}". Configuration errors mark
    the run as Error; failures of single instances do not.

    Args:
        tenant_name: Tenant to refresh (required in multi-tenant mode)
        instance_id: Refresh only this ODS instance
    """
    return run_refresh_job(tenant_name, instance_id)
