"""Job status tracking and scheduling."""

from models.job_status import JobRunStatus
from .constants import (
    ODS_INSTANCE_ID_KEY,
    REFRESH_EDUCATION_ORGANIZATIONS_JOB_NAME,
    TENANT_NAME_KEY,
)
from .service import JobStatusService

__all__ = [
    "JobRunStatus",
    "JobStatusService",
    "ODS_INSTANCE_ID_KEY",
    "REFRESH_EDUCATION_ORGANIZATIONS_JOB_NAME",
    "TENANT_NAME_KEY",
]
