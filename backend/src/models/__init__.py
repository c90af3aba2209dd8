"""SQLAlchemy Models for the Ed-Fi Admin API"""

from .base import Base
from .education_organization import EducationOrganization
from .ods_instance import OdsInstance
from .job_status import JobStatus, JobRunStatus

__all__ = [
    "Base",
    "EducationOrganization",
    "OdsInstance",
    "JobStatus",
    "JobRunStatus",
]
