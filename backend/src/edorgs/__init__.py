"""Education organizations - ODS organization cache and its refresh."""

from .options import RefreshOptions
from .schemas import EducationOrganizationResult, OdsInstanceTarget
from .service import (
    EducationOrganizationService,
    InstanceRefreshResult,
    RefreshSummary,
    reconcile_education_organizations,
)
from .source import (
    EDUCATION_ORGANIZATIONS_QUERY,
    EducationOrganizationSource,
    RefreshCancelledError,
    RowParseError,
)

__all__ = [
    "EDUCATION_ORGANIZATIONS_QUERY",
    "EducationOrganizationResult",
    "EducationOrganizationService",
    "EducationOrganizationSource",
    "InstanceRefreshResult",
    "OdsInstanceTarget",
    "RefreshCancelledError",
    "RefreshOptions",
    "RefreshSummary",
    "RowParseError",
    "reconcile_education_organizations",
]
