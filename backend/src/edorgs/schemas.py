"""Education organization schemas.

- EducationOrganizationResult: organization read from an ODS database
- OdsInstanceTarget: ODS instance selected for a refresh
- EducationOrganizationModel: API representation of a cached organization
- RefreshAccepted: response of the refresh endpoints
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


@dataclass(frozen=True)
class EducationOrganizationResult:
    """One education organization as returned by the ODS query."""

    education_organization_id: int
    name_of_institution: str
    short_name_of_institution: Optional[str]
    discriminator: str
    id: UUID
    parent_id: Optional[int]


@dataclass(frozen=True)
class OdsInstanceTarget:
    """Detached copy of an OdsInstance row, safe to hand to worker threads."""

    instance_id: int
    name: str
    connection_string: str


class EducationOrganizationModel(BaseModel):
    """Cached education organization returned by the API."""

    education_organization_id: int = Field(alias="educationOrganizationId")
    name_of_institution: str = Field(alias="nameOfInstitution")
    short_name_of_institution: Optional[str] = Field(
        default=None, alias="shortNameOfInstitution"
    )
    discriminator: str
    parent_id: Optional[int] = Field(default=None, alias="parentId")
    instance_id: int = Field(alias="instanceId")
    instance_name: str = Field(alias="instanceName")
    last_refreshed: datetime = Field(alias="lastRefreshed")
    last_modified_date: datetime = Field(alias="lastModifiedDate")

    class Config:
        from_attributes = True
        populate_by_name = True


class RefreshAccepted(BaseModel):
    """Response of an accepted refresh request."""

    message: str
    run_id: str = Field(alias="runId")

    class Config:
        populate_by_name = True
