"""FastAPI router for education organization endpoints.

Provides APIs for:
- Listing cached education organizations (all or one ODS instance)
- Queueing a refresh of the cache from the ODS databases
"""

import logging
from typing import Callable, List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from dependencies import get_admin_db, get_status_service, get_tenant_name
from jobs.scheduler import schedule_refresh
from jobs.service import JobStatusService
from models.education_organization import EducationOrganization
from models.ods_instance import OdsInstance
from .schemas import EducationOrganizationModel, RefreshAccepted

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/educationOrganizations", tags=["Education Organizations"])


def get_refresh_scheduler() -> Callable[..., str]:
    return schedule_refresh


@router.get("", response_model=List[EducationOrganizationModel])
def list_education_organizations(db: Session = Depends(get_admin_db)):
    """List cached education organizations of all ODS instances."""
    return (
        db.query(EducationOrganization)
        .order_by(EducationOrganization.instance_id, EducationOrganization.education_organization_id)
        .all()
    )


@router.get("/{instance_id}", response_model=List[EducationOrganizationModel])
def list_instance_education_organizations(instance_id: int, db: Session = Depends(get_admin_db)):
    """List cached education organizations of one ODS instance."""
    return (
        db.query(EducationOrganization)
        .filter(EducationOrganization.instance_id == instance_id)
        .order_by(EducationOrganization.education_organization_id)
        .all()
    )


@router.post("/refresh", status_code=status.HTTP_202_ACCEPTED, response_model=RefreshAccepted)
def refresh_all_education_organizations(
    tenant_name: Optional[str] = Depends(get_tenant_name),
    status_service: JobStatusService = Depends(get_status_service),
    scheduler: Callable[..., str] = Depends(get_refresh_scheduler),
):
    """Queue a refresh of all ODS instances.

    Returns:
        RefreshAccepted: Message and run id to poll at /jobs/{run_id}
    """
    run_id = scheduler(tenant_name, None, status_service)
    logger.info("Queued education organization refresh", extra={"tenant": tenant_name, "run_id": run_id})
    return RefreshAccepted(
        message="Education organizations refresh has been queued for all instances",
        run_id=run_id,
    )


@router.post(
    "/refresh/{instance_id}",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=RefreshAccepted,
)
def refresh_instance_education_organizations(
    instance_id: int,
    tenant_name: Optional[str] = Depends(get_tenant_name),
    db: Session = Depends(get_admin_db),
    status_service: JobStatusService = Depends(get_status_service),
    scheduler: Callable[..., str] = Depends(get_refresh_scheduler),
):
    """Queue a refresh of one ODS instance.

    Raises:
        HTTPException 404: ODS instance not found
    """
    instance = db.query(OdsInstance).filter(OdsInstance.ods_instance_id == instance_id).first()
    if instance is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"ODS instance {instance_id} not found",
        )

    run_id = scheduler(tenant_name, instance_id, status_service)
    logger.info(
        "Queued education organization refresh",
        extra={"tenant": tenant_name, "instance_id": instance_id, "run_id": run_id},
    )
    return RefreshAccepted(
        message=f"Education organizations refresh has been queued for instance {instance_id}",
        run_id=run_id,
    )
