"""FastAPI router for job status endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status

from dependencies import get_status_service, get_tenant_name
from jobs.service import JobStatusService
from .schemas import JobStatusModel

router = APIRouter(prefix="/jobs", tags=["Jobs"])


@router.get("/{run_id}", response_model=JobStatusModel)
def get_job_status(
    run_id: str,
    tenant_name: Optional[str] = Depends(get_tenant_name),
    status_service: JobStatusService = Depends(get_status_service),
):
    """Get the status of a job run.

    Raises:
        HTTPException 404: Run id not found
    """
    job_status = status_service.get_status(run_id, tenant_name)
    if job_status is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Job run {run_id} not found",
        )
    return job_status
