"""Global FastAPI dependencies for tenant selection and database access.

This module provides:
- get_tenant_name: Tenant of the request (required in multi-tenant mode)
- get_admin_db: Session on the request tenant's admin database
- get_status_service: Job status store for the request's runs
"""

from typing import Generator, Optional

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from config import Settings, get_settings
from database import SessionLocal
from jobs.service import JobStatusService
from tenancy import get_context_provider
from tenancy.middleware import TENANT_HEADER, get_tenant_from_request
from workers.base import get_job_status_service


def get_tenant_name(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> Optional[str]:
    """Resolve the tenant of the request.

    Returns None when multi-tenancy is disabled.

    Raises:
        HTTPException 400: If multi-tenancy is enabled and no tenant was sent
        TenantNotFoundError: If the tenant is not configured (mapped to 404)
    """
    if not settings.MULTI_TENANCY:
        return None

    tenant_name = get_tenant_from_request(request)
    if not tenant_name:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"The '{TENANT_HEADER}' header is required.",
        )

    get_context_provider().get_tenant_configuration(tenant_name)
    return tenant_name


def get_admin_db(
    tenant_name: Optional[str] = Depends(get_tenant_name),
) -> Generator[Session, None, None]:
    """Session on the admin database of the request tenant.

    Usage:
        @router.get("/educationOrganizations")
        def list_edorgs(db: Session = Depends(get_admin_db)):
            return db.query(EducationOrganization).all()
    """
    if tenant_name:
        db = get_context_provider().get_admin_session(tenant_name)
    else:
        db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_status_service() -> JobStatusService:
    return get_job_status_service()
