"""FastAPI router for API information.

GET / returns the API version and, in multi-tenant mode, the configured
tenant names.
"""

from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from config import Settings, get_settings

router = APIRouter(tags=["Information"])


class TenancyModel(BaseModel):
    multitenant_mode: bool = Field(alias="multitenantMode")
    tenants: List[str]

    class Config:
        populate_by_name = True


class InformationModel(BaseModel):
    version: str
    build: str
    tenancy: TenancyModel


@router.get("/", response_model=InformationModel)
def get_information(settings: Settings = Depends(get_settings)) -> InformationModel:
    """Retrieve API informational metadata."""
    tenants = sorted(settings.TENANTS) if settings.MULTI_TENANCY else []
    return InformationModel(
        version=settings.APP_VERSION,
        build=settings.APP_BUILD,
        tenancy=TenancyModel(multitenant_mode=settings.MULTI_TENANCY, tenants=tenants),
    )
