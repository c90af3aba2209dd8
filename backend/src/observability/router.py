"""Observability endpoints: Prometheus metrics and health."""

from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from sqlalchemy.orm import Session

from config import Settings, get_settings
from database import get_db
from tenancy import get_context_provider
from .health import (
    HealthStatus,
    check_broker_health,
    check_database_health,
    check_tenant_databases,
    get_overall_health,
)

router = APIRouter(tags=["Observability"])


@router.get("/metrics", include_in_schema=False)
def metrics():
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


@router.get("/health", summary="Health check endpoint")
def health_check(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Check the admin database(s) and the job broker.

    Returns 503 when any component is unhealthy, 200 otherwise.
    """
    if settings.MULTI_TENANCY:
        components = check_tenant_databases(get_context_provider())
    else:
        components = {"database": check_database_health(db)}
    components["broker"] = check_broker_health(settings.CELERY_BROKER_URL)

    overall_status = get_overall_health(components)
    return JSONResponse(
        status_code=503 if overall_status == HealthStatus.UNHEALTHY else 200,
        content={
            "status": overall_status.value,
            "components": {
                name: {
                    "status": component.status.value,
                    "message": component.message,
                    "latency_ms": component.latency_ms,
                }
                for name, component in components.items()
            },
        },
    )
