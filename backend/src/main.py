"""Ed-Fi Admin API application.

Wires the routers (information, education organizations, jobs,
observability), the request and tenant middleware, and the error mapping:

    TenantNotFoundError                 -> 404
    RequestValidationError              -> 422
    ConfigurationError / unsupported
    database engine                     -> 500
    SQLAlchemyError                     -> 500 (generic message)
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from config import ConfigurationError, get_settings
from edorgs.router import router as edorgs_router
from information.router import router as information_router
from jobs.router import router as jobs_router
from observability.logging_config import configure_logging
from observability.middleware import RequestIDMiddleware
from observability.router import router as observability_router
from tenancy import TenantNotFoundError, UnsupportedDatabaseEngineError, reset_context_provider
from tenancy.middleware import TenantContextMiddleware

# Registers the Celery app used to enqueue jobs
from workers.celery_app import celery_app  # noqa: F401

settings = get_settings()

configure_logging(level=settings.LOG_LEVEL, json_format=settings.LOG_JSON)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        f"Ed-Fi Admin API {settings.APP_BUILD} starting ({settings.ENVIRONMENT}): "
        f"engine={settings.DATABASE_ENGINE}, multi-tenancy={settings.MULTI_TENANCY}"
    )
    yield
    # Tenant engines are created lazily; dispose whatever was opened
    reset_context_provider()
    logger.info("Ed-Fi Admin API stopped")


app = FastAPI(
    title="Ed-Fi Admin API",
    description="Administration of Ed-Fi ODS instances and education organizations",
    version=settings.APP_VERSION,
    docs_url=None,
    redoc_url=None,
    openapi_url=None,
    lifespan=lifespan,
)

app.add_middleware(TenantContextMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)
# Added last so it runs first and every log line carries the request id
app.add_middleware(RequestIDMiddleware)


def _error(status_code: int, error: str, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": error, "message": message, **extra})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning(f"Validation error on {request.method} {request.url.path}")
    return _error(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "validation_error",
        "Request validation failed",
        details=exc.errors(),
    )


@app.exception_handler(TenantNotFoundError)
async def tenant_not_found_handler(request: Request, exc: TenantNotFoundError) -> JSONResponse:
    logger.warning(f"Unknown tenant '{exc.tenant_identifier}' on {request.method} {request.url.path}")
    return _error(status.HTTP_404_NOT_FOUND, "tenant_not_found", str(exc))


@app.exception_handler(ConfigurationError)
@app.exception_handler(UnsupportedDatabaseEngineError)
async def configuration_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Configuration error on {request.method} {request.url.path}: {exc}")
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "configuration_error", str(exc))


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Log the database error; the client only gets a generic message."""
    logger.error(f"Database error on {request.method} {request.url.path}", exc_info=exc)
    return _error(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "database_error",
        "A database error occurred. Please try again later.",
    )


app.include_router(observability_router)
app.include_router(information_router)
app.include_router(edorgs_router, prefix="/v2")
app.include_router(jobs_router, prefix="/v2")
