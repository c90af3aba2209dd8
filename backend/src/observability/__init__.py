"""Observability module.

Provides structured logging, correlation context, metrics and health checks.
"""

from .logging_config import configure_logging, get_logger
from .context import (
    bind_run_context,
    generate_request_id,
    get_request_id,
    get_run_id,
    get_tenant,
)
from .health import HealthStatus, ComponentHealth
from .middleware import RequestIDMiddleware

__all__ = [
    # Logging
    "configure_logging",
    "get_logger",
    # Correlation
    "bind_run_context",
    "generate_request_id",
    "get_request_id",
    "get_run_id",
    "get_tenant",
    # Health
    "HealthStatus",
    "ComponentHealth",
    # Middleware
    "RequestIDMiddleware",
]
