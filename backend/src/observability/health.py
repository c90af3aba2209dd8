"""Health checks of the admin databases and the Celery broker.

In multi-tenant mode every configured tenant admin database is probed
separately and reported as "database:{tenant}".
"""

import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional

import redis
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .logging_config import get_logger

logger = get_logger(__name__)


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    DEGRADED = "degraded"


@dataclass
class ComponentHealth:
    """Health of a single component."""
    status: HealthStatus
    message: Optional[str] = None
    latency_ms: Optional[float] = None


def _probe(name: str, ping: Callable[[], object], errors) -> ComponentHealth:
    start = time.time()
    try:
        ping()
    except errors as e:
        logger.error(f"{name} health check failed: {e}")
        return ComponentHealth(status=HealthStatus.UNHEALTHY, message=f"{name} error: {e}")
    return ComponentHealth(
        status=HealthStatus.HEALTHY,
        message=f"{name} connection OK",
        latency_ms=round((time.time() - start) * 1000, 2),
    )


def check_database_health(db: Session) -> ComponentHealth:
    """Run SELECT 1 on an admin database session."""
    return _probe("Database", lambda: db.execute(text("SELECT 1")), SQLAlchemyError)


def check_tenant_databases(context_provider) -> Dict[str, ComponentHealth]:
    """Probe the admin database of every configured tenant.

    Returns:
        Dict keyed by "database:{tenant}"
    """
    components = {}
    for tenant in context_provider.tenant_identifiers:
        session = context_provider.get_admin_session(tenant)
        try:
            components[f"database:{tenant}"] = check_database_health(session)
        finally:
            session.close()
    return components


def check_broker_health(broker_url: str) -> ComponentHealth:
    """Ping the Celery broker.

    Only Redis brokers can be probed; other transports report DEGRADED.
    """
    scheme = broker_url.split("://", 1)[0]
    if scheme not in ("redis", "rediss"):
        return ComponentHealth(status=HealthStatus.DEGRADED, message=f"Broker not probed: {scheme}")

    client = redis.from_url(broker_url, socket_connect_timeout=2)
    return _probe("Broker", client.ping, redis.RedisError)


def get_overall_health(components: Dict[str, ComponentHealth]) -> HealthStatus:
    """Worst status of all components."""
    statuses = {c.status for c in components.values()}
    if HealthStatus.UNHEALTHY in statuses:
        return HealthStatus.UNHEALTHY
    if HealthStatus.DEGRADED in statuses:
        return HealthStatus.DEGRADED
    return HealthStatus.HEALTHY
