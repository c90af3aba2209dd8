"""Log correlation context.

Context variables carrying the current HTTP request id, job run id and
tenant. They are read by the logging filter so every log line emitted while
handling a request or running a job carries its correlation ids.
"""

import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

# Context variables (async and thread safe)
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
run_id_var: ContextVar[Optional[str]] = ContextVar("run_id", default=None)
tenant_var: ContextVar[Optional[str]] = ContextVar("tenant", default=None)


def generate_request_id() -> str:
    """Generate a new unique request ID.

    Returns:
        str: UUID v4 request ID
    """
    return str(uuid.uuid4())


def get_request_id() -> str:
    """Get current request ID, or "no-request-id" if not set."""
    return request_id_var.get() or "no-request-id"


def get_run_id() -> Optional[str]:
    return run_id_var.get()


def get_tenant() -> Optional[str]:
    return tenant_var.get()


@contextmanager
def bind_run_context(run_id: str, tenant: Optional[str] = None) -> Iterator[None]:
    """Bind a job run id and tenant for the duration of a block.

    Usage:
        with bind_run_context("RefreshEducationOrganizationsJob_abc", "tenant1"):
            logger.info("Refreshing")  # carries run_id and tenant
    """
    run_token = run_id_var.set(run_id)
    tenant_token = tenant_var.set(tenant or None)
    try:
        yield
    finally:
        tenant_var.reset(tenant_token)
        run_id_var.reset(run_token)
