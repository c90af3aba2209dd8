"""Middleware for tenant context extraction.

In multi-tenant mode clients select their tenant with the "Tenant" request
header. The middleware attaches it to request.state and to the logging
context; tenant validation happens in the get_tenant_name dependency.
"""

from typing import Callable, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from observability.context import tenant_var

TENANT_HEADER = "Tenant"


class TenantContextMiddleware(BaseHTTPMiddleware):
    """Attach the requested tenant to request.state.tenant_name.

    Usage:
        app.add_middleware(TenantContextMiddleware)

        @app.get("/educationOrganizations")
        def list_edorgs(request: Request):
            tenant_name = request.state.tenant_name  # str or None
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        tenant_name = request.headers.get(TENANT_HEADER, "").strip() or None
        request.state.tenant_name = tenant_name

        token = tenant_var.set(tenant_name)
        try:
            return await call_next(request)
        finally:
            tenant_var.reset(token)


def get_tenant_from_request(request: Request) -> Optional[str]:
    """Tenant set by TenantContextMiddleware, falling back to the header."""
    tenant_name = getattr(request.state, "tenant_name", None)
    if tenant_name is None:
        tenant_name = request.headers.get(TENANT_HEADER, "").strip() or None
    return tenant_name
