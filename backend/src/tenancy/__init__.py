"""Tenancy module - Tenant configuration and tenant-scoped database access.

This module provides:
- Tenant configuration snapshot built from settings
- Database engine selection (SqlServer / PostgreSql)
- Sessions bound to a tenant's own admin database
"""

from .configuration import TenantConfiguration, TenantConfigurationProvider
from .context_provider import (
    TenantNotFoundError,
    TenantSpecificDbContextProvider,
    get_context_provider,
    reset_context_provider,
)
from .database_engine import DatabaseEngine, UnsupportedDatabaseEngineError

__all__ = [
    "DatabaseEngine",
    "TenantConfiguration",
    "TenantConfigurationProvider",
    "TenantNotFoundError",
    "TenantSpecificDbContextProvider",
    "UnsupportedDatabaseEngineError",
    "get_context_provider",
    "reset_context_provider",
]
