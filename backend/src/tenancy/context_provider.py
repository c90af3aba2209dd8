"""Tenant-specific database sessions.

In multi-tenant mode every tenant owns an admin database holding its ODS
instances, job status rows and education organization cache. This module
maps a tenant identifier to sessions bound to that database.
"""

import logging
import threading
from typing import Dict, Mapping, Optional, Union

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from config import ConfigurationError
from .configuration import TenantConfiguration
from .database_engine import DatabaseEngine

logger = logging.getLogger(__name__)


class TenantNotFoundError(LookupError):
    """Raised when a tenant identifier is not configured."""

    def __init__(self, tenant_identifier: str):
        self.tenant_identifier = tenant_identifier
        super().__init__(f"Tenant '{tenant_identifier}' not found.")


class TenantSpecificDbContextProvider:
    """Resolves sessions bound to a tenant's admin database.

    The configured tenants and database engine are fixed at construction.
    Engines are created lazily on first use and shared by all callers, so a
    single provider can be used from many threads.

    Usage:
        provider = TenantSpecificDbContextProvider(tenants, DatabaseEngine.POSTGRESQL)
        session = provider.get_admin_session("tenant1")
        try:
            ...
        finally:
            session.close()
    """

    def __init__(
        self,
        tenant_configurations: Mapping[str, TenantConfiguration],
        database_engine: Union[DatabaseEngine, str, None],
    ):
        if database_engine is None:
            raise ConfigurationError("DatabaseEngine cannot be null.")
        if not isinstance(database_engine, DatabaseEngine):
            database_engine = DatabaseEngine.parse(database_engine)

        self._tenant_configurations = dict(tenant_configurations)
        self._database_engine = database_engine
        self._engines: Dict[str, Engine] = {}
        self._session_factories: Dict[str, sessionmaker] = {}
        self._lock = threading.Lock()

    @property
    def database_engine(self) -> DatabaseEngine:
        return self._database_engine

    @property
    def tenant_identifiers(self):
        return list(self._tenant_configurations)

    def get_tenant_configuration(self, tenant_identifier: str) -> TenantConfiguration:
        """Look up a tenant's configuration.

        Raises:
            TenantNotFoundError: If the tenant is not configured
        """
        try:
            return self._tenant_configurations[tenant_identifier]
        except KeyError:
            raise TenantNotFoundError(tenant_identifier)

    def get_admin_session_factory(self, tenant_identifier: str) -> sessionmaker:
        """Session factory for the tenant's admin tables (cache, job status)."""
        return self._get_session_factory(tenant_identifier)

    def get_users_session_factory(self, tenant_identifier: str) -> sessionmaker:
        """Session factory for the tenant's ODS instance registry."""
        return self._get_session_factory(tenant_identifier)

    def get_admin_session(self, tenant_identifier: str) -> Session:
        return self.get_admin_session_factory(tenant_identifier)()

    def get_users_session(self, tenant_identifier: str) -> Session:
        return self.get_users_session_factory(tenant_identifier)()

    def dispose(self) -> None:
        """Dispose all cached tenant engines."""
        with self._lock:
            for engine in self._engines.values():
                engine.dispose()
            self._engines.clear()
            self._session_factories.clear()

    def _get_session_factory(self, tenant_identifier: str) -> sessionmaker:
        tenant = self.get_tenant_configuration(tenant_identifier)

        with self._lock:
            factory = self._session_factories.get(tenant_identifier)
            if factory is None:
                engine = self._database_engine.driver.create_engine(
                    tenant.admin_connection_string
                )
                factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
                self._engines[tenant_identifier] = engine
                self._session_factories[tenant_identifier] = factory
                logger.info(
                    f"Created {self._database_engine.value} engine for tenant {tenant_identifier}",
                    extra={"tenant": tenant_identifier},
                )
            return factory


_provider: Optional[TenantSpecificDbContextProvider] = None
_provider_lock = threading.Lock()


def get_context_provider() -> TenantSpecificDbContextProvider:
    """Get the process-wide provider built from settings."""
    global _provider
    with _provider_lock:
        if _provider is None:
            from config import get_settings
            from .configuration import TenantConfigurationProvider

            settings = get_settings()
            _provider = TenantSpecificDbContextProvider(
                TenantConfigurationProvider(settings).get(),
                settings.DATABASE_ENGINE,
            )
        return _provider


def reset_context_provider() -> None:
    """Drop the process-wide provider (used by tests after settings change)."""
    global _provider
    with _provider_lock:
        if _provider is not None:
            _provider.dispose()
        _provider = None
