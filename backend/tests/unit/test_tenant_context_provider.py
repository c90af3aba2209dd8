"""Unit tests for tenant configuration and tenant-specific sessions."""

import pytest
from sqlalchemy import text

from config import ConfigurationError, Settings
from tenancy import (
    DatabaseEngine,
    TenantConfiguration,
    TenantConfigurationProvider,
    TenantNotFoundError,
    TenantSpecificDbContextProvider,
    UnsupportedDatabaseEngineError,
)


@pytest.fixture
def tenants(tmp_path):
    return {
        "tenant1": TenantConfiguration(
            tenant_identifier="tenant1",
            admin_connection_string=f"sqlite:///{tmp_path / 'tenant1.db'}",
            security_connection_string=f"sqlite:///{tmp_path / 'tenant1_security.db'}",
        ),
        "tenant2": TenantConfiguration(
            tenant_identifier="tenant2",
            admin_connection_string=f"sqlite:///{tmp_path / 'tenant2.db'}",
            security_connection_string="",
        ),
    }


class TestTenantConfigurationProvider:
    """Test building tenant configurations from settings."""

    def test_reads_tenants_setting(self):
        settings = Settings(TENANTS={
            "tenant1": {
                "adminConnectionString": "host=pg01;database=edfi_admin_t1",
                "securityConnectionString": "host=pg01;database=edfi_security_t1",
            },
            "tenant2": {"AdminConnectionString": "host=pg01;database=edfi_admin_t2"},
        })

        configurations = TenantConfigurationProvider(settings).get()

        assert set(configurations) == {"tenant1", "tenant2"}
        assert configurations["tenant1"].admin_connection_string == "host=pg01;database=edfi_admin_t1"
        assert configurations["tenant1"].security_connection_string == "host=pg01;database=edfi_security_t1"
        assert configurations["tenant2"].admin_connection_string == "host=pg01;database=edfi_admin_t2"
        assert configurations["tenant2"].security_connection_string == ""

    def test_missing_admin_connection_string_raises(self):
        settings = Settings(TENANTS={"tenant1": {"securityConnectionString": "x"}})

        with pytest.raises(ConfigurationError):
            TenantConfigurationProvider(settings).get()


class TestTenantSpecificDbContextProvider:
    """Test resolving sessions for a tenant."""

    def test_null_engine_raises(self, tenants):
        with pytest.raises(ConfigurationError):
            TenantSpecificDbContextProvider(tenants, None)

    def test_unsupported_engine_raises(self, tenants):
        with pytest.raises(UnsupportedDatabaseEngineError):
            TenantSpecificDbContextProvider(tenants, "Oracle")

    def test_engine_name_is_parsed(self, tenants):
        provider = TenantSpecificDbContextProvider(tenants, "sqlserver")

        assert provider.database_engine is DatabaseEngine.SQL_SERVER

    def test_unknown_tenant_raises_not_found(self, tenants):
        provider = TenantSpecificDbContextProvider(tenants, DatabaseEngine.POSTGRESQL)

        with pytest.raises(TenantNotFoundError) as exc:
            provider.get_admin_session("unknown")
        assert exc.value.tenant_identifier == "unknown"

        with pytest.raises(TenantNotFoundError):
            provider.get_users_session("unknown")

    def test_sessions_are_bound_to_tenant_database(self, tenants, tmp_path):
        provider = TenantSpecificDbContextProvider(tenants, DatabaseEngine.POSTGRESQL)

        session = provider.get_admin_session("tenant1")
        try:
            session.execute(text("CREATE TABLE marker (id INTEGER)"))
            session.commit()
            database = session.get_bind().url.database
        finally:
            session.close()

        assert database == str(tmp_path / "tenant1.db")
        assert (tmp_path / "tenant1.db").exists()
        assert not (tmp_path / "tenant2.db").exists()
        provider.dispose()

    def test_session_factory_is_reused_per_tenant(self, tenants):
        provider = TenantSpecificDbContextProvider(tenants, DatabaseEngine.POSTGRESQL)

        assert provider.get_admin_session_factory("tenant1") is provider.get_admin_session_factory("tenant1")
        assert provider.get_users_session_factory("tenant1") is provider.get_admin_session_factory("tenant1")
        assert provider.get_admin_session_factory("tenant1") is not provider.get_admin_session_factory("tenant2")
        provider.dispose()

    def test_tenant_identifiers(self, tenants):
        provider = TenantSpecificDbContextProvider(tenants, DatabaseEngine.POSTGRESQL)

        assert sorted(provider.tenant_identifiers) == ["tenant1", "tenant2"]
