"""Tenant configuration provider.

Tenants are configured through the TENANTS setting, a JSON object keyed by
tenant identifier:

    TENANTS='{"tenant1": {"adminConnectionString": "...",
                          "securityConnectionString": "..."}}'
"""

from dataclasses import dataclass
from typing import Dict, Mapping

from config import ConfigurationError, Settings


@dataclass(frozen=True)
class TenantConfiguration:
    """Connection settings of a single tenant."""

    tenant_identifier: str
    admin_connection_string: str
    security_connection_string: str


class TenantConfigurationProvider:
    """Builds a read-only snapshot of configured tenants from settings."""

    def __init__(self, settings: Settings):
        self._settings = settings

    def get(self) -> Dict[str, TenantConfiguration]:
        """Get tenant configurations keyed by tenant identifier.

        Raises:
            ConfigurationError: If a tenant has no admin connection string
        """
        return {
            tenant_identifier: _to_configuration(tenant_identifier, values)
            for tenant_identifier, values in self._settings.TENANTS.items()
        }


def _to_configuration(tenant_identifier: str, values: Mapping[str, str]) -> TenantConfiguration:
    # Keys are matched case-insensitively (AdminConnectionString, adminConnectionString, ...)
    lowered = {key.lower(): value for key, value in values.items()}
    admin_connection_string = lowered.get("adminconnectionstring")
    if not admin_connection_string:
        raise ConfigurationError(
            f"Tenant '{tenant_identifier}' has no adminConnectionString configured"
        )
    return TenantConfiguration(
        tenant_identifier=tenant_identifier,
        admin_connection_string=admin_connection_string,
        security_connection_string=lowered.get("securityconnectionstring", ""),
    )
