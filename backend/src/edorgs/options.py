"""Immutable settings snapshot used by the education organization refresh."""

import base64
import binascii
from dataclasses import dataclass
from typing import Optional, Union

from config import ConfigurationError, Settings
from tenancy.database_engine import DatabaseEngine


@dataclass(frozen=True)
class RefreshOptions:
    """Settings consumed by EducationOrganizationService.

    Built once per run with from_settings() so a refresh never observes a
    settings change half way through.
    """

    encryption_key: Optional[str]
    database_engine: Union[DatabaseEngine, str, None]
    multi_tenancy: bool = False
    max_parallelism: int = 10
    connect_timeout: Optional[int] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "RefreshOptions":
        """Snapshot and validate settings.

        Raises:
            ConfigurationError: If the encryption key or engine is missing
            UnsupportedDatabaseEngineError: If the engine is not supported
        """
        options = cls(
            encryption_key=settings.ENCRYPTION_KEY,
            database_engine=DatabaseEngine.parse(settings.DATABASE_ENGINE),
            multi_tenancy=settings.MULTI_TENANCY,
            max_parallelism=settings.EDORG_REFRESH_MAX_PARALLELISM,
            connect_timeout=settings.REMOTE_QUERY_TIMEOUT_SECONDS or None,
        )
        options.validate()
        return options

    def validate(self) -> None:
        """Check the settings required before any instance is refreshed.

        Raises:
            ConfigurationError: If the encryption key is missing or not
                base64, or max_parallelism is below 1
            UnsupportedDatabaseEngineError: If the engine is not supported
        """
        if not self.encryption_key:
            raise ConfigurationError("EncryptionKey can't be null.")
        _decode_key(self.encryption_key)
        if not isinstance(self.database_engine, DatabaseEngine):
            DatabaseEngine.parse(self.database_engine)
        if self.max_parallelism < 1:
            raise ConfigurationError(
                f"EDORG_REFRESH_MAX_PARALLELISM must be at least 1, got {self.max_parallelism}"
            )

    @property
    def engine(self) -> DatabaseEngine:
        if isinstance(self.database_engine, DatabaseEngine):
            return self.database_engine
        return DatabaseEngine.parse(self.database_engine)

    @property
    def key_bytes(self) -> bytes:
        """Raw encryption key decoded from base64."""
        return _decode_key(self.encryption_key or "")


def _decode_key(encryption_key: str) -> bytes:
    try:
        return base64.b64decode(encryption_key, validate=True)
    except (binascii.Error, ValueError):
        raise ConfigurationError("EncryptionKey is not a valid base64 string.")
