"""Database engine selection for admin and ODS databases.

The DATABASE_ENGINE setting is parsed once into a DatabaseEngine member.
Each member carries the driver details needed to turn a stored connection
string into a SQLAlchemy engine, so callers never compare engine names.

Connection strings may be SQLAlchemy URLs or ADO.NET style
"Key=Value;" strings as written by the ODS admin tooling:

    Server=sql01,1433;Database=EdFi_Ods_255901;User Id=edfi;Password=secret
    host=pg01;port=5432;database=edfi_ods;username=postgres;password=secret
"""

import enum
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from sqlalchemy import create_engine as sa_create_engine
from sqlalchemy.engine import Engine, URL, make_url

from config import ConfigurationError


class UnsupportedDatabaseEngineError(ValueError):
    """Raised when DATABASE_ENGINE is neither SqlServer nor PostgreSql."""

    def __init__(self, engine_name: str):
        self.engine_name = engine_name
        super().__init__(f"Database engine '{engine_name}' is not supported.")


@dataclass(frozen=True)
class EngineDriver:
    """Driver details of one database engine."""

    drivername: str
    default_port: int
    connect_timeout_arg: str
    host_keys: Tuple[str, ...]
    database_keys: Tuple[str, ...]
    username_keys: Tuple[str, ...]
    password_keys: Tuple[str, ...]

    def to_url(self, connection_string: str) -> URL:
        """Convert a stored connection string into a SQLAlchemy URL.

        Raises:
            ValueError: If the connection string cannot be parsed
        """
        if "://" in connection_string:
            return make_url(connection_string)

        parts = parse_connection_string(connection_string)
        host, port = self._split_host(_first(parts, self.host_keys))
        if not host:
            raise ValueError("Connection string does not name a server")

        return URL.create(
            self.drivername,
            username=_first(parts, self.username_keys),
            password=_first(parts, self.password_keys),
            host=host,
            port=port or _to_port(parts.get("port")) or self.default_port,
            database=_first(parts, self.database_keys),
        )

    def create_engine(self, connection_string: str, connect_timeout: Optional[int] = None) -> Engine:
        """Create an engine for a stored connection string."""
        connect_args = {}
        if connect_timeout:
            connect_args[self.connect_timeout_arg] = connect_timeout
        return sa_create_engine(
            self.to_url(connection_string),
            pool_pre_ping=True,
            connect_args=connect_args,
        )

    def _split_host(self, server: Optional[str]) -> Tuple[Optional[str], Optional[int]]:
        # SQL Server accepts "tcp:host,port"
        if not server:
            return None, None
        if server.lower().startswith("tcp:"):
            server = server[4:]
        host, _, port = server.partition(",")
        return host.strip(), _to_port(port)


SQL_SERVER_DRIVER = EngineDriver(
    drivername="mssql+pymssql",
    default_port=1433,
    connect_timeout_arg="login_timeout",
    host_keys=("server", "data source", "address", "addr"),
    database_keys=("database", "initial catalog"),
    username_keys=("user id", "uid", "user"),
    password_keys=("password", "pwd"),
)

POSTGRESQL_DRIVER = EngineDriver(
    drivername="postgresql+psycopg2",
    default_port=5432,
    connect_timeout_arg="connect_timeout",
    host_keys=("host", "server"),
    database_keys=("database",),
    username_keys=("username", "user id", "user"),
    password_keys=("password",),
)


class DatabaseEngine(enum.Enum):
    """Supported database engines."""
    SQL_SERVER = "SqlServer"
    POSTGRESQL = "PostgreSql"

    @classmethod
    def parse(cls, value: Optional[str]) -> "DatabaseEngine":
        """Parse a DATABASE_ENGINE value, ignoring case.

        Raises:
            ConfigurationError: If value is empty
            UnsupportedDatabaseEngineError: If value names another engine
        """
        if value is None or not value.strip():
            raise ConfigurationError("DatabaseEngine can't be null.")
        for member in cls:
            if member.value.lower() == value.strip().lower():
                return member
        raise UnsupportedDatabaseEngineError(value)

    @property
    def driver(self) -> EngineDriver:
        if self is DatabaseEngine.SQL_SERVER:
            return SQL_SERVER_DRIVER
        return POSTGRESQL_DRIVER


def parse_connection_string(connection_string: str) -> Dict[str, str]:
    """Split an ADO.NET style connection string into lower-cased keys.

    A value wrapped in single or double quotes may contain ";" and "=";
    the quote character itself is written twice inside such a value:

        Password="a;b";User Id=edfi     -> {"password": "a;b", ...}
        Password='it''s'                -> {"password": "it's"}

    Raises:
        ValueError: If a segment is not of the form Key=Value or a quoted
            value is not terminated
    """
    parts: Dict[str, str] = {}
    position = 0
    length = len(connection_string)

    while position < length:
        end = connection_string.find(";", position)
        if end == -1:
            end = length
        segment = connection_string[position:end]
        key, separator, value = segment.partition("=")

        if separator and value.lstrip()[:1] in ("'", '"'):
            quote = value.lstrip()[0]
            start = position + len(key) + 1 + (len(value) - len(value.lstrip())) + 1
            value, position = _read_quoted(connection_string, start, quote)
            trailing_end = connection_string.find(";", position)
            if trailing_end == -1:
                trailing_end = length
            trailing = connection_string[position:trailing_end].strip()
            if trailing:
                raise ValueError(f"Unexpected text after quoted value: '{trailing}'")
            parts[key.strip().lower()] = value
            position = trailing_end + 1
            continue

        if segment.strip():
            if not separator:
                raise ValueError(f"Invalid connection string segment: '{segment.strip()}'")
            parts[key.strip().lower()] = value.strip()
        position = end + 1

    return parts


def _read_quoted(text: str, start: int, quote: str) -> Tuple[str, int]:
    # Returns the unescaped value and the index just past the closing quote
    chars = []
    position = start
    while position < len(text):
        char = text[position]
        if char == quote:
            if text[position + 1:position + 2] == quote:
                chars.append(quote)
                position += 2
                continue
            return "".join(chars), position + 1
        chars.append(char)
        position += 1
    raise ValueError("Unterminated quoted value in connection string")


def _first(parts: Dict[str, str], keys: Tuple[str, ...]) -> Optional[str]:
    for key in keys:
        if parts.get(key):
            return parts[key]
    return None


def _to_port(value: Optional[str]) -> Optional[int]:
    if not value or not value.strip():
        return None
    try:
        return int(value.strip())
    except ValueError:
        raise ValueError(f"Invalid port value: {value}")
