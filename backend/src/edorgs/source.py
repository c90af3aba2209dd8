"""Reading education organizations from an ODS database.

The query returns every state education agency, education service center,
local education agency and school with a single resolved parent:

    School                  -> its local education agency
    LocalEducationAgency    -> parent LEA, else ESC, else SEA
    EducationServiceCenter  -> its state education agency
    StateEducationAgency    -> none
"""

import logging
import threading
from typing import Any, Iterable, List, Mapping, Optional
from uuid import UUID

from sqlalchemy import text

from observability.metrics import edorg_rows_skipped_total
from tenancy.database_engine import EngineDriver
from .schemas import EducationOrganizationResult

logger = logging.getLogger(__name__)

EDUCATION_ORGANIZATIONS_QUERY = """
SELECT edorg.educationorganizationid, edorg.nameofinstitution, edorg.shortnameofinstitution,
       edorg.discriminator, edorg.id,
       COALESCE(scl.localeducationagencyid, lea.parentlocaleducationagencyid,
                lea.educationservicecenterid, lea.stateeducationagencyid,
                esc.stateeducationagencyid) AS parentid
FROM edfi.educationorganization edorg
LEFT JOIN edfi.school scl ON edorg.educationorganizationid = scl.schoolid
LEFT JOIN edfi.localeducationagency lea ON edorg.educationorganizationid = lea.localeducationagencyid
LEFT JOIN edfi.educationservicecenter esc ON edorg.educationorganizationid = esc.educationservicecenterid
WHERE edorg.discriminator IN ('edfi.StateEducationAgency', 'edfi.EducationServiceCenter',
                              'edfi.LocalEducationAgency', 'edfi.School')
"""

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1


class RowParseError(ValueError):
    """Raised when a source row has a missing or malformed value."""
    pass


class RefreshCancelledError(RuntimeError):
    """Raised when a refresh is cancelled part way through."""
    pass


def _to_int64(column: str, value: Any, required: bool = True) -> Optional[int]:
    if value is None:
        if required:
            raise RowParseError(f"Invalid {column} value: None")
        return None
    try:
        number = int(str(value).strip())
    except ValueError:
        raise RowParseError(f"Invalid {column} value: {value}")
    if not INT64_MIN <= number <= INT64_MAX:
        raise RowParseError(f"Invalid {column} value: {value}")
    return number


def _to_str(column: str, value: Any, required: bool = True) -> Optional[str]:
    if value is None:
        if required:
            raise RowParseError(f"Invalid {column} value: None")
        return None
    return str(value)


def _to_uuid(column: str, value: Any) -> UUID:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        raise RowParseError(f"Invalid {column} value: {value}")


def parse_education_organization_row(row: Mapping[str, Any]) -> EducationOrganizationResult:
    """Convert one query row into an EducationOrganizationResult.

    Args:
        row: Row keyed by lower-case column name

    Raises:
        RowParseError: If a required value is missing or malformed
    """
    try:
        return EducationOrganizationResult(
            education_organization_id=_to_int64(
                "educationorganizationid", row["educationorganizationid"]
            ),
            name_of_institution=_to_str("nameofinstitution", row["nameofinstitution"]),
            short_name_of_institution=_to_str(
                "shortnameofinstitution", row.get("shortnameofinstitution"), required=False
            ),
            discriminator=_to_str("discriminator", row["discriminator"]),
            id=_to_uuid("id", row["id"]),
            parent_id=_to_int64("parentid", row.get("parentid"), required=False),
        )
    except KeyError as e:
        raise RowParseError(f"Missing column {e}")


def read_education_organizations(
    rows: Iterable[Mapping[str, Any]],
    cancel_event: Optional[threading.Event] = None,
) -> List[EducationOrganizationResult]:
    """Parse rows, skipping the ones that cannot be converted.

    Errors raised by the row iterator itself (lost connection, query
    timeout) propagate to the caller.

    Raises:
        RefreshCancelledError: If cancel_event is set while reading
    """
    results: List[EducationOrganizationResult] = []
    for row in rows:
        if cancel_event is not None and cancel_event.is_set():
            raise RefreshCancelledError("Education organization read cancelled")
        try:
            results.append(parse_education_organization_row(row))
        except RowParseError as e:
            edorg_rows_skipped_total.inc()
            logger.error(
                f"Data conversion error while reading education organizations: {e}",
                extra={"education_organization_id": row.get("educationorganizationid")},
            )
    return results


class EducationOrganizationSource:
    """Fetches education organizations from an ODS database.

    Example:
        source = EducationOrganizationSource(DatabaseEngine.POSTGRESQL.driver)
        results = source.fetch("host=pg01;database=edfi_ods;username=postgres;password=...")
    """

    def __init__(self, driver: EngineDriver, connect_timeout: Optional[int] = None):
        self.driver = driver
        self.connect_timeout = connect_timeout

    def fetch(
        self,
        connection_string: str,
        cancel_event: Optional[threading.Event] = None,
    ) -> List[EducationOrganizationResult]:
        """Run the education organization query against one ODS database.

        Raises:
            SQLAlchemyError: If the database cannot be reached or queried
            RefreshCancelledError: If cancel_event is set while reading
        """
        engine = self.driver.create_engine(connection_string, self.connect_timeout)
        try:
            with engine.connect() as connection:
                result = connection.execute(text(EDUCATION_ORGANIZATIONS_QUERY))
                rows = (
                    {str(key).lower(): value for key, value in row.items()}
                    for row in result.mappings()
                )
                return read_education_organizations(rows, cancel_event)
        finally:
            engine.dispose()
