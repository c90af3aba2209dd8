"""Job status persistence.

Status rows live in the admin database. In multi-tenant mode a run that
belongs to a tenant records its status in that tenant's admin database.
"""

import logging
from typing import Callable, Optional

from sqlalchemy.orm import Session

from database import get_db_session
from models.job_status import JobRunStatus, JobStatus

logger = logging.getLogger(__name__)


class JobStatusService:
    """Create and update JobStatus rows keyed by run id.

    Example:
        service = JobStatusService(SessionLocal, context_provider, multi_tenancy=True)
        service.set_status(run_id, JobRunStatus.IN_PROGRESS, "tenant1")
        service.set_status(run_id, JobRunStatus.ERROR, "tenant1", "Timeout")
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        context_provider=None,
        multi_tenancy: bool = False,
    ):
        """Initialize the service.

        Args:
            session_factory: Factory for sessions on the default admin database
            context_provider: TenantSpecificDbContextProvider used for
                tenant-scoped runs when multi_tenancy is enabled
            multi_tenancy: Whether tenant names select a tenant database
        """
        self.session_factory = session_factory
        self.context_provider = context_provider
        self.multi_tenancy = multi_tenancy

    def set_status(
        self,
        run_id: str,
        status: JobRunStatus,
        tenant_name: Optional[str] = None,
        error_message: Optional[str] = None,
    ) -> None:
        """Record the status of a run, creating its row on first use.

        The error message is overwritten on every call, so a later
        COMPLETED status clears a previous error.

        Raises:
            TenantNotFoundError: If tenant_name is not a configured tenant
        """
        with get_db_session(lambda: self._open_session(tenant_name)) as session:
            job_status = session.query(JobStatus).filter(JobStatus.job_id == run_id).first()
            if job_status is None:
                job_status = JobStatus(job_id=run_id)
                session.add(job_status)

            job_status.status = status
            job_status.error_message = error_message

        logger.debug(
            f"Job run {run_id} is {status.value}",
            extra={"run_id": run_id, "tenant": tenant_name},
        )

    def get_status(self, run_id: str, tenant_name: Optional[str] = None) -> Optional[JobStatus]:
        """Get the status row of a run, or None if it was never recorded."""
        session = self._open_session(tenant_name)
        try:
            job_status = session.query(JobStatus).filter(JobStatus.job_id == run_id).first()
            if job_status is not None:
                session.expunge(job_status)
            return job_status
        finally:
            session.close()

    def _open_session(self, tenant_name: Optional[str]) -> Session:
        if self.multi_tenancy and tenant_name:
            return self.context_provider.get_admin_session(tenant_name)
        return self.session_factory()
