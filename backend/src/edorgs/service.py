"""Education organization refresh.

Brings the education_organization cache of an admin database in line with
the organizations currently stored in each registered ODS database.

For every targeted ODS instance:

1. Decrypt the instance's connection string
2. Query its education organizations (see source.EDUCATION_ORGANIZATIONS_QUERY)
3. Update cached rows still present, insert new ones, delete the rest
4. Commit once

Instances are refreshed in a thread pool of at most max_parallelism workers.
A failing instance is logged and reported in the summary without affecting
the other instances of the run.
"""

import contextvars
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from infrastructure.encryption import SymmetricStringEncryptionProvider
from models.education_organization import EducationOrganization
from models.ods_instance import OdsInstance
from observability.metrics import (
    edorg_instance_refresh_duration_seconds,
    edorg_instance_refresh_total,
    edorg_rows_reconciled_total,
)
from .options import RefreshOptions
from .schemas import EducationOrganizationResult, OdsInstanceTarget
from .source import EducationOrganizationSource, RefreshCancelledError

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], Session]


@dataclass
class InstanceRefreshResult:
    """Outcome of refreshing one ODS instance."""

    instance_id: int
    succeeded: bool
    inserted: int = 0
    updated: int = 0
    deleted: int = 0
    error: Optional[str] = None


@dataclass
class RefreshSummary:
    """Outcome of one refresh run."""

    tenant_name: Optional[str] = None
    results: List[InstanceRefreshResult] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return len(self.results)

    @property
    def succeeded(self) -> List[int]:
        return [r.instance_id for r in self.results if r.succeeded]

    @property
    def failed(self) -> List[int]:
        return [r.instance_id for r in self.results if not r.succeeded]

    def to_dict(self) -> Dict:
        return {
            "tenant_name": self.tenant_name,
            "processed": self.processed,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "instances": [
                {
                    "instance_id": r.instance_id,
                    "succeeded": r.succeeded,
                    "inserted": r.inserted,
                    "updated": r.updated,
                    "deleted": r.deleted,
                    "error": r.error,
                }
                for r in self.results
            ],
        }


# One lock per (tenant, instance) so two runs in this process never
# reconcile the same instance at the same time.
_instance_locks: Dict[Tuple[str, int], threading.Lock] = {}
_instance_locks_guard = threading.Lock()


def _instance_lock(tenant_name: Optional[str], instance_id: int) -> threading.Lock:
    key = (tenant_name or "", instance_id)
    with _instance_locks_guard:
        lock = _instance_locks.get(key)
        if lock is None:
            lock = _instance_locks[key] = threading.Lock()
        return lock


def reconcile_education_organizations(
    session: Session,
    instance: OdsInstanceTarget,
    results: Sequence[EducationOrganizationResult],
    now: Optional[datetime] = None,
) -> Dict[str, int]:
    """Apply a full-replace of one instance's cached organizations.

    Changes are added to the session; the caller commits.

    Returns:
        Dict with inserted, updated and deleted counts
    """
    now = now or datetime.now(timezone.utc)
    existing: Dict[int, EducationOrganization] = {
        row.education_organization_id: row
        for row in session.query(EducationOrganization).filter(
            EducationOrganization.instance_id == instance.instance_id
        )
    }

    counts = {"inserted": 0, "updated": 0, "deleted": 0}
    seen = set()

    for result in results:
        seen.add(result.education_organization_id)
        row = existing.get(result.education_organization_id)

        if row is None:
            row = EducationOrganization(
                instance_id=instance.instance_id,
                instance_name=instance.name,
                education_organization_id=result.education_organization_id,
            )
            session.add(row)
            existing[result.education_organization_id] = row
            counts["inserted"] += 1
        else:
            counts["updated"] += 1

        row.name_of_institution = result.name_of_institution
        row.short_name_of_institution = result.short_name_of_institution
        row.discriminator = result.discriminator
        row.parent_id = result.parent_id
        row.last_modified_date = now
        row.last_refreshed = now

    for education_organization_id, row in existing.items():
        if education_organization_id not in seen:
            session.delete(row)
            counts["deleted"] += 1

    return counts


class EducationOrganizationService:
    """Refreshes the education organization cache of one admin database scope.

    Example:
        service = EducationOrganizationService.from_settings(get_settings())
        summary = service.execute(tenant_name="tenant1")
        summary.failed  # instance ids that could not be refreshed
    """

    def __init__(
        self,
        options: RefreshOptions,
        session_factory: SessionFactory,
        encryption_provider: Optional[SymmetricStringEncryptionProvider] = None,
        context_provider=None,
        source: Optional[EducationOrganizationSource] = None,
        cancel_event: Optional[threading.Event] = None,
    ):
        """Initialize the service.

        Args:
            options: Settings snapshot of the run
            session_factory: Sessions on the default admin database, used
                when multi-tenancy is off
            encryption_provider: Decrypts ODS connection strings
            context_provider: TenantSpecificDbContextProvider, required
                when multi-tenancy is on
            source: Education organization source; defaults to one built
                for the configured database engine
            cancel_event: Set to stop the run at the next row or commit
        """
        self.options = options
        self.session_factory = session_factory
        self.encryption_provider = encryption_provider or SymmetricStringEncryptionProvider()
        self.context_provider = context_provider
        self.source = source
        self.cancel_event = cancel_event

    @classmethod
    def from_settings(cls, settings, cancel_event: Optional[threading.Event] = None):
        """Build a service from application settings."""
        from database import SessionLocal
        from tenancy import get_context_provider

        options = RefreshOptions.from_settings(settings)
        return cls(
            options,
            SessionLocal,
            context_provider=get_context_provider() if options.multi_tenancy else None,
            cancel_event=cancel_event,
        )

    def execute(
        self,
        tenant_name: Optional[str] = None,
        instance_id: Optional[int] = None,
    ) -> RefreshSummary:
        """Refresh all ODS instances of a scope, or only instance_id.

        Raises:
            ConfigurationError: If the encryption key or engine is missing
            UnsupportedDatabaseEngineError: If the engine is not supported
            TenantNotFoundError: If tenant_name is not a configured tenant
        """
        self.options.validate()

        if self.options.multi_tenancy:
            if not tenant_name:
                logger.error(
                    "Tenant name is required when multi-tenancy is enabled. "
                    "Skipping education organization refresh."
                )
                return RefreshSummary()
            admin_session_factory = self.context_provider.get_admin_session_factory(tenant_name)
            users_session_factory = self.context_provider.get_users_session_factory(tenant_name)
        else:
            tenant_name = None
            admin_session_factory = users_session_factory = self.session_factory

        instances = self._load_instances(users_session_factory, instance_id)
        summary = self._refresh_instances(admin_session_factory, instances, tenant_name)

        logger.info(
            f"Refreshed education organizations of {summary.processed} ODS instances: "
            f"{len(summary.succeeded)} succeeded, {len(summary.failed)} failed",
            extra={"tenant": tenant_name},
        )
        return summary

    def refresh_education_organizations(
        self,
        admin_session_factory: SessionFactory,
        instance: OdsInstanceTarget,
    ) -> InstanceRefreshResult:
        """Refresh one ODS instance and commit its changes.

        Decryption failures are reported in the result. Query, reconcile
        and commit errors propagate.
        """
        succeeded, connection_string = self.encryption_provider.try_decrypt(
            instance.connection_string, self.options.key_bytes
        )
        if not succeeded:
            logger.error(
                f"Failed to decrypt connection string for ODS instance {instance.instance_id}. Skipping...",
                extra={"instance_id": instance.instance_id},
            )
            return InstanceRefreshResult(
                instance_id=instance.instance_id,
                succeeded=False,
                error="Connection string could not be decrypted",
            )

        results = self._get_source().fetch(connection_string, self.cancel_event)

        session = admin_session_factory()
        try:
            counts = reconcile_education_organizations(session, instance, results)
            self._raise_if_cancelled(instance)
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

        for operation, count in counts.items():
            edorg_rows_reconciled_total.labels(operation=operation).inc(count)

        logger.info(
            f"Refreshed education organizations for ODS instance {instance.instance_id}: "
            f"{counts['inserted']} inserted, {counts['updated']} updated, {counts['deleted']} deleted",
            extra={"instance_id": instance.instance_id},
        )
        return InstanceRefreshResult(instance_id=instance.instance_id, succeeded=True, **counts)

    def _get_source(self) -> EducationOrganizationSource:
        if self.source is None:
            self.source = EducationOrganizationSource(
                self.options.engine.driver, self.options.connect_timeout
            )
        return self.source

    def _load_instances(
        self,
        users_session_factory: SessionFactory,
        instance_id: Optional[int],
    ) -> List[OdsInstanceTarget]:
        session = users_session_factory()
        try:
            query = session.query(OdsInstance)
            if instance_id is not None:
                instance = query.filter(OdsInstance.ods_instance_id == instance_id).first()
                if instance is None:
                    logger.warning(
                        f"ODS Instance with ID {instance_id} not found. Skipping...",
                        extra={"instance_id": instance_id},
                    )
                    return []
                instances = [instance]
            else:
                instances = query.order_by(OdsInstance.ods_instance_id).all()

            return [
                OdsInstanceTarget(
                    instance_id=instance.ods_instance_id,
                    name=instance.name,
                    connection_string=instance.connection_string,
                )
                for instance in instances
            ]
        finally:
            session.close()

    def _refresh_instances(
        self,
        admin_session_factory: SessionFactory,
        instances: List[OdsInstanceTarget],
        tenant_name: Optional[str],
    ) -> RefreshSummary:
        summary = RefreshSummary(tenant_name=tenant_name)
        if not instances:
            return summary

        max_workers = min(self.options.max_parallelism, len(instances))
        with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="edorg-refresh") as executor:
            # Each task runs in a copy of the caller's context to keep log correlation
            futures = [
                executor.submit(
                    contextvars.copy_context().run,
                    self._refresh_isolated,
                    admin_session_factory,
                    instance,
                    tenant_name,
                )
                for instance in instances
            ]
            summary.results = [future.result() for future in futures]

        return summary

    def _refresh_isolated(
        self,
        admin_session_factory: SessionFactory,
        instance: OdsInstanceTarget,
        tenant_name: Optional[str],
    ) -> InstanceRefreshResult:
        start = time.time()
        try:
            self._raise_if_cancelled(instance)
            with _instance_lock(tenant_name, instance.instance_id):
                result = self.refresh_education_organizations(admin_session_factory, instance)
        except RefreshCancelledError as e:
            logger.warning(
                f"Refresh of ODS instance {instance.instance_id} cancelled. No changes were saved.",
                extra={"instance_id": instance.instance_id},
            )
            edorg_instance_refresh_total.labels(outcome="cancelled").inc()
            return InstanceRefreshResult(instance.instance_id, succeeded=False, error=str(e))
        except Exception as e:
            logger.error(
                f"Failed to refresh education organizations for ODS instance {instance.instance_id}",
                exc_info=True,
                extra={"instance_id": instance.instance_id},
            )
            edorg_instance_refresh_total.labels(outcome="failed").inc()
            return InstanceRefreshResult(instance.instance_id, succeeded=False, error=str(e))

        edorg_instance_refresh_duration_seconds.observe(time.time() - start)
        edorg_instance_refresh_total.labels(
            outcome="succeeded" if result.succeeded else "failed"
        ).inc()
        return result

    def _raise_if_cancelled(self, instance: OdsInstanceTarget) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise RefreshCancelledError(
                f"Refresh of ODS instance {instance.instance_id} was cancelled"
            )
