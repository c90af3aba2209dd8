"""JobStatus model - Lifecycle status of background job runs.

One row per run id ("{job_id}_{fire_token}"), created on the first status
transition and updated in place afterwards.
"""

import enum

from sqlalchemy import Column, String, Text, TIMESTAMP, Enum as SQLEnum, func

from .base import Base, PortableBigInteger


class JobRunStatus(str, enum.Enum):
    """Status of a job run."""
    PENDING = "Pending"  # Enqueued but not yet started
    IN_PROGRESS = "InProgress"  # Currently executing
    COMPLETED = "Completed"  # Finished without error
    ERROR = "Error"  # Failed, see error_message


class JobStatus(Base):
    """Status row of a single job run."""
    __tablename__ = "job_status"

    id = Column(PortableBigInteger, primary_key=True, autoincrement=True)
    job_id = Column(
        String(255),
        nullable=False,
        unique=True,
        comment="Run id of the job execution"
    )
    status = Column(
        SQLEnum(
            JobRunStatus,
            name="jobrunstatus",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
        default=JobRunStatus.PENDING
    )
    error_message = Column(Text, nullable=True)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now()
    )

    def __repr__(self):
        return f"<JobStatus(job_id='{self.job_id}', status={self.status})>"
