"""Pydantic schemas for job status endpoints."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from models.job_status import JobRunStatus


class JobStatusModel(BaseModel):
    """Status of a job run."""

    run_id: str = Field(validation_alias="job_id", serialization_alias="runId")
    status: JobRunStatus
    error_message: Optional[str] = Field(default=None, serialization_alias="errorMessage")
    updated_at: Optional[datetime] = Field(default=None, serialization_alias="updatedAt")

    class Config:
        from_attributes = True
