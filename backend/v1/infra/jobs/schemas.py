"""
Job system Pydantic schemas.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from backend.infra.clock import as_utc
from backend.v1.infra.jobs.models import JobStatus


class _UTCModel(BaseModel):
    """Normalises every datetime field to aware UTC."""

    @field_validator("*", mode="after")
    @classmethod
    def _aware_datetimes(cls, value: Any) -> Any:
        if isinstance(value, datetime):
            return as_utc(value)
        return value


class ClaimedJob(_UTCModel):
    """A job leased to one worker."""

    id: UUID
    type: str
    payload: Any = None
    attempts: int
    max_attempts: int
    locked_until: datetime
    locked_by: str

    model_config = ConfigDict(from_attributes=True)


class JobResponse(_UTCModel):
    """Schema for job API responses."""

    id: UUID
    type: str
    payload: Any = None
    status: JobStatus
    run_at: datetime
    attempts: int
    max_attempts: int

    # Lease
    locked_until: datetime | None = None
    locked_by: str | None = None

    last_error: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class JobListResponse(BaseModel):
    """Schema for job list API response."""

    jobs: list[JobResponse]
    total: int
    limit: int
    offset: int


class JobStatsResponse(BaseModel):
    """Schema for job statistics."""

    total_jobs: int
    by_status: dict[str, int]
    by_type: dict[str, int]
    queue_depth: int  # queued + processing
    expired_leases: int
    failed_last_hour: int


class JobEnqueueRequest(BaseModel):
    """Schema for enqueueing jobs via API."""

    type: str = Field(..., min_length=1, description="Job type")
    payload: Any = Field(default_factory=dict, description="Job payload")
    run_at: datetime | None = Field(default=None, description="Scheduled run time")
    max_attempts: int | None = Field(
        default=None, ge=1, description="Attempt ceiling (defaults to JOBS_MAX_ATTEMPTS)"
    )


class JobEnqueueResponse(BaseModel):
    """Schema for job enqueue response."""

    job_id: UUID
    status: JobStatus = JobStatus.QUEUED
