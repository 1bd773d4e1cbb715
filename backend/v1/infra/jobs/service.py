"""
Job service for enqueueing and inspecting background jobs.
"""

import json
import logging
import uuid
from datetime import datetime, timedelta
from typing import Any
from uuid import UUID

from pydantic import BaseModel
from sqlalchemy import and_, desc, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.config.settings import Settings
from backend.infra.clock import Clock, as_utc, system_clock
from backend.v1.infra.jobs.errors import JobPayloadError, JobStoreError
from backend.v1.infra.jobs.models import Job, JobStatus
from backend.v1.infra.jobs.schemas import (
    JobListResponse,
    JobResponse,
    JobStatsResponse,
)

logger = logging.getLogger(__name__)


def encode_payload(payload: Any) -> Any:
    """Return a JSON-compatible copy of ``payload`` or raise JobPayloadError."""
    if isinstance(payload, BaseModel):
        payload = payload.model_dump(mode="json")
    try:
        return json.loads(json.dumps(payload, allow_nan=False))
    except (TypeError, ValueError) as e:
        raise JobPayloadError(f"marshal job payload: {e}") from e


class JobService:
    """Enqueue side of the job queue plus read-only diagnostics."""

    def __init__(self, settings: Settings, clock: Clock = system_clock):
        self.settings = settings
        self.clock = clock

    async def enqueue(
        self,
        session: AsyncSession,
        job_type: str,
        payload: Any,
        run_at: datetime | None = None,
        max_attempts: int | None = None,
    ) -> UUID:
        """
        Durably insert a queued job.

        Args:
            session: Database session; the insert is committed here
            job_type: Handler tag, must be non-empty
            payload: Any JSON-serializable value (pydantic models are dumped)
            run_at: Earliest claim time; None or a past time means now
            max_attempts: Attempt ceiling, defaults to JOBS_MAX_ATTEMPTS

        Returns:
            The id of the new job
        """
        if not job_type or not job_type.strip():
            raise ValueError("job type is required")

        if max_attempts is None:
            max_attempts = self.settings.jobs_max_attempts
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got: {max_attempts}")

        encoded = encode_payload(payload)
        now = self.clock.now()
        job_id = uuid.uuid4()
        scheduled_at = as_utc(run_at) or now

        job = Job(
            id=job_id,
            type=job_type,
            payload=encoded,
            status=JobStatus.QUEUED.value,
            run_at=scheduled_at,
            attempts=0,
            max_attempts=max_attempts,
            created_at=now,
            updated_at=now,
        )

        try:
            session.add(job)
            await session.commit()
        except SQLAlchemyError as e:
            await session.rollback()
            raise JobStoreError(f"insert job: {e}") from e

        logger.info(
            "Job enqueued",
            extra={
                "job_id": str(job_id),
                "type": job_type,
                "run_at": scheduled_at.isoformat(),
                "max_attempts": max_attempts,
            },
        )

        return job_id

    async def get_job(self, session: AsyncSession, job_id: UUID) -> JobResponse | None:
        """Get job by ID."""
        result = await session.execute(select(Job).where(Job.id == job_id))
        job = result.scalar_one_or_none()
        if job is None:
            return None
        return JobResponse.model_validate(job)

    async def list_jobs(
        self,
        session: AsyncSession,
        status: list[JobStatus] | None = None,
        job_type: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> JobListResponse:
        """List jobs, newest first, with optional status/type filters."""
        base_query = select(Job)

        if status:
            base_query = base_query.where(Job.status.in_([s.value for s in status]))

        if job_type:
            base_query = base_query.where(Job.type == job_type)

        count_query = select(func.count()).select_from(base_query.subquery())
        total = (await session.execute(count_query)).scalar() or 0

        jobs_query = (
            base_query.order_by(desc(Job.created_at)).offset(offset).limit(limit)
        )
        jobs = (await session.execute(jobs_query)).scalars().all()

        return JobListResponse(
            jobs=[JobResponse.model_validate(job) for job in jobs],
            total=total,
            limit=limit,
            offset=offset,
        )

    async def get_job_stats(self, session: AsyncSession) -> JobStatsResponse:
        """Get queue statistics."""
        now = self.clock.now()

        total_jobs = (await session.execute(select(func.count(Job.id)))).scalar() or 0

        status_result = await session.execute(
            select(Job.status, func.count(Job.id)).group_by(Job.status)
        )
        by_status = {status: count for status, count in status_result.all()}

        type_result = await session.execute(
            select(Job.type, func.count(Job.id)).group_by(Job.type)
        )
        by_type = {job_type: count for job_type, count in type_result.all()}

        queue_depth = by_status.get(JobStatus.QUEUED.value, 0) + by_status.get(
            JobStatus.PROCESSING.value, 0
        )

        # Leases held by workers that never reported back
        expired_result = await session.execute(
            select(func.count(Job.id)).where(
                and_(
                    Job.status == JobStatus.PROCESSING.value,
                    Job.locked_until < now,
                )
            )
        )
        expired_leases = expired_result.scalar() or 0

        failed_recent_result = await session.execute(
            select(func.count(Job.id)).where(
                and_(
                    Job.status == JobStatus.FAILED.value,
                    Job.updated_at >= now - timedelta(hours=1),
                )
            )
        )
        failed_last_hour = failed_recent_result.scalar() or 0

        return JobStatsResponse(
            total_jobs=total_jobs,
            by_status=by_status,
            by_type=by_type,
            queue_depth=queue_depth,
            expired_leases=expired_leases,
            failed_last_hour=failed_last_hour,
        )
