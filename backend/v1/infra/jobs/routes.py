"""
Job administration API endpoints.

Provides operator endpoints for job enqueueing and monitoring.
"""

import logging
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from backend.config.settings import Settings, SettingsDep
from backend.infra.database import get_session
from backend.v1.core.exceptions import (
    BadRequestError,
    NotFoundError,
    ServiceUnavailableError,
    create_success_response,
)
from backend.v1.core.security import AdminDep
from backend.v1.infra.jobs.errors import JobPayloadError, JobStoreError
from backend.v1.infra.jobs.models import JobStatus
from backend.v1.infra.jobs.schemas import JobEnqueueRequest, JobEnqueueResponse
from backend.v1.infra.jobs.service import JobService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/jobs", tags=["jobs"], dependencies=[AdminDep])


@router.post("", response_model=dict, status_code=201)
async def enqueue_job(
    job_request: JobEnqueueRequest,
    session: AsyncSession = Depends(get_session),
    settings: Settings = SettingsDep,
) -> dict[str, Any]:
    """Enqueue a new background job."""

    job_service = JobService(settings)

    try:
        job_id = await job_service.enqueue(
            session,
            job_request.type,
            job_request.payload,
            run_at=job_request.run_at,
            max_attempts=job_request.max_attempts,
        )
    except (ValueError, JobPayloadError) as e:
        raise BadRequestError(str(e))
    except JobStoreError:
        logger.exception("Failed to enqueue job", extra={"type": job_request.type})
        raise ServiceUnavailableError("Failed to enqueue job")

    logger.info(
        "Job enqueued via API",
        extra={"job_id": str(job_id), "type": job_request.type},
    )

    response = JobEnqueueResponse(job_id=job_id)
    return create_success_response(data=response.model_dump(mode="json"))


@router.get("", response_model=dict)
async def list_jobs(
    status: list[JobStatus] | None = Query(
        default=None, description="Filter by status"
    ),
    type: str | None = Query(default=None, description="Filter by job type"),
    limit: int = Query(default=50, ge=1, le=1000, description="Maximum results"),
    offset: int = Query(default=0, ge=0, description="Results offset"),
    session: AsyncSession = Depends(get_session),
    settings: Settings = SettingsDep,
) -> dict[str, Any]:
    """List jobs with filtering and pagination."""

    job_service = JobService(settings)
    response_data = await job_service.list_jobs(
        session, status=status, job_type=type, limit=limit, offset=offset
    )

    return create_success_response(data=response_data.model_dump(mode="json"))


@router.get("/stats/overview", response_model=dict)
async def get_job_stats(
    session: AsyncSession = Depends(get_session),
    settings: Settings = SettingsDep,
) -> dict[str, Any]:
    """Get queue statistics."""

    job_service = JobService(settings)
    stats = await job_service.get_job_stats(session)

    return create_success_response(data=stats.model_dump(mode="json"))


@router.get("/{job_id}", response_model=dict)
async def get_job(
    job_id: UUID,
    session: AsyncSession = Depends(get_session),
    settings: Settings = SettingsDep,
) -> dict[str, Any]:
    """Get a specific job by ID."""

    job_service = JobService(settings)
    job = await job_service.get_job(session, job_id)

    if not job:
        raise NotFoundError("Job not found", details={"job_id": str(job_id)})

    return create_success_response(data=job.model_dump(mode="json"))
