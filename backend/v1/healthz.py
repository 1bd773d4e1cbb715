from datetime import UTC, datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import func, select, text
from sqlalchemy.ext.asyncio import AsyncSession

from backend.config.settings import Settings, SettingsDep
from backend.infra.database import get_session
from backend.v1.core.exceptions import create_success_response
from backend.v1.infra.jobs.models import Job, JobStatus

router = APIRouter()


class DatabaseHealth(BaseModel):
    """Database health status."""

    connected: bool
    response_time_ms: float | None = None
    error: str | None = None


class QueueHealth(BaseModel):
    """Job queue health status."""

    queue_depth: int = 0
    processing: int = 0
    expired_leases: int = 0
    failed: int = 0


class HealthResponse(BaseModel):
    """Health response with database and queue status."""

    ok: bool
    version: str
    environment: str
    timestamp: str
    database: DatabaseHealth
    queue: QueueHealth | None = None


@router.get("/healthz", response_model=dict)
async def health_check(
    settings: Settings = SettingsDep, session: AsyncSession = Depends(get_session)
):
    """Health check endpoint with database and queue status."""

    timestamp = datetime.now(UTC).isoformat()

    db_health = await _check_database_health(session)

    # Queue health failure doesn't fail overall health
    queue_health = None
    if db_health.connected:
        try:
            queue_health = await _check_queue_health(session)
        except Exception:
            queue_health = QueueHealth()

    health = HealthResponse(
        ok=db_health.connected,
        version=settings.version,
        environment=settings.environment,
        timestamp=timestamp,
        database=db_health,
        queue=queue_health,
    )

    return create_success_response(data=health.model_dump())


async def _check_database_health(session: AsyncSession) -> DatabaseHealth:
    """Check database connectivity and response time."""
    start_time = datetime.now(UTC)

    try:
        # Simple query to test database connectivity
        await session.execute(text("SELECT 1"))

        end_time = datetime.now(UTC)
        response_time_ms = (end_time - start_time).total_seconds() * 1000

        return DatabaseHealth(
            connected=True, response_time_ms=round(response_time_ms, 2)
        )

    except Exception as e:
        return DatabaseHealth(connected=False, error=str(e))


async def _check_queue_health(session: AsyncSession) -> QueueHealth:
    """Summarise queue depth and stale leases."""
    now = datetime.now(UTC)

    status_result = await session.execute(
        select(Job.status, func.count(Job.id)).group_by(Job.status)
    )
    by_status = {status: count for status, count in status_result.all()}

    # Processing jobs whose lease lapsed: the owning worker likely crashed
    expired_result = await session.execute(
        select(func.count(Job.id)).where(
            Job.status == JobStatus.PROCESSING.value, Job.locked_until < now
        )
    )

    processing = by_status.get(JobStatus.PROCESSING.value, 0)
    return QueueHealth(
        queue_depth=by_status.get(JobStatus.QUEUED.value, 0) + processing,
        processing=processing,
        expired_leases=expired_result.scalar() or 0,
        failed=by_status.get(JobStatus.FAILED.value, 0),
    )
