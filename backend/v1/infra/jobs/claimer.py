"""
Lease-based claiming, completion and failure of queued jobs.

Claiming is one UPDATE over a one-row SELECT ... FOR UPDATE SKIP LOCKED,
so any number of worker processes can drain the same table without
blocking on each other and without two of them holding a live lease on
the same row.
"""

from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy import and_, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import aliased

from backend.config.logging import get_logger
from backend.infra.clock import Clock, system_clock
from backend.v1.infra.jobs.backoff import compute_backoff, truncate_error
from backend.v1.infra.jobs.errors import JobStoreError
from backend.v1.infra.jobs.models import TERMINAL_STATUSES, Job, JobStatus
from backend.v1.infra.jobs.schemas import ClaimedJob

logger = get_logger(__name__)

DEFAULT_LOCK_TTL = timedelta(minutes=5)


class Claimer:
    """Claims, completes and fails jobs on behalf of one worker."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        worker_id: str,
        lock_ttl: timedelta | None = None,
        clock: Clock = system_clock,
    ):
        if not worker_id:
            raise ValueError("worker_id is required")
        if lock_ttl is None or lock_ttl <= timedelta(0):
            lock_ttl = DEFAULT_LOCK_TTL

        self.session_factory = session_factory
        self.worker_id = worker_id
        self.lock_ttl = lock_ttl
        self.clock = clock

    def _claim_statement(self, now: datetime):
        candidate = aliased(Job, name="candidate")
        lease_free = or_(
            candidate.locked_until.is_(None), candidate.locked_until < now
        )

        next_job = (
            select(candidate.id)
            .where(
                candidate.run_at <= now,
                or_(
                    and_(candidate.status == JobStatus.QUEUED.value, lease_free),
                    # Lease ran out without complete/fail: the worker died
                    and_(
                        candidate.status == JobStatus.PROCESSING.value,
                        candidate.locked_until < now,
                    ),
                ),
            )
            .order_by(candidate.run_at.asc(), candidate.created_at.asc())
            .limit(1)
            .with_for_update(skip_locked=True)
        )

        return (
            update(Job)
            .where(Job.id.in_(next_job))
            .values(
                status=JobStatus.PROCESSING.value,
                attempts=Job.attempts + 1,
                locked_until=now + self.lock_ttl,
                locked_by=self.worker_id,
                updated_at=now,
            )
            .returning(
                Job.id,
                Job.type,
                Job.payload,
                Job.attempts,
                Job.max_attempts,
                Job.locked_until,
                Job.locked_by,
            )
            .execution_options(synchronize_session=False)
        )

    async def claim_next(self) -> ClaimedJob | None:
        """
        Lease the oldest eligible job to this worker.

        Returns:
            The claimed job, or None when nothing is eligible
        """
        now = self.clock.now()

        async with self.session_factory() as session:
            try:
                result = await session.execute(self._claim_statement(now))
                row = result.mappings().one_or_none()
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                raise JobStoreError(f"claim job: {e}") from e

        if row is None:
            return None

        job = ClaimedJob.model_validate(dict(row))
        logger.info(
            "Claimed job",
            worker_id=self.worker_id,
            job_id=str(job.id),
            job_type=job.type,
            attempts=job.attempts,
            max_attempts=job.max_attempts,
            locked_until=job.locked_until.isoformat(),
        )
        return job

    async def complete(self, job_id: UUID) -> bool:
        """
        Mark a job done and release its lease. Safe to call twice.

        A job this worker no longer holds (reclaimed by another worker) or one
        that already failed terminally is left untouched.

        Returns:
            True if the row was updated
        """
        now = self.clock.now()
        stmt = (
            update(Job)
            .where(
                Job.id == job_id,
                Job.status != JobStatus.FAILED.value,
                or_(Job.locked_by.is_(None), Job.locked_by == self.worker_id),
            )
            .values(
                status=JobStatus.DONE.value,
                locked_until=None,
                locked_by=None,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )

        if not await self._execute(stmt, "complete job"):
            logger.debug(
                "Complete skipped, job not held by worker",
                worker_id=self.worker_id,
                job_id=str(job_id),
            )
            return False

        logger.info("Completed job", worker_id=self.worker_id, job_id=str(job_id))
        return True

    async def fail(
        self,
        job_id: UUID,
        attempts: int,
        max_attempts: int,
        error: BaseException | str | None = None,
    ) -> JobStatus | None:
        """
        Record a failed attempt.

        The job is requeued after compute_backoff(attempts) or, once
        attempts reach max_attempts, moved to the terminal failed state.
        Only the worker holding the lease may do this.

        Returns:
            The status the job was moved to, or None when the job is terminal
            or leased to another worker
        """
        now = self.clock.now()
        last_error = truncate_error(error)

        if attempts >= max_attempts:
            status = JobStatus.FAILED
            next_run_at = now
        else:
            status = JobStatus.QUEUED
            next_run_at = now + compute_backoff(attempts)

        stmt = (
            update(Job)
            .where(
                Job.id == job_id,
                Job.status.not_in(TERMINAL_STATUSES),
                Job.locked_by == self.worker_id,
            )
            .values(
                status=status.value,
                run_at=next_run_at,
                locked_until=None,
                locked_by=None,
                last_error=last_error,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )

        if not await self._execute(stmt, "fail job"):
            logger.warning(
                "Failure not recorded, lease lost",
                worker_id=self.worker_id,
                job_id=str(job_id),
                attempts=attempts,
                error=last_error,
            )
            return None

        if status == JobStatus.FAILED:
            logger.error(
                "Job failed permanently",
                worker_id=self.worker_id,
                job_id=str(job_id),
                attempts=attempts,
                max_attempts=max_attempts,
                error=last_error,
            )
        else:
            logger.warning(
                "Job scheduled for retry",
                worker_id=self.worker_id,
                job_id=str(job_id),
                attempts=attempts,
                max_attempts=max_attempts,
                next_run_at=next_run_at.isoformat(),
                error=last_error,
            )
        return status

    async def _execute(self, stmt, action: str) -> int:
        """Run a guarded UPDATE and return the number of rows it changed."""
        async with self.session_factory() as session:
            try:
                result = await session.execute(stmt)
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                raise JobStoreError(f"{action}: {e}") from e
        return result.rowcount
