"""
Polling job worker.
"""

import asyncio
import signal
from datetime import timedelta

from backend.config.logging import get_logger, setup_logging
from backend.config.settings import Settings
from backend.infra.clock import Clock, system_clock
from backend.infra.database import Database
from backend.infra.errorreporting import ErrorReporter, build_error_reporter
from backend.v1.core.registries import JobRegistry
from backend.v1.email.sender import build_email_sender
from backend.v1.infra.jobs.claimer import Claimer
from backend.v1.infra.jobs.errors import POISON_ERRORS
from backend.v1.infra.jobs.registry_init import register_job_handlers
from backend.v1.infra.jobs.schemas import ClaimedJob

logger = get_logger(__name__)


class JobWorker:
    """
    Single-threaded poll loop over the jobs table.

    Features:
    - One job claimed and executed per tick
    - Dispatch by job type through the job registry
    - Poison jobs (unknown type, undecodable payload) fail on first claim
    - A failed tick is logged and reported, never fatal
    - Cooperative shutdown checked between ticks
    """

    def __init__(
        self,
        settings: Settings,
        claimer: Claimer,
        registry: JobRegistry,
        reporter: ErrorReporter,
    ):
        self.settings = settings
        self.claimer = claimer
        self.registry = registry
        self.reporter = reporter
        self.worker_id = claimer.worker_id
        self.running = False
        self._stop_event = asyncio.Event()

    async def start(self) -> None:
        """Start the job worker main loop; returns once stop() is called."""
        if self.running:
            raise RuntimeError("Worker is already running")

        self.running = True
        self._stop_event.clear()
        logger.info(
            "Starting job worker",
            worker_id=self.worker_id,
            poll_interval_ms=self.settings.jobs_poll_interval_ms,
            lock_ttl_s=int(self.claimer.lock_ttl.total_seconds()),
            handlers=self.registry.list(),
        )

        try:
            while not self._stop_event.is_set():
                await self.tick()
                await self._wait_for_next_tick()
        finally:
            self.running = False
            logger.info("Job worker stopped", worker_id=self.worker_id)

    async def stop(self) -> None:
        """Ask the loop to exit after the current tick."""
        logger.info("Stopping job worker", worker_id=self.worker_id)
        self._stop_event.set()

    async def _wait_for_next_tick(self) -> None:
        try:
            await asyncio.wait_for(
                self._stop_event.wait(), timeout=self.settings.jobs_poll_interval_s
            )
        except asyncio.TimeoutError:
            pass

    async def tick(self) -> bool:
        """Run one poll; errors are reported and swallowed so the loop survives."""
        try:
            return await self.run_once()
        except Exception as e:
            logger.exception("Error in worker tick", worker_id=self.worker_id)
            self.reporter.capture_exception(
                e, {"component": "worker", "worker_id": self.worker_id}
            )
            return False

    async def run_once(self) -> bool:
        """
        Claim and execute at most one job.

        Returns:
            True if a job was claimed, False if the queue was idle

        Raises:
            JobStoreError: claim, complete or fail could not reach the store
        """
        job = await self.claimer.claim_next()
        if job is None:
            return False

        await self._process_job(job)
        return True

    async def _process_job(self, job: ClaimedJob) -> None:
        job_logger = logger.bind(
            job_id=str(job.id), job_type=job.type, attempts=job.attempts
        )

        try:
            handler = self.registry.get(job.type)

            job_logger.info("Processing job started")
            result = await handler.handle(job)
        except POISON_ERRORS as e:
            job_logger.error("Poison job", error=str(e))
            # Retrying cannot succeed; spend the remaining attempts now
            await self.claimer.fail(
                job.id, max(job.attempts, job.max_attempts), job.max_attempts, e
            )
            return
        except Exception as e:
            job_logger.warning("Processing job failed", error=str(e))
            await self.claimer.fail(job.id, job.attempts, job.max_attempts, e)
            return

        await self.claimer.complete(job.id)
        job_logger.info("Processing job completed successfully", result=result)


def build_worker(
    settings: Settings,
    database: Database,
    registry: JobRegistry | None = None,
    clock: Clock = system_clock,
) -> JobWorker:
    """Wire a worker from settings: claimer, handlers and error reporter."""
    registry = registry or JobRegistry()
    register_job_handlers(registry, build_email_sender(settings), settings)
    if settings.environment == "production":
        registry.freeze()

    claimer = Claimer(
        database.session_factory,
        worker_id=settings.jobs_worker_id,
        lock_ttl=timedelta(seconds=settings.jobs_lock_ttl_s),
        clock=clock,
    )
    return JobWorker(settings, claimer, registry, build_error_reporter(settings))


async def run_worker(settings: Settings, once: bool = False) -> None:
    """Process entry point for the worker (``saas-core worker run``)."""
    setup_logging(settings)

    if not settings.jobs_enabled:
        logger.info("Jobs disabled; exiting")
        return

    database = Database(settings)
    worker = build_worker(settings, database)

    try:
        if once:
            await worker.run_once()
            return

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(
                    sig, lambda: asyncio.ensure_future(worker.stop())
                )
            except NotImplementedError:
                # add_signal_handler is unavailable on Windows event loops
                pass

        await worker.start()
    finally:
        await database.close()
