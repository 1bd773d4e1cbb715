import uuid
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from backend.infra.clock import as_utc
from backend.v1.infra.jobs.backoff import compute_backoff
from backend.v1.infra.jobs.claimer import DEFAULT_LOCK_TTL, Claimer
from backend.v1.infra.jobs.errors import JobStoreError
from backend.v1.infra.jobs.models import Job, JobStatus

from conftest import T0


async def _reload(session_factory, job_id) -> Job:
    async with session_factory() as session:
        result = await session.execute(select(Job).where(Job.id == job_id))
        return result.scalar_one()


class TestClaimNext:
    async def test_empty_queue_returns_none(self, claimer):
        assert await claimer.claim_next() is None

    async def test_claim_takes_lease(self, db_session, job_service, claimer, session_factory):
        job_id = await job_service.enqueue(db_session, "send_email", {"to": "a@b.c"})

        job = await claimer.claim_next()

        assert job.id == job_id
        assert job.type == "send_email"
        assert job.payload == {"to": "a@b.c"}
        assert job.attempts == 1
        assert job.max_attempts == 10
        assert job.locked_by == "test-worker"
        assert job.locked_until == T0 + timedelta(seconds=60)

        row = await _reload(session_factory, job_id)
        assert row.status == JobStatus.PROCESSING.value
        assert row.attempts == 1
        assert row.locked_by == "test-worker"

    async def test_claimed_job_is_not_claimed_again_while_leased(
        self, db_session, job_service, claimer, clock
    ):
        await job_service.enqueue(db_session, "noop", {})

        assert await claimer.claim_next() is not None
        clock.advance(timedelta(seconds=59))
        assert await claimer.claim_next() is None

    async def test_future_job_is_not_claimed_early(
        self, db_session, job_service, claimer, clock
    ):
        job_id = await job_service.enqueue(
            db_session, "noop", {}, run_at=T0 + timedelta(hours=1)
        )

        assert await claimer.claim_next() is None
        clock.advance(timedelta(minutes=59, seconds=59))
        assert await claimer.claim_next() is None

        clock.advance(timedelta(seconds=1))
        job = await claimer.claim_next()
        assert job.id == job_id

    async def test_orders_by_run_at_then_created_at(
        self, db_session, job_service, claimer, clock
    ):
        t = T0 + timedelta(minutes=1)
        late = await job_service.enqueue(
            db_session, "noop", {"n": "late"}, run_at=t + timedelta(seconds=1)
        )
        clock.advance(timedelta(seconds=1))
        older = await job_service.enqueue(db_session, "noop", {"n": "E"}, run_at=t)
        clock.advance(timedelta(seconds=1))
        newer = await job_service.enqueue(db_session, "noop", {"n": "D"}, run_at=t)

        clock.advance(timedelta(minutes=5))
        claimed = [(await claimer.claim_next()).id for _ in range(3)]

        assert claimed == [older, newer, late]

    async def test_attempts_increase_by_one_per_claim(
        self, db_session, job_service, claimer, clock
    ):
        job_id = await job_service.enqueue(db_session, "noop", {})

        seen = []
        for _ in range(4):
            job = await claimer.claim_next()
            assert job.id == job_id
            seen.append(job.attempts)
            await claimer.fail(job.id, job.attempts, job.max_attempts, "retry")
            clock.advance(timedelta(hours=1))

        assert seen == [1, 2, 3, 4]

    async def test_expired_lease_is_reclaimed(
        self, db_session, job_service, claimer, session_factory, clock
    ):
        job_id = await job_service.enqueue(db_session, "noop", {})
        first = await claimer.claim_next()

        # Worker crashed: neither complete nor fail
        clock.advance(timedelta(seconds=61))
        other = Claimer(session_factory, worker_id="other-worker", clock=clock)
        second = await other.claim_next()

        assert second.id == job_id
        assert second.attempts == first.attempts + 1 == 2
        assert second.locked_by == "other-worker"
        assert second.locked_until == clock.now() + DEFAULT_LOCK_TTL

    async def test_terminal_jobs_are_never_claimed(
        self, db_session, job_service, claimer, clock
    ):
        done_id = await job_service.enqueue(db_session, "noop", {})
        failed_id = await job_service.enqueue(db_session, "noop", {}, max_attempts=1)

        for _ in range(2):
            job = await claimer.claim_next()
            if job.id == done_id:
                await claimer.complete(job.id)
            else:
                assert job.id == failed_id
                await claimer.fail(job.id, job.attempts, job.max_attempts, "boom")

        clock.advance(timedelta(days=1))
        assert await claimer.claim_next() is None

    async def test_claimers_never_share_a_job(
        self, db_session, job_service, session_factory, clock
    ):
        ids = set()
        for i in range(5):
            ids.add(await job_service.enqueue(db_session, "noop", {"i": i}))

        claimers = [
            Claimer(session_factory, worker_id=f"worker-{n}", clock=clock)
            for n in range(3)
        ]
        claimed = []
        for _ in range(2):
            for c in claimers:
                job = await c.claim_next()
                if job is not None:
                    claimed.append(job.id)

        assert len(claimed) == 5
        assert set(claimed) == ids


class TestComplete:
    async def test_complete_releases_lease(
        self, db_session, job_service, claimer, session_factory
    ):
        job_id = await job_service.enqueue(db_session, "noop", {})
        await claimer.claim_next()

        await claimer.complete(job_id)

        row = await _reload(session_factory, job_id)
        assert row.status == JobStatus.DONE.value
        assert row.locked_until is None
        assert row.locked_by is None

    async def test_complete_is_idempotent(
        self, db_session, job_service, claimer, session_factory
    ):
        job_id = await job_service.enqueue(db_session, "noop", {})
        await claimer.claim_next()

        await claimer.complete(job_id)
        await claimer.complete(job_id)

        row = await _reload(session_factory, job_id)
        assert row.status == JobStatus.DONE.value

    async def test_complete_does_not_revive_failed_job(
        self, db_session, job_service, claimer, session_factory
    ):
        job_id = await job_service.enqueue(db_session, "noop", {}, max_attempts=1)
        job = await claimer.claim_next()
        await claimer.fail(job.id, job.attempts, job.max_attempts, "boom")

        assert await claimer.complete(job_id) is False

        row = await _reload(session_factory, job_id)
        assert row.status == JobStatus.FAILED.value


class TestFail:
    async def test_fail_requeues_with_backoff(
        self, db_session, job_service, claimer, session_factory, clock
    ):
        job_id = await job_service.enqueue(db_session, "noop", {})
        job = await claimer.claim_next()

        status = await claimer.fail(job.id, job.attempts, job.max_attempts, ValueError("bad"))

        assert status == JobStatus.QUEUED
        row = await _reload(session_factory, job_id)
        assert row.status == JobStatus.QUEUED.value
        assert row.last_error == "bad"
        assert row.locked_until is None
        assert row.locked_by is None
        run_at = as_utc(row.run_at)
        assert run_at == clock.now() + compute_backoff(1)
        assert run_at > clock.now()

    async def test_fail_at_max_attempts_is_terminal(
        self, db_session, job_service, claimer, session_factory
    ):
        job_id = await job_service.enqueue(db_session, "noop", {}, max_attempts=1)
        job = await claimer.claim_next()

        status = await claimer.fail(job.id, job.attempts, job.max_attempts, "fatal")

        assert status == JobStatus.FAILED
        row = await _reload(session_factory, job_id)
        assert row.status == JobStatus.FAILED.value
        assert row.last_error == "fatal"

    async def test_retry_delays_do_not_shrink(
        self, db_session, job_service, claimer, session_factory, clock
    ):
        job_id = await job_service.enqueue(db_session, "noop", {}, max_attempts=20)

        delays = []
        for _ in range(12):
            job = await claimer.claim_next()
            await claimer.fail(job.id, job.attempts, job.max_attempts, "again")
            row = await _reload(session_factory, job_id)
            delays.append(as_utc(row.run_at) - clock.now())
            clock.advance(timedelta(hours=1))

        assert all(d > timedelta(0) for d in delays)
        assert delays == sorted(delays)

    async def test_job_failed_max_times_is_never_claimed_again(
        self, db_session, job_service, claimer, session_factory, clock
    ):
        job_id = await job_service.enqueue(db_session, "noop", {}, max_attempts=3)

        for attempt in range(1, 4):
            job = await claimer.claim_next()
            assert job.id == job_id
            assert job.attempts == attempt
            await claimer.fail(job.id, job.attempts, job.max_attempts, f"fail {attempt}")
            clock.advance(timedelta(hours=1))

        row = await _reload(session_factory, job_id)
        assert row.status == JobStatus.FAILED.value
        assert row.attempts == 3
        assert await claimer.claim_next() is None

    async def test_fail_truncates_long_errors(
        self, db_session, job_service, claimer, session_factory
    ):
        job_id = await job_service.enqueue(db_session, "noop", {})
        job = await claimer.claim_next()

        await claimer.fail(job.id, job.attempts, job.max_attempts, "x" * 10_000)

        row = await _reload(session_factory, job_id)
        assert len(row.last_error) == 2000


class TestLeaseOwnership:
    async def _reclaimed(self, db_session, job_service, claimer, session_factory, clock):
        job_id = await job_service.enqueue(db_session, "noop", {})
        stale = await claimer.claim_next()

        clock.advance(timedelta(seconds=61))
        other = Claimer(
            session_factory, worker_id="other-worker", lock_ttl=timedelta(seconds=60), clock=clock
        )
        current = await other.claim_next()
        assert current.id == job_id
        return stale, current, other

    async def test_stale_fail_leaves_live_lease_alone(
        self, db_session, job_service, claimer, session_factory, clock
    ):
        stale, current, _ = await self._reclaimed(
            db_session, job_service, claimer, session_factory, clock
        )

        status = await claimer.fail(stale.id, stale.attempts, stale.max_attempts, "late")

        assert status is None
        row = await _reload(session_factory, stale.id)
        assert row.status == JobStatus.PROCESSING.value
        assert row.locked_by == "other-worker"
        assert row.attempts == 2
        assert row.last_error is None

        clock.advance(timedelta(seconds=10))
        third = Claimer(session_factory, worker_id="third-worker", clock=clock)
        assert await third.claim_next() is None

    async def test_stale_complete_leaves_live_lease_alone(
        self, db_session, job_service, claimer, session_factory, clock
    ):
        stale, _, other = await self._reclaimed(
            db_session, job_service, claimer, session_factory, clock
        )

        assert await claimer.complete(stale.id) is False

        row = await _reload(session_factory, stale.id)
        assert row.status == JobStatus.PROCESSING.value
        assert row.locked_by == "other-worker"

        assert await other.complete(stale.id) is True
        row = await _reload(session_factory, stale.id)
        assert row.status == JobStatus.DONE.value

    async def test_lease_holder_can_still_fail_after_expiry(
        self, db_session, job_service, claimer, session_factory, clock
    ):
        job_id = await job_service.enqueue(db_session, "noop", {})
        job = await claimer.claim_next()

        # Expired but not yet reclaimed by anyone
        clock.advance(timedelta(seconds=61))
        status = await claimer.fail(job.id, job.attempts, job.max_attempts, "slow")

        assert status == JobStatus.QUEUED
        row = await _reload(session_factory, job_id)
        assert row.locked_by is None


class TestClaimerConfig:
    def test_requires_worker_id(self, session_factory):
        with pytest.raises(ValueError, match="worker_id"):
            Claimer(session_factory, worker_id="")

    @pytest.mark.parametrize("ttl", [None, timedelta(0), timedelta(seconds=-5)])
    def test_non_positive_ttl_uses_default(self, session_factory, ttl):
        claimer = Claimer(session_factory, worker_id="w", lock_ttl=ttl)
        assert claimer.lock_ttl == DEFAULT_LOCK_TTL

    async def test_store_errors_are_wrapped(self, clock):
        session = MagicMock()
        session.execute = AsyncMock(
            side_effect=OperationalError("UPDATE jobs", {}, Exception("db down"))
        )
        session.rollback = AsyncMock()
        context = MagicMock()
        context.__aenter__ = AsyncMock(return_value=session)
        context.__aexit__ = AsyncMock(return_value=None)
        factory = MagicMock(return_value=context)

        claimer = Claimer(factory, worker_id="w", clock=clock)

        with pytest.raises(JobStoreError, match="claim job"):
            await claimer.claim_next()
        with pytest.raises(JobStoreError, match="complete job"):
            await claimer.complete(uuid.uuid4())
        session.rollback.assert_awaited()
