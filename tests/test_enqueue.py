import math
import uuid
from datetime import UTC, datetime, timedelta, timezone

import pytest
from pydantic import BaseModel
from sqlalchemy import select

from backend.v1.infra.jobs.errors import JobPayloadError
from backend.v1.infra.jobs.models import Job, JobStatus
from backend.v1.infra.jobs.service import encode_payload

from conftest import T0


async def _load(session, job_id) -> Job:
    result = await session.execute(select(Job).where(Job.id == job_id))
    return result.scalar_one()


async def test_enqueue_inserts_queued_job(db_session, job_service):
    job_id = await job_service.enqueue(db_session, "send_email", {"to": "a@b.c"})

    job = await _load(db_session, job_id)
    assert job.type == "send_email"
    assert job.payload == {"to": "a@b.c"}
    assert job.status == JobStatus.QUEUED.value
    assert job.attempts == 0
    assert job.max_attempts == 10
    assert job.locked_until is None
    assert job.locked_by is None
    assert job.last_error is None


async def test_enqueue_defaults_run_at_to_now(db_session, job_service):
    job_id = await job_service.enqueue(db_session, "noop", {})

    job = await job_service.get_job(db_session, job_id)
    assert job.run_at == T0
    assert job.created_at == T0


async def test_enqueue_keeps_future_run_at(db_session, job_service):
    later = T0 + timedelta(hours=1)
    job_id = await job_service.enqueue(db_session, "noop", {}, run_at=later)

    job = await job_service.get_job(db_session, job_id)
    assert job.run_at == later


async def test_enqueue_normalises_run_at_to_utc(db_session, job_service):
    plus_two = timezone(timedelta(hours=2))
    local = datetime(2026, 1, 1, 16, 0, tzinfo=plus_two)

    job_id = await job_service.enqueue(db_session, "noop", {}, run_at=local)

    job = await job_service.get_job(db_session, job_id)
    assert job.run_at == datetime(2026, 1, 1, 14, 0, tzinfo=UTC)


async def test_enqueue_explicit_max_attempts(db_session, job_service):
    job_id = await job_service.enqueue(db_session, "noop", {}, max_attempts=3)

    job = await _load(db_session, job_id)
    assert job.max_attempts == 3


@pytest.mark.parametrize("job_type", ["", "   "])
async def test_enqueue_rejects_blank_type(db_session, job_service, job_type):
    with pytest.raises(ValueError, match="job type is required"):
        await job_service.enqueue(db_session, job_type, {})


@pytest.mark.parametrize("max_attempts", [0, -1])
async def test_enqueue_rejects_invalid_max_attempts(db_session, job_service, max_attempts):
    with pytest.raises(ValueError, match="max_attempts"):
        await job_service.enqueue(db_session, "noop", {}, max_attempts=max_attempts)


async def test_enqueue_rejects_unserialisable_payload(db_session, job_service):
    with pytest.raises(JobPayloadError):
        await job_service.enqueue(db_session, "noop", {"when": object()})

    total = (await db_session.execute(select(Job))).scalars().all()
    assert total == []


def test_encode_payload_dumps_pydantic_models():
    class Payload(BaseModel):
        to: str
        when: datetime

    encoded = encode_payload(Payload(to="a@b.c", when=T0))

    assert encoded == {"to": "a@b.c", "when": "2026-01-01T12:00:00Z"}


def test_encode_payload_rejects_nan():
    with pytest.raises(JobPayloadError):
        encode_payload({"value": math.nan})


async def test_list_jobs_filters_and_paginates(db_session, job_service, clock):
    for i in range(3):
        await job_service.enqueue(db_session, "send_email", {"i": i})
        clock.advance(timedelta(seconds=1))
    await job_service.enqueue(db_session, "other", {})

    everything = await job_service.list_jobs(db_session)
    assert everything.total == 4
    # Newest first
    assert everything.jobs[0].type == "other"

    emails = await job_service.list_jobs(db_session, job_type="send_email", limit=2)
    assert emails.total == 3
    assert len(emails.jobs) == 2

    done = await job_service.list_jobs(db_session, status=[JobStatus.DONE])
    assert done.total == 0


async def test_get_job_missing_returns_none(db_session, job_service):
    assert await job_service.get_job(db_session, uuid.uuid4()) is None


async def test_job_stats(db_session, job_service, claimer, clock):
    await job_service.enqueue(db_session, "send_email", {})
    clock.advance(timedelta(seconds=1))
    await job_service.enqueue(db_session, "send_email", {})
    clock.advance(timedelta(seconds=1))
    await job_service.enqueue(db_session, "other", {}, max_attempts=1)

    first = await claimer.claim_next()
    await claimer.complete(first.id)
    second = await claimer.claim_next()
    await claimer.fail(second.id, second.attempts, second.max_attempts, "boom")
    third = await claimer.claim_next()
    assert third.type == "other"

    stats = await job_service.get_job_stats(db_session)
    assert stats.total_jobs == 3
    assert stats.by_type == {"send_email": 2, "other": 1}
    assert stats.by_status == {"done": 1, "queued": 1, "processing": 1}
    assert stats.queue_depth == 2
    assert stats.expired_leases == 0
    assert stats.failed_last_hour == 0

    # The unfinished lease runs out
    clock.advance(timedelta(minutes=5))
    stats = await job_service.get_job_stats(db_session)
    assert stats.expired_leases == 1

    await claimer.fail(third.id, third.attempts, third.max_attempts, "boom")
    stats = await job_service.get_job_stats(db_session)
    assert stats.failed_last_hour == 1
    assert stats.expired_leases == 0
