from sqlalchemy import select

from backend.v1.email.notifications import enqueue_invite_email, enqueue_welcome_email
from backend.v1.infra.jobs.handlers import SEND_EMAIL
from backend.v1.infra.jobs.models import Job


async def _only_job(session) -> Job:
    return (await session.execute(select(Job))).scalar_one()


async def test_welcome_email(db_session, job_service):
    job_id = await enqueue_welcome_email(db_session, job_service, "new@example.com")

    job = await _only_job(db_session)
    assert job.id == job_id
    assert job.type == SEND_EMAIL
    assert job.payload["kind"] == "welcome"
    assert job.payload["to"] == "new@example.com"
    assert job.payload["subject"] == "Welcome"
    assert job.payload["text"]


async def test_invite_email(db_session, job_service):
    await enqueue_invite_email(
        db_session, job_service, "guest@example.com", "https://app/accept/abc", "Acme"
    )

    job = await _only_job(db_session)
    assert job.payload["kind"] == "invite"
    assert job.payload["subject"] == "You're invited to join Acme"
    assert "https://app/accept/abc" in job.payload["text"]


async def test_invite_email_default_org_name(db_session, job_service):
    await enqueue_invite_email(db_session, job_service, "guest@example.com", "https://x")

    job = await _only_job(db_session)
    assert job.payload["subject"] == "You're invited to join your workspace"


async def test_blank_inputs_enqueue_nothing(db_session, job_service):
    assert await enqueue_welcome_email(db_session, job_service, "  ") is None
    assert await enqueue_invite_email(db_session, job_service, "a@b.c", " ") is None
    assert await enqueue_invite_email(db_session, job_service, "", "https://x") is None

    assert (await db_session.execute(select(Job))).scalars().all() == []
