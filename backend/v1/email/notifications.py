"""
Transactional emails enqueued from request handling code paths.
"""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from backend.v1.infra.jobs.handlers import SEND_EMAIL, SendEmailPayload
from backend.v1.infra.jobs.service import JobService

DEFAULT_ORG_NAME = "your workspace"


async def enqueue_welcome_email(
    session: AsyncSession, jobs: JobService, email: str
) -> UUID | None:
    """Queue the welcome email sent after a user signs up."""
    if not email.strip():
        return None

    payload = SendEmailPayload(
        kind="welcome",
        to=email,
        subject="Welcome",
        text="Welcome to the app. You're set up and ready to go.",
    )
    return await jobs.enqueue(session, SEND_EMAIL, payload)


async def enqueue_invite_email(
    session: AsyncSession,
    jobs: JobService,
    email: str,
    accept_url: str,
    org_name: str | None = None,
) -> UUID | None:
    """Queue the invitation email sent after an org invite is created."""
    if not email.strip() or not accept_url.strip():
        return None

    org_name = org_name or DEFAULT_ORG_NAME
    payload = SendEmailPayload(
        kind="invite",
        to=email,
        subject=f"You're invited to join {org_name}",
        text=f"You have been invited to join {org_name}.\n\nAccept: {accept_url}\n",
    )
    return await jobs.enqueue(session, SEND_EMAIL, payload)
