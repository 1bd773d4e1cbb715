"""
Transactional email endpoints.

Each endpoint queues a send_email job and returns its id; delivery happens
in the worker.
"""

import logging
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from backend.config.settings import Settings, SettingsDep
from backend.infra.database import get_session
from backend.v1.core.exceptions import BadRequestError, create_success_response
from backend.v1.core.security import AdminDep
from backend.v1.email.notifications import enqueue_invite_email, enqueue_welcome_email
from backend.v1.email.schemas import InviteEmailRequest, WelcomeEmailRequest
from backend.v1.infra.jobs.schemas import JobEnqueueResponse
from backend.v1.infra.jobs.service import JobService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/emails", tags=["emails"], dependencies=[AdminDep])


def _queued(kind: str, job_id: UUID | None) -> dict[str, Any]:
    if job_id is None:
        raise BadRequestError(f"{kind} email needs a recipient")

    logger.info("Email queued via API", extra={"kind": kind, "job_id": str(job_id)})
    response = JobEnqueueResponse(job_id=job_id)
    return create_success_response(data=response.model_dump(mode="json"))


@router.post("/welcome", response_model=dict, status_code=201)
async def queue_welcome_email(
    request: WelcomeEmailRequest,
    session: AsyncSession = Depends(get_session),
    settings: Settings = SettingsDep,
) -> dict[str, Any]:
    """Queue the welcome email for a new user."""
    job_id = await enqueue_welcome_email(session, JobService(settings), request.email)
    return _queued("welcome", job_id)


@router.post("/invite", response_model=dict, status_code=201)
async def queue_invite_email(
    request: InviteEmailRequest,
    session: AsyncSession = Depends(get_session),
    settings: Settings = SettingsDep,
) -> dict[str, Any]:
    """Queue an invitation email for an organization invite."""
    job_id = await enqueue_invite_email(
        session,
        JobService(settings),
        request.email,
        request.accept_url,
        request.org_name,
    )
    return _queued("invite", job_id)
