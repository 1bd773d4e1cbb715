"""
Job handlers for background processing.

This module contains job handlers that implement the JobHandler protocol
and are registered in the job registry for background processing.
"""

import logging
from typing import Any

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from backend.v1.email.sender import (
    EmailSender,
    InvalidMessageError,
    Message,
    validate_message,
)
from backend.v1.infra.jobs.errors import JobPayloadError
from backend.v1.infra.jobs.schemas import ClaimedJob

logger = logging.getLogger(__name__)

SEND_EMAIL = "send_email"


class SendEmailPayload(BaseModel):
    """Payload carried by ``send_email`` jobs."""

    to: str
    subject: str
    text: str = ""
    html: str = ""
    kind: str | None = Field(default=None, description="welcome, invite, ...")


class SendEmailHandler:
    """
    Job handler delivering one email through the configured provider.

    Payload expected:
    {
        "to": "user@example.com",
        "subject": "Welcome",
        "text": "plain body",   # text and/or html
        "html": "<p>body</p>",
        "kind": "welcome"       # optional
    }
    """

    def __init__(self, sender: EmailSender, default_from: str):
        self.sender = sender
        self.default_from = default_from

    def decode(self, payload: Any) -> SendEmailPayload:
        try:
            return SendEmailPayload.model_validate(payload)
        except PydanticValidationError as e:
            raise JobPayloadError(f"decode payload: {e}") from e

    async def handle(self, job: ClaimedJob) -> dict[str, Any] | None:
        """Send the email described by the job payload."""
        payload = self.decode(job.payload)

        message = Message(
            to=payload.to,
            from_=self.default_from,
            subject=payload.subject,
            text=payload.text,
            html=payload.html,
        )
        try:
            validate_message(message)
        except InvalidMessageError as e:
            raise JobPayloadError(f"invalid message: {e}") from e

        await self.sender.send(message)

        logger.info(
            "Email delivered",
            extra={"job_id": str(job.id), "kind": payload.kind, "to": payload.to},
        )
        return {"status": "sent", "to": payload.to, "kind": payload.kind}
