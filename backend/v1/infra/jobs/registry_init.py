"""
Job registry initialization.

Registers all job handlers with a job registry.
"""

import logging

from backend.config.settings import Settings
from backend.v1.core.registries import JobRegistry
from backend.v1.email.sender import EmailSender
from backend.v1.infra.jobs.handlers import SEND_EMAIL, SendEmailHandler

logger = logging.getLogger(__name__)


def register_job_handlers(
    registry: JobRegistry, sender: EmailSender, settings: Settings
) -> None:
    """Register all job handlers with the job registry."""

    logger.info("Registering job handlers")

    # Email delivery
    registry.register(SEND_EMAIL, SendEmailHandler(sender, settings.email_from))

    logger.info(
        "Job handlers registered", extra={"registered_handlers": registry.list()}
    )
