"""
Outgoing email providers.
"""

import logging
from dataclasses import dataclass
from typing import Protocol

from backend.config.settings import EmailProvider, Settings

logger = logging.getLogger(__name__)


class EmailError(Exception):
    """Base exception for email delivery."""


class InvalidMessageError(EmailError, ValueError):
    """The message is missing a required field."""


class EmailDeliveryError(EmailError):
    """The provider rejected the message or could not be reached."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


@dataclass
class Message:
    """An email ready to hand to a provider."""

    to: str
    from_: str
    subject: str
    text: str = ""
    html: str = ""


class EmailSender(Protocol):
    """Protocol for email providers."""

    async def send(self, message: Message) -> None:
        ...


def validate_message(message: Message) -> None:
    """Raise InvalidMessageError unless the message can be delivered."""
    if not message.to.strip():
        raise InvalidMessageError("missing To")
    if not message.from_.strip():
        raise InvalidMessageError("missing From")
    if not message.subject.strip():
        raise InvalidMessageError("missing Subject")
    if not message.text.strip() and not message.html.strip():
        raise InvalidMessageError("missing body")


class NoopSender:
    async def send(self, message: Message) -> None:
        return None


class ConsoleSender:
    """Log messages instead of sending them (local development)."""

    async def send(self, message: Message) -> None:
        logger.info(
            "Email send",
            extra={
                "to": message.to,
                "from": message.from_,
                "subject": message.subject,
                "text_len": len(message.text),
                "html_len": len(message.html),
            },
        )


_DISABLED = {"none", "noop", "off", "disabled"}


def build_email_sender(settings: Settings) -> EmailSender:
    """Create the email sender selected by EMAIL_PROVIDER."""
    provider = settings.email_provider.strip().lower()

    if provider in ("", EmailProvider.CONSOLE.value):
        return ConsoleSender()
    if provider in _DISABLED:
        return NoopSender()
    if provider == EmailProvider.RESEND.value:
        from backend.v1.email.resend import ResendSender

        return ResendSender(settings.resend_api_key, api_url=settings.resend_api_url)

    logger.warning(
        "Unknown email provider, falling back to console",
        extra={"email_provider": settings.email_provider},
    )
    return ConsoleSender()
