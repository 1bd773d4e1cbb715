"""Resend email provider."""

import httpx

from backend.v1.email.sender import EmailDeliveryError, Message, validate_message

RESEND_API_URL = "https://api.resend.com/emails"
MAX_ERROR_BODY = 2048


class ResendSender:
    """Send email through the Resend HTTP API."""

    def __init__(
        self,
        api_key: str,
        api_url: str = RESEND_API_URL,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.api_key = api_key.strip()
        self.api_url = api_url
        self.timeout = timeout
        self._client = client

    def _payload(self, message: Message) -> dict:
        payload: dict = {
            "from": message.from_,
            "to": [message.to],
            "subject": message.subject,
        }
        if message.html.strip():
            payload["html"] = message.html
        if message.text.strip():
            payload["text"] = message.text
        return payload

    async def send(self, message: Message) -> None:
        validate_message(message)
        if not self.api_key:
            raise EmailDeliveryError("missing Resend API key")

        headers = {"Authorization": f"Bearer {self.api_key}"}

        try:
            if self._client is not None:
                response = await self._client.post(
                    self.api_url, json=self._payload(message), headers=headers
                )
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(
                        self.api_url, json=self._payload(message), headers=headers
                    )
        except httpx.HTTPError as e:
            raise EmailDeliveryError(f"call resend: {e}") from e

        if not response.is_success:
            body = response.text[:MAX_ERROR_BODY].strip()
            raise EmailDeliveryError(
                f"resend status {response.status_code}: {body}",
                status_code=response.status_code,
            )
