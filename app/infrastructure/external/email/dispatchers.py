"""Outbound email dispatchers (IEmailDispatcher).

ResendEmailDispatcher posts to the Resend HTTP API; LogOnlyEmailDispatcher
is used when no API key is configured (development) and only logs.
"""

from __future__ import annotations

import logging

import httpx

from app.application.dtos.notification import EmailMessage
from app.application.services.notification_service import redact_email

logger = logging.getLogger(__name__)


class EmailDeliveryError(Exception):
    """The email API rejected or failed to accept a message."""


class ResendEmailDispatcher:
    """Sends mail through the Resend API using a shared httpx.AsyncClient."""

    def __init__(
        self,
        api_key: str,
        sender: str,
        *,
        api_url: str = "https://api.resend.com/emails",
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.api_key = api_key
        self.sender = sender
        self.api_url = api_url
        self._client = http_client
        self.timeout = timeout

    async def send(self, message: EmailMessage) -> None:
        payload = {
            "from": self.sender,
            "to": [message.to],
            "subject": message.subject,
            "html": message.html,
            "text": message.text,
            "tags": [{"name": "category", "value": message.tag}],
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}
        try:
            if self._client is not None:
                response = await self._client.post(
                    self.api_url, json=payload, headers=headers, timeout=self.timeout
                )
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(self.api_url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise EmailDeliveryError(f"email API unreachable: {e!s}") from e
        if response.status_code >= 400:
            raise EmailDeliveryError(
                f"email API returned {response.status_code} for {message.tag}"
            )
        logger.info("Email sent to %s (%s)", redact_email(message.to), message.tag)


class LogOnlyEmailDispatcher:
    """Development dispatcher: logs the message instead of sending it."""

    async def send(self, message: EmailMessage) -> None:
        logger.info(
            "Email not sent (no provider configured) to=%s subject=%r preview=%r",
            redact_email(message.to),
            message.subject,
            message.text[:200],
        )
