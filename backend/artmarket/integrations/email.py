"""Brevo Integration: transactional email for commission notifications.

Templating is owned by Brevo; this module only posts the template kind and
its data. Callers treat every send as fire-and-forget.
"""

from typing import Protocol

import httpx
import structlog
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from artmarket.core.config import Settings, get_settings

logger = structlog.get_logger(__name__)


class NotificationError(Exception):
    """Raised when the email provider rejects a send."""


class TransientNotificationError(NotificationError):
    """Provider is rate limiting or temporarily unavailable (429 / 5xx)."""


class Notifier(Protocol):
    async def notify(self, recipient_email: str, template_kind: str, data: dict) -> None: ...


@retry(
    retry=retry_if_exception_type((httpx.TransportError, TransientNotificationError)),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=8),
    reraise=True,
    before_sleep=lambda rs: logger.warning(
        "email_send_retrying",
        attempt=rs.attempt_number,
        sleep_seconds=rs.next_action.sleep,
    ),
)
async def _post_email(client: httpx.AsyncClient, url: str, payload: dict, headers: dict) -> httpx.Response:
    """POST one email, retrying transport errors, 429 and 5xx responses.

    Other 4xx responses raise NotificationError immediately.
    """
    response = await client.post(url, json=payload, headers=headers)
    if response.status_code == 429 or response.status_code >= 500:
        raise TransientNotificationError(f"Brevo unavailable ({response.status_code}): {response.text}")
    if response.status_code >= 400:
        raise NotificationError(f"Brevo rejected email ({response.status_code}): {response.text}")
    return response


class BrevoNotifier:
    """Sends notifications through the Brevo SMTP API."""

    def __init__(self, settings: Settings, client: httpx.AsyncClient | None = None):
        self.settings = settings
        self._client = client

    def _payload(self, recipient_email: str, template_kind: str, data: dict) -> dict:
        subject = data.get("subject") or template_kind.replace("-", " ").title()
        link = data.get("commission_url", self.settings.client_url)
        return {
            "sender": {"name": self.settings.from_name, "email": self.settings.from_email},
            "to": [{"email": recipient_email, "name": data.get("recipient_name", "")}],
            "subject": subject,
            "htmlContent": f'<p>{subject}</p><p><a href="{link}">View commission</a></p>',
            "params": data,
            "tags": [template_kind],
        }

    async def notify(self, recipient_email: str, template_kind: str, data: dict) -> None:
        payload = self._payload(recipient_email, template_kind, data)
        headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
            "api-key": self.settings.brevo_api_key,
        }
        url = f"{self.settings.brevo_api_url}/smtp/email"

        if self._client is not None:
            response = await _post_email(self._client, url, payload, headers)
        else:
            async with httpx.AsyncClient(timeout=10.0) as client:
                response = await _post_email(client, url, payload, headers)

        logger.info("email_sent", template=template_kind, status_code=response.status_code)


class LoggingNotifier:
    """Logs notifications instead of sending them (no Brevo key configured)."""

    async def notify(self, recipient_email: str, template_kind: str, data: dict) -> None:
        logger.info("email_skipped", template=template_kind, recipient=recipient_email)


def build_notifier(settings: Settings | None = None) -> Notifier:
    settings = settings or get_settings()
    if settings.brevo_api_key:
        return BrevoNotifier(settings)
    return LoggingNotifier()
