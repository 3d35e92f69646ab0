"""Email notifier built on the Resend REST API."""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Protocol

import httpx

from activity_report.core.config import NotifierSettings
from activity_report.utils.http import RetryConfig, request_with_retry

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    async def notify(self, recipients: Iterable[str], subject: str, html: str) -> bool:
        """Deliver one message; ``False`` when delivery failed."""


class ResendNotifier:
    """Send HTML email through Resend, reporting failures as ``False``."""

    def __init__(
        self,
        settings: NotifierSettings,
        *,
        client: Optional[httpx.AsyncClient] = None,
        retry_config: Optional[RetryConfig] = None,
    ) -> None:
        self._settings = settings
        self._client = client
        self._retry_config = retry_config or RetryConfig(attempts=3, backoff_seconds=1.0)

    async def notify(self, recipients: Iterable[str], subject: str, html: str) -> bool:
        to = [address.strip() for address in recipients if address and address.strip()]
        if not to:
            logger.warning("Skipping email %r without recipients", subject)
            return False

        payload = {
            "from": self._settings.from_address,
            "to": to,
            "subject": subject,
            "html": html,
        }
        headers = {"Authorization": f"Bearer {self._settings.api_key}"}

        try:
            if self._client is not None:
                response = await self._post(self._client, payload, headers)
            else:
                async with httpx.AsyncClient(timeout=self._settings.timeout_seconds) as client:
                    response = await self._post(client, payload, headers)
        except httpx.HTTPError as exc:
            logger.error("Email %r to %s failed: %s", subject, ", ".join(to), exc)
            return False

        try:
            body = response.json()
        except ValueError:
            body = {}
        message_id = body.get("id") if isinstance(body, dict) else None
        logger.info("Email sent: %s (to=%s, id=%s)", subject, ", ".join(to), message_id)
        return True

    async def _post(
        self, client: httpx.AsyncClient, payload: dict, headers: dict
    ) -> httpx.Response:
        return await request_with_retry(
            client.post,
            self._settings.api_url,
            json=payload,
            headers=headers,
            retry_config=self._retry_config,
        )


__all__ = ["Notifier", "ResendNotifier"]
