"""Outbound email through an HTTP provider."""

from __future__ import annotations

import hashlib

import httpx
from loguru import logger

from src.storefront.runtime.config.config_data import EmailConfig


class EmailDeliveryError(RuntimeError):
    """The provider refused the message or could not be reached."""


class EmailService:
    def __init__(self, config: EmailConfig, client: httpx.AsyncClient | None = None):
        self._config = config
        self._client = client

    @staticmethod
    def _idempotency_key(to: str, subject: str, body: str) -> str:
        payload_hash = hashlib.sha256(
            (to + "\x1f" + subject + "\x1f" + body).encode("utf-8")
        ).hexdigest()
        return f"email:{payload_hash}"

    async def send(self, to: str, subject: str, body: str) -> None:
        """Send a plain-text email.

        When delivery is disabled the message is only logged.

        Raises:
            EmailDeliveryError: provider not configured, unreachable, or non-2xx
        """
        if not self._config.enabled:
            logger.debug("Email delivery disabled; to={} subject={!r} body={!r}", to, subject, body)
            return

        if not self._config.api_url or not self._config.api_key:
            raise EmailDeliveryError("Email provider not configured")

        payload = {
            "from": {"email": self._config.sender, "name": self._config.sender_name},
            "personalizations": [{"to": [{"email": to}], "subject": subject}],
            "content": [{"type": "text/plain", "value": body}],
        }
        headers = {
            "Authorization": f"Bearer {self._config.api_key}",
            "Idempotency-Key": self._idempotency_key(to, subject, body),
            "Content-Type": "application/json",
        }

        try:
            if self._client is not None:
                resp = await self._client.post(self._config.api_url, json=payload, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=self._config.timeout_seconds) as client:
                    resp = await client.post(self._config.api_url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise EmailDeliveryError(f"Email provider unreachable: {e}") from e

        if not 200 <= resp.status_code < 300:
            raise EmailDeliveryError(
                f"Email send failed {resp.status_code}: {resp.text[:200]}"
            )
        logger.info("Email sent to {}", to)
