"""Issue and verify emailed one-time codes."""

from loguru import logger

from src.storefront.core.errors import InternalError, ValidationError
from src.storefront.core.security import generate_otp
from src.storefront.core.services.email_service import EmailDeliveryError, EmailService
from src.storefront.core.storage.otp_storage import OtpStorage
from src.storefront.runtime.config.config_data import OTPConfig


class OtpService:
    def __init__(self, storage: OtpStorage, email_service: EmailService, config: OTPConfig):
        self._storage = storage
        self._email = email_service
        self._config = config

    def _key(self, email: str) -> str:
        return f"{self._config.key_prefix}{email.strip().lower()}"

    async def send(self, email: str | None) -> None:
        """Mail a fresh code to ``email`` and store it once delivery succeeded.

        A new code replaces any code still pending for the same address. A code
        that could not be delivered is never stored.
        """
        if not email or not email.strip():
            raise ValidationError("Email is required")

        code = generate_otp()
        try:
            await self._email.send(email, "Your OTP Code", f"Your OTP is: {code}")
            await self._storage.put(self._key(email), code, self._config.ttl_seconds)
        except (EmailDeliveryError, RuntimeError) as e:
            logger.error("Error sending OTP to {}: {}", email, e)
            raise InternalError("Failed to send OTP", error=str(e)) from e
        logger.info("OTP issued for {}", email)

    async def verify(self, email: str | None, code: str | int | None) -> None:
        """Consume the pending code for ``email`` if ``code`` matches it."""
        if not email or code is None or not str(code).strip():
            raise ValidationError("Email & OTP required")

        try:
            matched = await self._storage.take_if_match(self._key(email), str(code).strip())
        except RuntimeError as e:
            raise InternalError("Failed to verify OTP", error=str(e)) from e
        if not matched:
            raise ValidationError("Invalid OTP")
