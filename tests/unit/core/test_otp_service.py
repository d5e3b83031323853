import re

import pytest

from src.storefront.core.errors import InternalError, ValidationError
from src.storefront.core.services import OtpService
from src.storefront.runtime.config.config_data import OTPConfig


@pytest.fixture
def otp(otp_storage, email_service) -> OtpService:
    return OtpService(otp_storage, email_service, OTPConfig())


def _code(email_payload: dict) -> str:
    return re.search(r"\d{6}", email_payload["content"][0]["value"]).group()


async def test_send_then_verify(otp, sent_emails):
    await otp.send("Alice@Example.com")

    assert len(sent_emails) == 1
    message = sent_emails[0]
    assert message["personalizations"][0]["subject"] == "Your OTP Code"
    assert message["personalizations"][0]["to"] == [{"email": "Alice@Example.com"}]

    await otp.verify("alice@example.com", _code(message))


async def test_code_is_single_use(otp, sent_emails):
    await otp.send("a@example.com")
    code = _code(sent_emails[0])
    await otp.verify("a@example.com", code)

    with pytest.raises(ValidationError, match="Invalid OTP"):
        await otp.verify("a@example.com", code)


async def test_wrong_code(otp, sent_emails):
    await otp.send("a@example.com")
    wrong = "000000" if _code(sent_emails[0]) != "000000" else "111111"

    with pytest.raises(ValidationError, match="Invalid OTP"):
        await otp.verify("a@example.com", wrong)


async def test_send_requires_email(otp):
    with pytest.raises(ValidationError, match="Email is required"):
        await otp.send("  ")


async def test_verify_requires_both(otp):
    with pytest.raises(ValidationError, match="Email & OTP required"):
        await otp.verify("a@example.com", None)


async def test_delivery_failure_is_internal_error(otp, email_status):
    email_status["code"] = 500

    with pytest.raises(InternalError, match="Failed to send OTP"):
        await otp.send("a@example.com")


async def test_undelivered_code_is_not_stored(otp, email_status, monkeypatch):
    monkeypatch.setattr(
        "src.storefront.core.services.otp_service.generate_otp", lambda: "123456"
    )
    email_status["code"] = 500

    with pytest.raises(InternalError):
        await otp.send("a@example.com")

    with pytest.raises(ValidationError, match="Invalid OTP"):
        await otp.verify("a@example.com", "123456")
