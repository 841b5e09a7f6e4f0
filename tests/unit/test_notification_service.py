from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from src.app.config import Settings
from src.services.messaging import NotificationService, build_email_client, build_sms_client


@pytest.fixture
def email_client():
    client = MagicMock()
    client.send.return_value = {"id": "email-1"}
    return client


@pytest.fixture
def sms_client():
    client = MagicMock()
    client.messages.create.return_value = SimpleNamespace(sid="SM123", status="queued")
    return client


@pytest.fixture
def service(email_client, sms_client):
    return NotificationService(
        email_client=email_client,
        sms_client=sms_client,
        from_email="info@iiskills.cloud",
        sms_from="+15550001111",
        max_retries=2,
        backoff_seconds=0,
    )


@pytest.mark.asyncio
async def test_email_otp_carries_code_and_app(service, email_client):
    assert await service.send_email_otp("a@b.com", "123456", "learn-ai", "Learn-AI") is True

    payload = email_client.send.call_args.args[0]
    assert payload["to"] == "a@b.com"
    assert payload["from"] == "info@iiskills.cloud"
    assert payload["subject"] == "Your OTP for Learn-AI"
    assert "123456" in payload["html"]
    assert "123456" in payload["text"]
    assert "Learn-AI" in payload["text"]


@pytest.mark.asyncio
async def test_email_retries_then_succeeds(service, email_client):
    email_client.send.side_effect = [Exception("timeout"), {"id": "email-2"}]
    assert await service.send_email_otp("a@b.com", "123456", "learn-ai", "Learn-AI") is True
    assert email_client.send.call_count == 2


@pytest.mark.asyncio
async def test_email_failure_returns_false(service, email_client):
    email_client.send.side_effect = Exception("provider down")
    assert await service.send_email_otp("a@b.com", "123456", "learn-ai", "Learn-AI") is False
    assert email_client.send.call_count == 2


@pytest.mark.asyncio
async def test_sms_otp_sent_through_twilio(service, sms_client):
    assert await service.send_sms_otp("+919876543210", "654321", "learn-ai", "Learn-AI") is True

    kwargs = sms_client.messages.create.call_args.kwargs
    assert kwargs["to"] == "+919876543210"
    assert kwargs["from_"] == "+15550001111"
    assert "654321" in kwargs["body"]
    assert "Learn-AI" in kwargs["body"]


@pytest.mark.asyncio
async def test_sms_rejected_status_is_a_failure(service, sms_client):
    sms_client.messages.create.return_value = SimpleNamespace(
        sid="SM124", status="failed", error_message="unreachable"
    )
    assert await service.send_sms_otp("+919876543210", "654321", "learn-ai", "Learn-AI") is False


@pytest.mark.asyncio
async def test_unconfigured_channels_report_false():
    service = NotificationService()
    assert await service.send_email_otp("a@b.com", "123456", "learn-ai", "Learn-AI") is False
    assert await service.send_sms_otp("+919876543210", "123456", "learn-ai", "Learn-AI") is False
    assert await service.send_welcome_email("a@b.com", "learn-ai", "Learn-AI") is False


@pytest.mark.asyncio
async def test_sms_without_sender_number_is_skipped(sms_client):
    service = NotificationService(sms_client=sms_client, sms_from=None)
    assert await service.send_sms_otp("+919876543210", "123456", "learn-ai", "Learn-AI") is False
    sms_client.messages.create.assert_not_called()


@pytest.mark.asyncio
async def test_thank_you_email_includes_payment_reference(service, email_client):
    assert await service.send_thank_you_email("a@b.com", "learn-ai", "Learn-AI", "pay_42") is True
    payload = email_client.send.call_args.args[0]
    assert "pay_42" in payload["html"]
    assert "Learn-AI" in payload["subject"]


@pytest.mark.asyncio
async def test_welcome_email(service, email_client):
    assert await service.send_welcome_email("a@b.com", "learn-pr", "Learn-PR") is True
    assert email_client.send.call_args.args[0]["subject"] == "Welcome to Learn-PR!"


def test_clients_are_not_built_without_credentials():
    settings = Settings(RESEND_API_KEY=None, TWILIO_ACCOUNT_SID=None, TWILIO_AUTH_TOKEN=None, TWILIO_FROM_NUMBER=None)
    assert build_email_client(settings) is None
    assert build_sms_client(settings) is None
    assert settings.SMS_ENABLED is False
