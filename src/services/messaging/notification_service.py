# src/services/messaging/notification_service.py
import logging
import asyncio
from datetime import datetime
from typing import Any, Callable, Optional
from functools import partial

import resend  # blocking SDK
from twilio.rest import Client as TwilioClient

from src.app.config import Settings
from src.app.logging_config import mask_phone

logger = logging.getLogger(__name__)

TWILIO_FAILED_STATUSES = {"failed", "undelivered", "canceled"}


def build_email_client(settings: Settings) -> Optional[Any]:
    """Configure the Resend SDK once at start-up. None when no API key is set."""
    if not settings.RESEND_API_KEY:
        logger.warning("RESEND_API_KEY not set, email delivery disabled")
        return None
    resend.api_key = settings.RESEND_API_KEY
    return resend.Emails


def build_sms_client(settings: Settings) -> Optional[TwilioClient]:
    """Twilio REST client, or None when SMS is not configured for this deployment."""
    if not settings.SMS_ENABLED:
        logger.info("Twilio not configured, SMS delivery disabled")
        return None
    return TwilioClient(settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN)


class NotificationService:
    """Send OTPs and account emails over email (Resend) and SMS (Twilio).

    Every public send returns a bool and never raises: provider errors and
    missing configuration are logged and reported as False.
    """

    def __init__(
        self,
        email_client: Optional[Any] = None,
        sms_client: Optional[TwilioClient] = None,
        from_email: str = "info@iiskills.cloud",
        sms_from: Optional[str] = None,
        max_retries: int = 3,
        backoff_seconds: float = 1.0,
    ):
        self.email_client = email_client
        self.sms_client = sms_client
        self.from_email = from_email
        self.sms_from = sms_from
        self.max_retries = max(1, max_retries)
        self.backoff_seconds = backoff_seconds

    @classmethod
    def from_settings(cls, settings: Settings) -> "NotificationService":
        return cls(
            email_client=build_email_client(settings),
            sms_client=build_sms_client(settings),
            from_email=settings.RESEND_FROM_EMAIL,
            sms_from=settings.TWILIO_FROM_NUMBER,
            max_retries=settings.NOTIFICATION_MAX_RETRIES,
        )

    @staticmethod
    async def _run_blocking(fn, *args, **kwargs):
        """Run a blocking function in the default threadpool so async event loop isn't blocked."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(fn, *args, **kwargs))

    async def _deliver(self, label: str, recipient: str, fn: Callable[[], Any]) -> bool:
        """Call `fn` in the threadpool with exponential backoff. True on the first success."""
        attempt = 0
        backoff = self.backoff_seconds
        while attempt < self.max_retries:
            attempt += 1
            try:
                resp = await self._run_blocking(fn)
                logger.info("%s sent to %s (attempt %d) resp: %s", label, recipient, attempt, resp)
                return True
            except Exception as exc:
                logger.exception("%s error for %s (attempt %d): %s", label, recipient, attempt, exc)
                if attempt < self.max_retries:
                    await asyncio.sleep(backoff)
                    backoff *= 2
        logger.error("%s failed for %s after %d attempts", label, recipient, attempt)
        return False

    # ------------------------------------------------------------------
    # Email
    # ------------------------------------------------------------------

    def _send_email_blocking(self, to: str, subject: str, html: str, text: str) -> dict:
        """Blocking call to the resend SDK. Returns SDK response dict or raises."""
        return self.email_client.send({
            "from": self.from_email,
            "to": to,
            "subject": subject,
            "html": html,
            "text": text,
        })

    async def _send_email(self, label: str, to: str, subject: str, html: str, text: str) -> bool:
        if self.email_client is None:
            logger.warning("[EMAIL] Resend not configured, skipping %s to %s", label, to)
            return False
        return await self._deliver(
            f"[EMAIL] {label}", to, partial(self._send_email_blocking, to, subject, html, text)
        )

    async def send_email_otp(self, address: str, code: str, app_id: str, app_name: str) -> bool:
        """Email an app-scoped OTP. Returns True on success, False on any failure."""
        logger.info("[EMAIL] Sending OTP to %s for app %s", address, app_id)
        subject = f"Your OTP for {app_name}"
        text = (
            f"Your OTP is: {code}. Valid for 10 minutes. "
            f"This OTP is specific to {app_name}."
        )
        html = _render_email(
            "Payment Verification",
            f"<p>Thank you for your payment! Your OTP for <strong>{app_name}</strong> is:</p>"
            f'<div style="font-size:36px;font-weight:bold;letter-spacing:8px;color:#2563eb;">{code}</div>'
            "<p><strong>Valid for 10 minutes</strong></p>"
            f"<p>This OTP is specific to <strong>{app_name}</strong> and cannot be used "
            "for other apps or courses.</p>",
        )
        return await self._send_email("OTP", address, subject, html, text)

    async def send_welcome_email(self, email: str, app_id: str, app_name: str) -> bool:
        """Welcome a user whose access to `app_name` was just verified."""
        subject = f"Welcome to {app_name}!"
        text = f"Welcome to {app_name}! Your access has been verified. Start learning today at iiskills.cloud."
        html = _render_email(
            "You're all set!",
            f"<p>Your access to <strong>{app_name}</strong> has been verified. Start learning today!</p>"
            "<p>If you have any questions, our support team is here to help.</p>",
        )
        return await self._send_email(f"welcome ({app_id})", email, subject, html, text)

    async def send_thank_you_email(
        self,
        email: str,
        app_id: str,
        app_name: str,
        payment_transaction_id: Optional[str] = None,
    ) -> bool:
        """Acknowledge a captured payment; the OTP follows in a separate email."""
        subject = f"Thank you for your payment - Welcome to {app_name}!"
        reference = payment_transaction_id or "N/A"
        text = (
            f"Thank you for your payment for {app_name}! You will receive an OTP shortly "
            f"to verify your access. Payment reference: {reference}."
        )
        body = (
            f"<p>Your payment for <strong>{app_name}</strong> has been received successfully.</p>"
            "<p>You will shortly receive a separate email with your OTP to verify your access.</p>"
        )
        if payment_transaction_id:
            body += f"<p>Payment reference: <code>{payment_transaction_id}</code></p>"
        html = _render_email("Thank you for your payment!", body)
        return await self._send_email(f"thank-you ({app_id})", email, subject, html, text)

    # ------------------------------------------------------------------
    # SMS
    # ------------------------------------------------------------------

    def _send_sms_blocking(self, to: str, body: str):
        """Blocking call to the Twilio SDK. Raises when Twilio reports a failed message."""
        message = self.sms_client.messages.create(to=to, from_=self.sms_from, body=body)
        status = getattr(message, "status", None)
        if not getattr(message, "sid", None) or status in TWILIO_FAILED_STATUSES:
            raise RuntimeError(
                f"Twilio rejected message: status={status} "
                f"error={getattr(message, 'error_message', None)}"
            )
        return message.sid

    async def send_sms_otp(self, phone: str, code: str, app_id: str, app_name: str) -> bool:
        """Text an app-scoped OTP to an E.164 number. Returns True on success."""
        masked = mask_phone(phone)
        if self.sms_client is None or not self.sms_from:
            logger.warning("[SMS] Twilio not configured, skipping SMS to %s", masked)
            return False
        logger.info("[SMS] Sending OTP to %s for app %s", masked, app_id)
        body = (
            f"Your iiskills.cloud OTP for {app_name}: {code}. "
            "Valid for 10 minutes. Do not share this code."
        )
        return await self._deliver("[SMS] OTP", masked, partial(self._send_sms_blocking, phone, body))


def _render_email(heading: str, body_html: str) -> str:
    return (
        '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">'
        '<h1 style="color: #2563eb; text-align: center;">iiskills.cloud</h1>'
        '<div style="background: #f9fafb; border-radius: 10px; padding: 30px;">'
        f'<h2 style="color: #1f2937; margin-top: 0;">{heading}</h2>'
        f"{body_html}"
        "</div>"
        '<p style="color: #9ca3af; font-size: 12px;">'
        "If you didn't request this or make a payment, please ignore this email or contact support.<br>"
        f"&copy; {datetime.now().year} iiskills.cloud - All rights reserved"
        "</p>"
        "</div>"
    )
