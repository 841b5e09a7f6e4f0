"""App-scoped OTP generation, dispatch and verification service.

An OTP proves possession of an email (and optionally a phone) for exactly one
paid app. Codes are stored only as HMAC digests bound to (code, app, email),
expire after ten minutes and lock after five verification attempts.
"""
import asyncio
import logging
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.app.logging_config import mask_phone
from src.core.security import generate_otp, hash_otp
from src.models.base import utcnow
from src.models.enums import DeliveryChannel, OTPState
from src.models.otp import OTP, OTP_TTL
from src.repositories.otp_repo import OTPRepository
from src.schemas.otp import (
    OTPDispatchResult,
    OTPRecordSummary,
    OTPStats,
    OTPVerificationResult,
)
from src.utils.validators import (
    is_valid_email,
    normalize_email,
    normalize_phone,
    validate_otp_request,
)
from .notification_service import NotificationService

logger = logging.getLogger(__name__)

ERR_REQUIRED = "Email, OTP, and appId are required"
ERR_EMAIL_FORMAT = "Invalid email format"
ERR_NOT_FOUND = "Invalid OTP or OTP not found for this app"
ERR_EXPIRED = "OTP has expired"
ERR_TOO_MANY = "Too many verification attempts"
ERR_STORE = "Failed to verify OTP"

STATS_WINDOW = 10


class OTPStoreError(RuntimeError):
    """The OTP store could not be written."""


class OTPService:
    """Handle app-scoped OTP operations."""

    def __init__(
        self,
        db: Session,
        notifier: NotificationService,
        otp_secret: str,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.repo = OTPRepository(db)
        self.notifier = notifier
        self.otp_secret = otp_secret
        self.clock = clock

    def _digest(self, code: str, app_id: str, email: str) -> str:
        return hash_otp(code, app_id, email, self.otp_secret)

    async def generate_and_dispatch_otp(
        self,
        email: str,
        app_id: str,
        app_name: str,
        phone: Optional[str] = None,
        user_id: Optional[str] = None,
        payment_transaction_id: Optional[str] = None,
        reason: str = "payment_verification",
        admin_generated: bool = False,
    ) -> OTPDispatchResult:
        """
        Issue a fresh code for (email, app) and send it on every available channel.

        Earlier codes for the same pair stay valid until their own expiry.
        The record is persisted whatever the delivery outcome, so a code
        relayed out-of-band can still be redeemed.

        Raises:
            ValidationError: missing or malformed email, app id, app name or phone.
            OTPStoreError: the record could not be persisted.
        """
        validate_otp_request(email, app_id, app_name, phone)

        email = normalize_email(email)
        phone = normalize_phone(phone)

        code = generate_otp()
        now = self.clock()
        expires_at = now + OTP_TTL
        channel = DeliveryChannel.both if phone else DeliveryChannel.email

        sends = [self.notifier.send_email_otp(email, code, app_id, app_name)]
        if phone:
            sends.append(self.notifier.send_sms_otp(phone, code, app_id, app_name))
        outcomes = await asyncio.gather(*sends)
        email_sent = bool(outcomes[0])
        sms_sent = bool(outcomes[1]) if phone else False

        try:
            otp = self.repo.create({
                "user_id": user_id,
                "email": email,
                "phone": phone,
                "app_id": app_id,
                "otp_code": self._digest(code, app_id, email),
                "expires_at": expires_at,
                "delivery_channel": channel,
                "email_sent": email_sent,
                "sms_sent": sms_sent,
                "reason": reason or "payment_verification",
                "payment_transaction_id": payment_transaction_id,
                "admin_generated": admin_generated,
                "created_at": now,
                "updated_at": now,
            })
        except SQLAlchemyError as exc:
            self.repo.rollback()
            logger.exception("Database error storing OTP for %s (app %s)", email, app_id)
            raise OTPStoreError(f"Failed to store OTP: {exc}") from exc

        logger.info(
            "OTP %s issued for %s app=%s phone=%s channel=%s email_sent=%s sms_sent=%s admin=%s",
            otp.id, email, app_id, mask_phone(phone), channel.value, email_sent, sms_sent, admin_generated,
        )

        return OTPDispatchResult(
            success=True,
            delivery_channel=channel,
            email_sent=email_sent,
            sms_sent=sms_sent,
            expires_at=expires_at,
            app_id=app_id,
            message=_dispatch_message(channel, email_sent, sms_sent),
        )

    async def verify_otp(
        self,
        email: str,
        code: str,
        app_id: str,
        on_verified: Optional[Callable[[OTP], None]] = None,
    ) -> OTPVerificationResult:
        """
        Redeem a code for one app. Failures are returned, never raised.

        A submitted code that matches no unverified record for this app is
        charged as an attempt against the most recent live record still under
        the cap, so every live code of the pair locks before guessing stops
        being counted.

        `on_verified` runs inside the verifying transaction and must not
        commit. If it raises a database error the code stays unverified.
        """
        if not email or not code or not app_id:
            return OTPVerificationResult.failure(ERR_REQUIRED)

        if not is_valid_email(email.strip()):
            return OTPVerificationResult.failure(ERR_EMAIL_FORMAT)

        email = normalize_email(email)
        now = self.clock()

        try:
            otp = self.repo.find_latest_unverified(
                email, app_id, otp_code=self._digest(code, app_id, email)
            )

            if otp is None:
                return self._charge_failed_attempt(email, app_id, now)

            if otp.is_expired(now):
                logger.info("Expired OTP %s submitted for %s app=%s", otp.id, email, app_id)
                return OTPVerificationResult.failure(ERR_EXPIRED)

            if otp.is_locked():
                logger.warning("Locked OTP %s submitted for %s app=%s", otp.id, email, app_id)
                return OTPVerificationResult.failure(ERR_TOO_MANY)

            if not self.repo.mark_verified(otp.id, now):
                # Another request verified or locked it between lookup and update
                self.repo.rollback()
                logger.warning("OTP %s changed state during verification", otp.id)
                return OTPVerificationResult.failure(ERR_NOT_FOUND)

            if on_verified is not None:
                on_verified(otp)
            self.repo.commit()

        except SQLAlchemyError:
            self.repo.rollback()
            logger.exception("Database error verifying OTP for %s (app %s)", email, app_id)
            return OTPVerificationResult.failure(ERR_STORE)

        logger.info("OTP %s verified for %s app=%s", otp.id, email, app_id)
        return OTPVerificationResult(
            success=True,
            message="OTP verified successfully",
            app_id=otp.app_id,
            user_id=otp.user_id,
            email=otp.email,
        )

    def _charge_failed_attempt(self, email: str, app_id: str, now: datetime) -> OTPVerificationResult:
        live = self.repo.find_latest_live(email, app_id, now)
        if live is None:
            if self.repo.find_latest_live(email, app_id, now, include_locked=True) is not None:
                logger.warning("Wrong OTP for %s app=%s, every live code is locked", email, app_id)
                return OTPVerificationResult.failure(ERR_TOO_MANY)
            return OTPVerificationResult.failure(ERR_NOT_FOUND)
        self.repo.increment_attempts(live.id)
        logger.info("Wrong OTP for %s app=%s, charged to %s", email, app_id, live.id)
        return OTPVerificationResult.failure(ERR_NOT_FOUND)

    async def has_valid_otp(self, email: str, app_id: str) -> bool:
        """True iff an unverified, unexpired code exists for (email, app)."""
        if not email or not app_id:
            return False
        try:
            return self.repo.has_live(normalize_email(email), app_id, self.clock())
        except SQLAlchemyError:
            self.repo.rollback()
            logger.exception("Error checking for valid OTP for %s (app %s)", email, app_id)
            return False

    async def get_otp_stats(self, email: str, app_id: str) -> Optional[OTPStats]:
        """Summarise the ten most recent records of (email, app) for support tooling."""
        now = self.clock()
        try:
            records = self.repo.recent(normalize_email(email), app_id, limit=STATS_WINDOW)
        except SQLAlchemyError:
            self.repo.rollback()
            logger.exception("Error fetching OTP stats for %s (app %s)", email, app_id)
            return None

        summaries = [_summarise(otp, now) for otp in records]
        counts = {state: 0 for state in OTPState}
        for summary in summaries:
            counts[summary.state] += 1

        return OTPStats(
            total=len(summaries),
            verified=counts[OTPState.verified],
            expired=counts[OTPState.expired],
            locked=counts[OTPState.locked],
            pending=counts[OTPState.pending],
            recent=summaries,
        )


def _dispatch_message(channel: DeliveryChannel, email_sent: bool, sms_sent: bool) -> str:
    if channel == DeliveryChannel.both:
        if email_sent and sms_sent:
            return "OTP sent successfully via both"
        if email_sent:
            return "OTP sent via email; SMS delivery failed"
        if sms_sent:
            return "OTP sent via sms; email delivery failed"
    elif email_sent:
        return "OTP sent successfully via email"
    return "OTP generated but delivery failed on all channels"


def _summarise(otp: OTP, now: datetime) -> OTPRecordSummary:
    return OTPRecordSummary(
        id=str(otp.id),
        state=otp.state(now),
        delivery_channel=otp.delivery_channel,
        email_sent=otp.email_sent,
        sms_sent=otp.sms_sent,
        reason=otp.reason,
        admin_generated=otp.admin_generated,
        verification_attempts=otp.verification_attempts,
        created_at=otp.created_at,
        expires_at=otp.expires_at,
        verified_at=otp.verified_at,
    )
