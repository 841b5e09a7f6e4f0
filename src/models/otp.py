"""OTP model for app-scoped payment verification."""
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import Column, String, DateTime, Boolean, Integer, Enum as SQLEnum
from sqlalchemy.dialects.postgresql import UUID
import uuid

from src.db.base import Base
from .base import TimestampMixin, utcnow
from .enums import DeliveryChannel, OTPState

OTP_TTL = timedelta(minutes=10)
MAX_VERIFICATION_ATTEMPTS = 5


class OTP(Base, TimestampMixin):
    """One issued code, bound to exactly one (email, app) pair.

    `otp_code` holds the HMAC digest of the code, never the code itself.
    """

    __tablename__ = "otps"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    user_id = Column(String(64), nullable=True, index=True)
    email = Column(String(255), nullable=False, index=True)
    phone = Column(String(20), nullable=True)
    app_id = Column(String(100), nullable=False, index=True)
    otp_code = Column(String(64), nullable=False)
    expires_at = Column(DateTime, nullable=False)
    delivery_channel = Column(SQLEnum(DeliveryChannel, name="deliverychannel"), nullable=False)
    email_sent = Column(Boolean, default=False, nullable=False)
    sms_sent = Column(Boolean, default=False, nullable=False)
    reason = Column(String(100), default="payment_verification", nullable=False)
    payment_transaction_id = Column(String(255), nullable=True, index=True)
    admin_generated = Column(Boolean, default=False, nullable=False)
    verified_at = Column(DateTime, nullable=True)
    verification_attempts = Column(Integer, default=0, nullable=False)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or utcnow()) > self.expires_at

    def is_locked(self) -> bool:
        return (self.verification_attempts or 0) >= MAX_VERIFICATION_ATTEMPTS

    def state(self, now: Optional[datetime] = None) -> OTPState:
        if self.verified_at is not None:
            return OTPState.verified
        if self.is_locked():
            return OTPState.locked
        if self.is_expired(now):
            return OTPState.expired
        return OTPState.pending

    def __repr__(self) -> str:
        return f"<OTP(id={self.id}, email={self.email}, app_id={self.app_id})>"
