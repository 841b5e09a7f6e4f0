"""Import all models for Alembic."""
from .base import TimestampMixin, utcnow
from .enums import (
    AccessTier,
    DeliveryChannel,
    OTPState,
    GrantedVia,
)
from .otp import OTP, OTP_TTL, MAX_VERIFICATION_ATTEMPTS
from .app_access import UserAppAccess

__all__ = [
    "TimestampMixin",
    "utcnow",
    "AccessTier",
    "DeliveryChannel",
    "OTPState",
    "GrantedVia",
    "OTP",
    "OTP_TTL",
    "MAX_VERIFICATION_ATTEMPTS",
    "UserAppAccess",
]
