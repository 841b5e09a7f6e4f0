"""Enums for database models."""
import enum


class AccessTier(str, enum.Enum):
    """Whether an app is open to everyone or sold."""
    free = "free"
    paid = "paid"


class DeliveryChannel(str, enum.Enum):
    """Channels an OTP was dispatched on."""
    email = "email"
    sms = "sms"
    both = "both"


class OTPState(str, enum.Enum):
    """Lifecycle state of an OTP record."""
    pending = "pending"
    verified = "verified"
    expired = "expired"
    locked = "locked"


class GrantedVia(str, enum.Enum):
    """How a user obtained access to an app."""
    payment = "payment"
    bundle = "bundle"
    otp = "otp"
    admin = "admin"
    free = "free"
