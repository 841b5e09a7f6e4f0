"""
Services package initializer.

Re-exports the OTP, notification and entitlement services so callers can
import from `src.services` instead of deep module paths.
"""

from .messaging import NotificationService, OTPService, OTPStoreError
from .access import EntitlementWriter

__all__ = [
    "NotificationService",
    "OTPService",
    "OTPStoreError",
    "EntitlementWriter",
]
