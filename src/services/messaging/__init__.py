"""
Messaging package initializer.

Provides the delivery gateway and the app-scoped OTP service.
"""

from .notification_service import NotificationService, build_email_client, build_sms_client
from .otp_service import OTPService, OTPStoreError

__all__ = [
    "NotificationService",
    "build_email_client",
    "build_sms_client",
    "OTPService",
    "OTPStoreError",
]
