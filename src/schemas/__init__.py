"""
Schemas package initializer.

Request and response models for the OTP and access-control APIs.
"""

from .otp import (
    SendAppOTPRequest,
    OTPDispatchResult,
    VerifyAppOTPRequest,
    OTPVerificationResult,
    OTPRecordSummary,
    OTPStats,
    OTPStatusResponse,
)
from .access import (
    EntitlementRecord,
    UserAccess,
    BundleAccess,
    AccessStatus,
    BundleGrantResult,
    AppAccessResponse,
    AccessStatsResponse,
)

__all__ = [
    "SendAppOTPRequest",
    "OTPDispatchResult",
    "VerifyAppOTPRequest",
    "OTPVerificationResult",
    "OTPRecordSummary",
    "OTPStats",
    "OTPStatusResponse",
    "EntitlementRecord",
    "UserAccess",
    "BundleAccess",
    "AccessStatus",
    "BundleGrantResult",
    "AppAccessResponse",
    "AccessStatsResponse",
]
