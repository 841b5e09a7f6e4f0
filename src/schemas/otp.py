"""OTP schemas."""
from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List
from datetime import datetime

from src.models.enums import DeliveryChannel, OTPState


class SendAppOTPRequest(BaseModel):
    """Request to issue an app-scoped OTP (payment webhook or admin)."""
    email: EmailStr
    phone: Optional[str] = Field(None, pattern=r"^\+\d{10,15}$")
    app_id: str = Field(..., min_length=1, max_length=100)
    app_name: str = Field(..., min_length=1, max_length=255)
    user_id: Optional[str] = None
    payment_transaction_id: Optional[str] = None
    reason: str = "payment_verification"
    admin_generated: bool = False


class OTPDispatchResult(BaseModel):
    """Outcome of issuing an OTP. Never carries the code."""
    success: bool
    delivery_channel: DeliveryChannel
    email_sent: bool
    sms_sent: bool
    expires_at: datetime
    app_id: str
    message: str


class VerifyAppOTPRequest(BaseModel):
    """Request to redeem an app-scoped OTP."""
    email: str
    otp_code: str = Field(..., min_length=1, max_length=12)
    app_id: str


class OTPVerificationResult(BaseModel):
    """Outcome of a verification attempt; failures carry `error`."""
    success: bool
    message: Optional[str] = None
    error: Optional[str] = None
    app_id: Optional[str] = None
    user_id: Optional[str] = None
    email: Optional[str] = None

    @classmethod
    def failure(cls, error: str) -> "OTPVerificationResult":
        return cls(success=False, error=error)


class OTPRecordSummary(BaseModel):
    """Monitoring view of one OTP record (no digest)."""
    id: str
    state: OTPState
    delivery_channel: DeliveryChannel
    email_sent: bool
    sms_sent: bool
    reason: str
    admin_generated: bool
    verification_attempts: int
    created_at: datetime
    expires_at: datetime
    verified_at: Optional[datetime] = None


class OTPStats(BaseModel):
    """Counts over the most recent OTP records of an (email, app) pair."""
    total: int
    verified: int
    expired: int
    locked: int
    pending: int
    recent: List[OTPRecordSummary] = []


class OTPStatusResponse(BaseModel):
    email: str
    app_id: str
    has_valid_otp: bool
