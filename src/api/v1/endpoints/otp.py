"""App-scoped OTP endpoints."""
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse

from src.app.dependencies import get_entitlement_writer, get_otp_service
from src.core.rate_limiter import (
    can_send_otp,
    clear_verify_attempts,
    otp_identifier,
    record_failed_verify,
    verify_lock_ttl,
)
from src.core.registry import get_app_config
from src.schemas.otp import (
    OTPDispatchResult,
    OTPStats,
    OTPStatusResponse,
    OTPVerificationResult,
    SendAppOTPRequest,
    VerifyAppOTPRequest,
)
from src.services.access import EntitlementWriter, ensure_payable_app
from src.models.otp import OTP
from src.services.messaging import OTPService
from src.services.messaging.otp_service import ERR_STORE

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/send", response_model=OTPDispatchResult)
async def send_otp(
    request: SendAppOTPRequest,
    background_tasks: BackgroundTasks,
    otp_service: OTPService = Depends(get_otp_service),
):
    """
    Issue an OTP bound to one paid app.

    - Rejects free apps
    - Enforces the per (email, app) send limit
    - Sends on email, and SMS when a phone is given
    - Never returns the code
    """
    ensure_payable_app(request.app_id)

    allowed, retry_after = await can_send_otp(otp_identifier(request.email, request.app_id))
    if not allowed:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=f"Too many OTP requests. Retry after {retry_after}s",
            headers={"Retry-After": str(retry_after)},
        )

    result = await otp_service.generate_and_dispatch_otp(
        email=request.email,
        phone=request.phone,
        app_id=request.app_id,
        app_name=request.app_name,
        user_id=request.user_id,
        payment_transaction_id=request.payment_transaction_id,
        reason=request.reason,
        admin_generated=request.admin_generated,
    )

    if request.payment_transaction_id:
        background_tasks.add_task(
            otp_service.notifier.send_thank_you_email,
            request.email,
            request.app_id,
            request.app_name,
            request.payment_transaction_id,
        )

    return result


@router.post("/verify", response_model=OTPVerificationResult)
async def verify_otp(
    request: VerifyAppOTPRequest,
    background_tasks: BackgroundTasks,
    otp_service: OTPService = Depends(get_otp_service),
    writer: EntitlementWriter = Depends(get_entitlement_writer),
):
    """
    Redeem an OTP for one app.

    - 429 while the (email, app) pair is locked by the limiter
    - On failure: 400 with the structured result, 503 when the store failed
    - On success with a known user: unlocks the app (and its bundle) in the
      same transaction as the verification and schedules a welcome email
    """
    identifier = otp_identifier(request.email, request.app_id)

    lock_ttl = await verify_lock_ttl(identifier)
    if lock_ttl:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=f"Too many verification attempts. Retry after {lock_ttl}s",
            headers={"Retry-After": str(lock_ttl)},
        )

    def grant_access(otp: OTP) -> None:
        if otp.user_id:
            writer.grant_bundle_access(otp.user_id, otp.app_id, commit=False)

    result = await otp_service.verify_otp(
        request.email, request.otp_code, request.app_id, on_verified=grant_access
    )

    if not result.success:
        if result.error == ERR_STORE:
            # Code is still unverified; the caller may retry with it
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content=result.model_dump(exclude_none=True),
            )
        await record_failed_verify(identifier)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=result.model_dump(exclude_none=True),
        )

    await clear_verify_attempts(identifier)

    if result.user_id:
        app = get_app_config(result.app_id)
        background_tasks.add_task(
            otp_service.notifier.send_welcome_email,
            result.email,
            result.app_id,
            app.name if app else result.app_id,
        )

    return result


@router.get("/status", response_model=OTPStatusResponse)
async def otp_status(
    email: str = Query(...),
    app_id: str = Query(...),
    otp_service: OTPService = Depends(get_otp_service),
):
    """Whether a live code already exists, so callers can skip re-sending."""
    has_valid = await otp_service.has_valid_otp(email, app_id)
    return OTPStatusResponse(email=email, app_id=app_id, has_valid_otp=has_valid)


@router.get("/stats", response_model=OTPStats)
async def otp_stats(
    email: str = Query(...),
    app_id: str = Query(...),
    otp_service: OTPService = Depends(get_otp_service),
):
    stats = await otp_service.get_otp_stats(email, app_id)
    if stats is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="OTP statistics unavailable",
        )
    return stats
