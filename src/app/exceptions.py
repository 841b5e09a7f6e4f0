# src/app/exceptions.py
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import logging

from src.services.access import FreeAppPaymentError
from src.services.messaging import OTPStoreError
from src.utils.validators import ValidationError

logger = logging.getLogger(__name__)


def register_exception_handlers(app: FastAPI):

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(FreeAppPaymentError)
    async def free_app_payment_handler(request: Request, exc: FreeAppPaymentError):
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(OTPStoreError)
    async def otp_store_error_handler(request: Request, exc: OTPStoreError):
        logger.error(f"OTP store unavailable: {exc}")
        return JSONResponse(
            status_code=503,
            content={"detail": "OTP service temporarily unavailable"},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error: {exc}")
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )

    return app
