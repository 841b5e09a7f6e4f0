# src/app/dependencies.py
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from src.db.base import get_db
from src.services.access import EntitlementWriter
from src.services.messaging import NotificationService, OTPService
from .config import Settings, get_settings


def get_app_settings() -> Settings:
    return get_settings()


def get_notifier(request: Request) -> NotificationService:
    """Delivery gateway built once in the application lifespan."""
    return request.app.state.notifier


def get_otp_service(
    db: Session = Depends(get_db),
    notifier: NotificationService = Depends(get_notifier),
    settings: Settings = Depends(get_app_settings),
) -> OTPService:
    return OTPService(db=db, notifier=notifier, otp_secret=settings.resolve_otp_secret())


def get_entitlement_writer(db: Session = Depends(get_db)) -> EntitlementWriter:
    return EntitlementWriter(db)
