"""OTP repository."""
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import desc
from sqlalchemy.orm import Session

from src.models.otp import OTP, MAX_VERIFICATION_ATTEMPTS
from src.models.base import utcnow
from .base import BaseRepository


class OTPRepository(BaseRepository[OTP]):
    """Queries over issued OTP records. Records are never deleted here."""

    def __init__(self, db: Session):
        super().__init__(OTP, db)

    def find_latest_unverified(
        self,
        email: str,
        app_id: str,
        otp_code: Optional[str] = None,
    ) -> Optional[OTP]:
        """
        Most recent unverified record for (email, app), optionally with a matching digest.

        Expired and locked records are included; the caller classifies them.
        """
        query = self.db.query(OTP).filter(
            OTP.email == email,
            OTP.app_id == app_id,
            OTP.verified_at.is_(None),
        )
        if otp_code is not None:
            query = query.filter(OTP.otp_code == otp_code)
        return query.order_by(desc(OTP.created_at)).first()

    def find_latest_live(
        self,
        email: str,
        app_id: str,
        now: datetime,
        include_locked: bool = False,
    ) -> Optional[OTP]:
        """Most recent record that is unverified, unexpired and, by default, under the attempt cap."""
        query = self.db.query(OTP).filter(
            OTP.email == email,
            OTP.app_id == app_id,
            OTP.verified_at.is_(None),
            OTP.expires_at >= now,
        )
        if not include_locked:
            query = query.filter(OTP.verification_attempts < MAX_VERIFICATION_ATTEMPTS)
        return query.order_by(desc(OTP.created_at)).first()

    def has_live(self, email: str, app_id: str, now: datetime) -> bool:
        query = self.db.query(OTP.id).filter(
            OTP.email == email,
            OTP.app_id == app_id,
            OTP.verified_at.is_(None),
            OTP.expires_at > now,
        )
        return self.db.query(query.exists()).scalar()

    def mark_verified(self, otp_id: UUID, now: datetime) -> bool:
        """
        Verify a record in one conditional UPDATE.

        Only succeeds while the record is unverified, unexpired and under the
        attempt cap, so two concurrent verifications cannot both win.
        The caller commits, so follow-up writes can share the transaction.
        """
        updated = (
            self.db.query(OTP)
            .filter(
                OTP.id == otp_id,
                OTP.verified_at.is_(None),
                OTP.verification_attempts < MAX_VERIFICATION_ATTEMPTS,
                OTP.expires_at >= now,
            )
            .update(
                {
                    OTP.verified_at: now,
                    OTP.verification_attempts: OTP.verification_attempts + 1,
                    OTP.updated_at: utcnow(),
                },
                synchronize_session=False,
            )
        )
        return updated == 1

    def increment_attempts(self, otp_id: UUID) -> bool:
        """Charge one failed attempt to an unverified record still under the cap."""
        updated = (
            self.db.query(OTP)
            .filter(
                OTP.id == otp_id,
                OTP.verified_at.is_(None),
                OTP.verification_attempts < MAX_VERIFICATION_ATTEMPTS,
            )
            .update(
                {
                    OTP.verification_attempts: OTP.verification_attempts + 1,
                    OTP.updated_at: utcnow(),
                },
                synchronize_session=False,
            )
        )
        self.db.commit()
        return updated == 1

    def recent(self, email: str, app_id: str, limit: int = 10) -> List[OTP]:
        return self.get_multi_by_fields(limit=limit, email=email, app_id=app_id)
