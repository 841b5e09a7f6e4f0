"""Per-user app entitlement model."""
from sqlalchemy import Column, String, DateTime, Boolean, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.dialects.postgresql import UUID
import uuid

from src.db.base import Base
from .base import TimestampMixin, utcnow
from .enums import GrantedVia


class UserAppAccess(Base, TimestampMixin):
    """Grants a user access to one paid app, optionally until `expires_at`."""

    __tablename__ = "user_app_access"
    __table_args__ = (
        UniqueConstraint("user_id", "app_id", name="uq_user_app_access_user_app"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    app_id = Column(String(100), nullable=False, index=True)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    expires_at = Column(DateTime, nullable=True)  # None = perpetual
    granted_via = Column(SQLEnum(GrantedVia, name="grantedvia"), nullable=False)
    payment_id = Column(String(255), nullable=True)
    access_granted_at = Column(DateTime, default=utcnow, nullable=False)
    revoked_at = Column(DateTime, nullable=True)
    revoke_reason = Column(String(100), nullable=True)

    def __repr__(self) -> str:
        return (
            f"<UserAppAccess(user_id={self.user_id}, app_id={self.app_id}, "
            f"granted_via={self.granted_via}, is_active={self.is_active})>"
        )
