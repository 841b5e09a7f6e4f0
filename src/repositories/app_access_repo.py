"""User app access repository."""
from datetime import datetime
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from src.models.app_access import UserAppAccess
from src.models.base import utcnow
from src.models.enums import GrantedVia
from .base import BaseRepository


class AppAccessRepository(BaseRepository[UserAppAccess]):
    """Entitlement rows, one per (user, app)."""

    def __init__(self, db: Session):
        super().__init__(UserAppAccess, db)

    def get_for_user_app(self, user_id: str, app_id: str) -> Optional[UserAppAccess]:
        return self.get_by_fields(user_id=user_id, app_id=app_id)

    def upsert(
        self,
        user_id: str,
        app_id: str,
        granted_via: GrantedVia,
        payment_id: Optional[str] = None,
        expires_at: Optional[datetime] = None,
        commit: bool = True,
    ) -> UserAppAccess:
        """Create the (user, app) row or reactivate and overwrite the existing one."""
        values = {
            "granted_via": granted_via,
            "payment_id": payment_id,
            "expires_at": expires_at,
            "is_active": True,
            "access_granted_at": utcnow(),
            "revoked_at": None,
            "revoke_reason": None,
        }
        existing = self.get_for_user_app(user_id, app_id)
        if existing is not None:
            return self.update(existing, values, commit=commit)
        return self.create({"user_id": user_id, "app_id": app_id, **values}, commit=commit)

    def deactivate(self, user_id: str, app_id: str, reason: str) -> int:
        updated = (
            self.db.query(UserAppAccess)
            .filter(UserAppAccess.user_id == user_id, UserAppAccess.app_id == app_id)
            .update(
                {
                    UserAppAccess.is_active: False,
                    UserAppAccess.revoked_at: utcnow(),
                    UserAppAccess.revoke_reason: reason,
                },
                synchronize_session=False,
            )
        )
        self.db.commit()
        return updated

    def list_live_for_user(self, user_id: str, now: datetime) -> List[UserAppAccess]:
        """Active rows that have not expired."""
        return (
            self.db.query(UserAppAccess)
            .filter(
                UserAppAccess.user_id == user_id,
                UserAppAccess.is_active.is_(True),
                or_(UserAppAccess.expires_at.is_(None), UserAppAccess.expires_at >= now),
            )
            .all()
        )

    def list_active(self, app_id: Optional[str] = None) -> List[UserAppAccess]:
        query = self.db.query(UserAppAccess).filter(UserAppAccess.is_active.is_(True))
        if app_id:
            query = query.filter(UserAppAccess.app_id == app_id)
        return query.all()
